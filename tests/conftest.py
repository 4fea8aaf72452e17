from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest


def make_collection(
    aggregate_result: Optional[List[Dict[str, Any]]] = None,
    distinct_result: Optional[List[Any]] = None,
    find_one_result: Optional[Dict[str, Any]] = None,
    count: int = 0,
) -> MagicMock:
    """A Motor-shaped collection mock: `aggregate()` returns a cursor with async `to_list()`."""
    collection = MagicMock()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=aggregate_result or [])
    collection.aggregate = MagicMock(return_value=cursor)
    collection.distinct = AsyncMock(return_value=distinct_result or [])
    collection.find_one = AsyncMock(return_value=find_one_result)
    collection.count_documents = AsyncMock(return_value=count)
    return collection


@pytest.fixture
def collections() -> Dict[str, MagicMock]:
    return {}


@pytest.fixture
def database(collections):
    """Database mock whose `db[name]` returns a distinct, recorded collection per name."""
    db = MagicMock()

    def get_collection(name):
        if name not in collections:
            collections[name] = make_collection()
        return collections[name]

    db.__getitem__.side_effect = get_collection
    return db
