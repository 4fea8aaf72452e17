"""
Ranking and pagination stages appended to a federation plan.

Two modes:

- **Top-N**: `$sort` on `totalMembers` descending, then `$limit`. Always the first
  `TOP_NODES_LIMIT` rows, never a paginated window. Rows with equal `totalMembers` come
  back in whatever order the store produces.
- **Search**: `$match` on the joined user's name or the node id, then `$skip`/`$limit`.
"""

from dataclasses import dataclass
import re
from typing import Any, Dict, List, Optional

from referral_chains.config import settings
from referral_chains.services.federation_pipeline import USER_DATA_FIELD

LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


def _coerce_positive_int(value: Any, default: int) -> int:
    """Coerce a raw query parameter to a positive int, falling back to `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if number != number or number < 1 or not number.is_integer():
        return default
    return int(number)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @classmethod
    def from_params(cls, page: Any = None, limit: Any = None) -> "Pagination":
        """
        Build a pagination window from raw request parameters.

        Absent, non-numeric, fractional or non-positive values fall back to
        `DEFAULT_PAGE` / `DEFAULT_PAGE_LIMIT`; they never raise. Valid values are used
        as given, with no upper bound.
        """
        page_number = _coerce_positive_int(page, settings.DEFAULT_PAGE)
        page_limit = _coerce_positive_int(limit, settings.DEFAULT_PAGE_LIMIT)
        return cls(page=page_number, limit=page_limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def stages(self) -> List[Dict[str, Any]]:
        return [{"$skip": self.skip}, {"$limit": self.limit}]


def top_n_stages(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Sort by `totalMembers` descending and keep the first `limit` rows (default 10)."""
    return [
        {"$sort": {"totalMembers": -1}},
        {"$limit": limit or settings.TOP_NODES_LIMIT},
    ]


def parse_node_id(term: str) -> Optional[int]:
    """
    Integer value of a search term, read from its leading digits.

    `"42"` and `" 42abc"` give 42; `"alice"` gives `None`, which means the node id branch
    of the search filter can never match.
    """
    match = LEADING_INTEGER.match(term)
    if not match:
        return None
    return int(match.group(1))


def search_match_stage(term: str) -> Dict[str, Any]:
    """
    Filter rows whose joined user name contains `term` (case-insensitive) or whose
    `nodeId` equals the integer value of `term`.
    """
    conditions: List[Dict[str, Any]] = [
        {f"{USER_DATA_FIELD}.userName": {"$regex": re.escape(term), "$options": "i"}},
    ]
    node_id = parse_node_id(term)
    if node_id is not None:
        conditions.append({"nodeId": node_id})
    return {"$match": {"$or": conditions}}


def search_stages(term: str, pagination: Pagination) -> List[Dict[str, Any]]:
    return [search_match_stage(term), *pagination.stages()]
