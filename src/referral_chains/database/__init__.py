"""
# Database Package

The `referral_chains.database` package is the persistence layer of the service, built on
**Motor** (async MongoDB driver).

## Core Components

- **`manager`**: The `DatabaseManager` singleton that handles connection lifecycle and pooling.
- **`collection_resolver`**: Maps a chain name to the physical collection holding its nodes.

## Usage

```python
from referral_chains.database import db_manager

await db_manager.connect()
chains = db_manager.get_collection("chains")
await db_manager.disconnect()
```

Attributes:
    db_manager (DatabaseManager): The global singleton instance for database access.
"""

from referral_chains.database.collection_resolver import (
    CollectionResolver,
    PrefixCollectionResolver,
    validate_chain_name,
)
from referral_chains.database.manager import DatabaseManager, db_manager

__all__ = [
    "CollectionResolver",
    "DatabaseManager",
    "PrefixCollectionResolver",
    "db_manager",
    "validate_chain_name",
]
