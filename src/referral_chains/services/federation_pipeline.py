"""
# Federation Pipeline Builder

Builds one aggregation plan that reads every chain's node collection as a single stream.

## How the union is expressed

MongoDB aggregations run against one collection, so the plan picks a **base** collection and
appends a `$unionWith` stage for each of the others:

```
db.treeNodesBronze.aggregate([
    {"$unionWith": {"coll": "treeNodesGold"}},
    {"$unionWith": {"coll": "treeNodesSilver"}},
    ...ranking stages...
])
```

Which chain becomes the base is an internal detail. Chain names are de-duplicated and put in
canonical (sorted) order first, so the same set of chains always yields the same plan
regardless of the order the registry returned them in. Output order is decided only by the
ranking stages appended afterwards.

## User join

Search needs the user's name, so `build(..., join_users=True)` appends a single `$lookup`
against the user directory followed by an `$unwind` without null preservation. A node whose
`user` reference does not resolve produces no joined row and therefore leaves the stream.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from referral_chains.config import settings
from referral_chains.database import CollectionResolver, PrefixCollectionResolver, db_manager
from referral_chains.managers.logging_manager import get_logger
from referral_chains.services.errors import NoChainsFound

logger = get_logger(prefix="[FederationPipeline]")

USER_DATA_FIELD = "userData"


@dataclass
class FederationPlan:
    """
    A single aggregation over the union of several node collections.

    Attributes:
        base_collection: Collection the aggregation is executed against.
        stages: Aggregation pipeline, starting with the `$unionWith` stages.
        collections: Every node collection covered by the plan, base included.
    """

    base_collection: str
    stages: List[Dict[str, Any]] = field(default_factory=list)
    collections: List[str] = field(default_factory=list)

    def extend(self, stages: Iterable[Dict[str, Any]]) -> "FederationPlan":
        """Return a new plan with `stages` appended after the current ones."""
        return FederationPlan(
            base_collection=self.base_collection,
            stages=[*self.stages, *stages],
            collections=list(self.collections),
        )

    async def execute(self, database: AsyncIOMotorDatabase) -> List[Dict[str, Any]]:
        """
        Run the plan as one aggregate call and materialize every resulting document.

        Store errors are not caught here.
        """
        start_time = db_manager.log_query_start(self.base_collection, "federated aggregate", self.stages)
        try:
            documents = await database[self.base_collection].aggregate(self.stages).to_list(length=None)
        except Exception as e:
            db_manager.log_query_error(self.base_collection, "federated aggregate", start_time, e)
            raise
        db_manager.log_query_success(self.base_collection, "federated aggregate", start_time, len(documents))
        return documents


class FederationPipelineBuilder:
    """
    Turns a list of chain names into a `FederationPlan`.

    Args:
        resolver: Maps chain names to node collection names.
        users_collection: Collection joined when `join_users=True`.
    """

    def __init__(self, resolver: Optional[CollectionResolver] = None, users_collection: Optional[str] = None):
        self.resolver = resolver or PrefixCollectionResolver()
        self.users_collection = users_collection or settings.USERS_COLLECTION

    def build(self, chain_names: List[str], join_users: bool = False) -> FederationPlan:
        """
        Build the union plan over every chain in `chain_names`.

        Args:
            chain_names: Validated chain names. Duplicates are included once.
            join_users: Attach the user directory join used by search.

        Raises:
            NoChainsFound: If `chain_names` is empty; there is no base collection to run against.
        """
        if not chain_names:
            raise NoChainsFound()

        collections = [self.resolver.resolve(name) for name in sorted(set(chain_names))]
        base_collection, unioned = collections[0], collections[1:]

        stages: List[Dict[str, Any]] = [{"$unionWith": {"coll": name}} for name in unioned]
        if join_users:
            stages.extend(self.user_join_stages())

        logger.debug(
            "Built federation plan over %d collections (join_users=%s)", len(collections), join_users
        )
        return FederationPlan(base_collection=base_collection, stages=stages, collections=collections)

    def user_join_stages(self) -> List[Dict[str, Any]]:
        return [
            {
                "$lookup": {
                    "from": self.users_collection,
                    "localField": "user",
                    "foreignField": "_id",
                    "as": USER_DATA_FIELD,
                }
            },
            {"$unwind": f"${USER_DATA_FIELD}"},
        ]
