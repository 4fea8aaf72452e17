"""
Read-only access to the chain registry collection.

The registry is the source of truth for which chains exist, and therefore for which node
collections a federated query has to cover. It is read fresh on every request.
"""

from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from referral_chains.config import settings
from referral_chains.database import db_manager, validate_chain_name
from referral_chains.managers.logging_manager import get_logger
from referral_chains.models.chain_models import Chain
from referral_chains.services.errors import RegistryUnavailable

logger = get_logger(prefix="[ChainRegistry]")


class ChainRegistryReader:
    """
    Reads chain metadata from the registry collection.

    Every store failure is re-raised as `RegistryUnavailable`, so callers can tell a
    registry outage apart from failures further down the pipeline.
    """

    def __init__(self, database: AsyncIOMotorDatabase, collection_name: Optional[str] = None):
        self.collection_name = collection_name or settings.CHAINS_COLLECTION
        self.collection = database[self.collection_name]

    async def list_chains(self, page_offset: int, page_size: int) -> Tuple[List[Chain], int]:
        """
        Fetch one page of chains plus the total number of registered chains.

        Args:
            page_offset: Number of chains to skip from the front of the registry.
            page_size: Maximum number of chains to return.

        Returns:
            Tuple[List[Chain], int]: The page of chains and the registry-wide count.

        Raises:
            RegistryUnavailable: If the registry cannot be read.
        """
        pipeline = [{"$skip": page_offset}, {"$limit": page_size}]
        start_time = db_manager.log_query_start(self.collection_name, "aggregate", pipeline)
        try:
            documents = await self.collection.aggregate(pipeline).to_list(length=None)
            total_count = await self.collection.count_documents({})
        except PyMongoError as e:
            db_manager.log_query_error(self.collection_name, "aggregate", start_time, e)
            raise RegistryUnavailable() from e

        db_manager.log_query_success(self.collection_name, "aggregate", start_time, len(documents))
        return [Chain(**document) for document in documents], total_count

    async def list_chain_names(self) -> List[str]:
        """
        Return every registered chain name.

        Order is whatever the store returns; callers must not depend on it.

        Raises:
            RegistryUnavailable: If the registry cannot be read.
            ConfigurationError: If a registered name cannot be used as a chain name.
        """
        start_time = db_manager.log_query_start(self.collection_name, "distinct", {"key": "name"})
        try:
            names = await self.collection.distinct("name")
        except PyMongoError as e:
            db_manager.log_query_error(self.collection_name, "distinct", start_time, e)
            raise RegistryUnavailable() from e

        db_manager.log_query_success(self.collection_name, "distinct", start_time, len(names))
        return [validate_chain_name(name) for name in names]
