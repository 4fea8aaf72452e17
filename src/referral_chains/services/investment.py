"""
Invested capital per chain for the chain directory.

A chain's investment is the membership of its root node multiplied by the chain's seed
amount. The aggregator issues exactly one root-node read per chain on the current page, so
its cost follows the page size rather than the number of registered chains.
"""

import asyncio
from typing import List, Optional, Tuple, Union

from motor.motor_asyncio import AsyncIOMotorDatabase

from referral_chains.database import CollectionResolver, PrefixCollectionResolver, db_manager
from referral_chains.managers.logging_manager import get_logger
from referral_chains.models.chain_models import Chain
from referral_chains.services.errors import RootNodeIncomplete, RootNodeMissing

logger = get_logger(prefix="[InvestmentAggregator]")

Amount = Union[int, float]


class InvestmentAggregator:
    def __init__(self, database: AsyncIOMotorDatabase, resolver: Optional[CollectionResolver] = None):
        self.database = database
        self.resolver = resolver or PrefixCollectionResolver()

    async def chain_investment(self, chain: Chain) -> Amount:
        """
        Compute `root.totalMembers * seedAmount` for one chain.

        Raises:
            RootNodeMissing: If the chain's declared root node is not in its node collection.
            RootNodeIncomplete: If the root node carries no `totalMembers`.
        """
        collection_name = self.resolver.resolve(chain.name)
        start_time = db_manager.log_query_start(collection_name, "find_one", {"_id": chain.root_node})
        root_node = await self.database[collection_name].find_one({"_id": chain.root_node})
        db_manager.log_query_success(collection_name, "find_one", start_time, 1 if root_node else 0)

        if root_node is None:
            raise RootNodeMissing(chain.name)

        if root_node.get("totalMembers") is None:
            raise RootNodeIncomplete(chain.name)

        return root_node["totalMembers"] * chain.seed_amount

    async def aggregate(self, chains: List[Chain]) -> Tuple[List[Chain], Amount]:
        """
        Attach `investment` to every chain and return the page total.

        The per-chain reads are independent and read-only, so they run concurrently.

        Returns:
            Tuple[List[Chain], Amount]: The same chains with `investment` set, and their sum.
        """
        investments = await asyncio.gather(*(self.chain_investment(chain) for chain in chains))

        total_investment: Amount = 0
        for chain, investment in zip(chains, investments):
            chain.investment = investment
            total_investment += investment

        logger.debug("Computed investment for %d chains: total=%s", len(chains), total_investment)
        return chains, total_investment
