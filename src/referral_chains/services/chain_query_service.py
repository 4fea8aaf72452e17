"""
# Chain Query Service

The four query executors behind the public endpoints. Each one validates its parameters,
composes the registry reader, federation builder, ranking stages and investment aggregator,
and returns a classified `QueryResult`.

| Executor | Payload |
|---|---|
| `get_chains_list` | `{chains, count, totalInvestment}` |
| `get_media` | `{media}` |
| `get_top_nodes` | `{paginatedNodes}` |
| `search_nodes` | `{nodes}` |

Parameter validation runs before any store call, so a rejected request costs no queries.
"""

from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from referral_chains.config import settings
from referral_chains.database import CollectionResolver, PrefixCollectionResolver
from referral_chains.managers.logging_manager import get_logger
from referral_chains.models.chain_models import MediaRecord, QueryResult
from referral_chains.services.chain_registry import ChainRegistryReader
from referral_chains.services.errors import MissingSearchField, NoChainsFound, NotFound, capture_query_errors
from referral_chains.services.federation_pipeline import FederationPipelineBuilder
from referral_chains.services.investment import InvestmentAggregator
from referral_chains.services.ranking import Pagination, search_stages, top_n_stages

logger = get_logger(prefix="[ChainQueryService]")


class ChainQueryService:
    """
    Query executors over the chain registry and the federated node collections.

    Args:
        database: Database handle for the current request.
        resolver: Chain name to node collection mapping; defaults to the prefix convention.
    """

    def __init__(self, database: AsyncIOMotorDatabase, resolver: Optional[CollectionResolver] = None):
        self.database = database
        self.resolver = resolver or PrefixCollectionResolver()
        self.registry = ChainRegistryReader(database)
        self.builder = FederationPipelineBuilder(self.resolver)
        self.aggregator = InvestmentAggregator(database, self.resolver)

    @capture_query_errors("get_chains_list")
    async def get_chains_list(self, page: Any = None, limit: Any = None) -> QueryResult:
        """Paginated chain directory with per-chain and total investment."""
        pagination = Pagination.from_params(page, limit)

        chains, total_count = await self.registry.list_chains(pagination.skip, pagination.limit)
        chains, total_investment = await self.aggregator.aggregate(chains)

        logger.info(
            "Listed %d of %d chains (page=%d, limit=%d)", len(chains), total_count, pagination.page, pagination.limit
        )
        return QueryResult(
            message="Success",
            data={
                "chains": [chain.model_dump(by_alias=True, exclude_unset=True) for chain in chains],
                "count": total_count,
                "totalInvestment": total_investment,
            },
        )

    @capture_query_errors("get_media")
    async def get_media(self) -> QueryResult:
        """Fetch the singleton media record."""
        document = await self.database[settings.MEDIA_COLLECTION].find_one({})
        if not document:
            raise NotFound("Media record not found")

        return QueryResult(
            message="Media record fetched successfully",
            data={"media": MediaRecord(**document).model_dump(by_alias=True, exclude_unset=True)},
        )

    @capture_query_errors("get_top_nodes")
    async def get_top_nodes(self) -> QueryResult:
        """
        The nodes with the largest `totalMembers` across every chain.

        Rows are returned exactly as the store produced them.
        """
        chain_names = await self.registry.list_chain_names()
        if not chain_names:
            raise NoChainsFound("Chain not found")

        plan = self.builder.build(chain_names).extend(top_n_stages())
        documents = await plan.execute(self.database)

        logger.info("Ranked top %d nodes across %d chains", len(documents), len(plan.collections))
        return QueryResult(
            message="Top nodes across all chains fetched successfully!",
            data={"paginatedNodes": documents},
        )

    @capture_query_errors("search_nodes")
    async def search_nodes(self, search_field: Optional[str] = None, page: Any = None, limit: Any = None) -> QueryResult:
        """
        Cross-chain search by user name (case-insensitive substring) or numeric node id.

        The term is matched exactly as sent, surrounding whitespace included, so `" bob"`
        only finds names containing `" bob"`. A term made only of whitespace counts as absent.

        Raises (classified by `capture_query_errors`):
            MissingSearchField: Blank or absent search term; no store call is made.
            NoChainsFound: The registry is empty.
            NotFound: Nothing matched.
        """
        if search_field is None or not str(search_field).strip():
            raise MissingSearchField()
        term = str(search_field)
        pagination = Pagination.from_params(page, limit)

        chain_names = await self.registry.list_chain_names()
        if not chain_names:
            raise NoChainsFound("Chains not found")

        plan = self.builder.build(chain_names, join_users=True).extend(search_stages(term, pagination))
        documents = await plan.execute(self.database)
        if not documents:
            raise NotFound("Nodes not found")

        logger.info("Search matched %d nodes (page=%d, limit=%d)", len(documents), pagination.page, pagination.limit)
        return QueryResult(message="Nodes fetched successfully", data={"nodes": documents})
