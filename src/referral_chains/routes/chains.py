"""
# Chain Routes

HTTP endpoints for the chain directory, media record, top nodes and cross-chain search.

The routes are plumbing only: they read request parameters, acquire a database handle for
the request, call `ChainQueryService` and translate its `QueryStatus` into an HTTP status.

## API Endpoints

- `GET /getChainsList?page=&limit=` - Chain directory with investment totals
- `GET /getMediaList` - Singleton media record
- `GET /getTopNodes` - Top 10 nodes by `totalMembers` across all chains
- `POST /searchNodes?searchField=&page=&limit=` - Search by user name or node id

`page` and `limit` are taken as raw strings so that malformed values fall back to their
defaults instead of failing request validation.
"""

from typing import AsyncIterator, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from referral_chains.database import db_manager
from referral_chains.managers.logging_manager import get_logger
from referral_chains.models.chain_models import QueryResult, QueryStatus
from referral_chains.services.chain_query_service import ChainQueryService

logger = get_logger(prefix="[Chain Routes]")

router = APIRouter(tags=["Chains"])

STATUS_CODES = {
    QueryStatus.OK: status.HTTP_200_OK,
    QueryStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    QueryStatus.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    QueryStatus.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def get_database() -> AsyncIterator[AsyncIOMotorDatabase]:
    """Database handle scoped to one request; released on every exit path."""
    async with db_manager.scoped_database() as database:
        yield database


def get_chain_query_service(database: AsyncIOMotorDatabase = Depends(get_database)) -> ChainQueryService:
    return ChainQueryService(database)


def to_response(result: QueryResult) -> JSONResponse:
    """Render a `QueryResult` as `{"message": ..., **payload}` with the mapped status code."""
    body = {"message": result.message, **result.data}
    if result.error is not None:
        body["error"] = result.error.model_dump()
    return JSONResponse(
        status_code=STATUS_CODES[result.status],
        content=jsonable_encoder(body, custom_encoder={ObjectId: str}),
    )


@router.get("/getChainsList")
async def get_chains_list(
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Chains per page"),
    service: ChainQueryService = Depends(get_chain_query_service),
):
    """Paginated chain directory with per-chain investment and the page total."""
    return to_response(await service.get_chains_list(page=page, limit=limit))


@router.get("/getMediaList")
async def get_media_list(service: ChainQueryService = Depends(get_chain_query_service)):
    """Return the singleton media record."""
    return to_response(await service.get_media())


@router.get("/getTopNodes")
async def get_top_nodes(service: ChainQueryService = Depends(get_chain_query_service)):
    """Top nodes by `totalMembers` across every chain."""
    return to_response(await service.get_top_nodes())


@router.post("/searchNodes")
async def search_nodes(
    search_field: Optional[str] = Query(None, alias="searchField", description="User name fragment or node id"),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Nodes per page"),
    service: ChainQueryService = Depends(get_chain_query_service),
):
    """Search every chain by user name or numeric node id."""
    return to_response(await service.search_nodes(search_field=search_field, page=page, limit=limit))
