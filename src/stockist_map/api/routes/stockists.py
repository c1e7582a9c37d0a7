"""Stockist feed and store-locator search endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from ...data.stockists_repository import load_registry, load_stockist_rows
from ...schemas.stockists import (
    NearbyRequest,
    SearchRequest,
    SearchResponse,
    StatesResponse,
    StockistFeedModel,
)
from ...services.registry import StockistRegistry
from ...services.search import locate_stockists, search_stockists

router = APIRouter(tags=["stockists"])

FEED_CACHE_CONTROL = "s-maxage=300, stale-while-revalidate"


def _feed_unavailable(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _registry() -> StockistRegistry:
    try:
        return load_registry()
    except (FileNotFoundError, ValueError) as exc:
        raise _feed_unavailable(exc) from exc


@router.get("/stockists.json", response_model=List[StockistFeedModel], status_code=status.HTTP_200_OK)
def get_stockist_feed(response: Response) -> List[StockistFeedModel]:
    """Active stockists that have coordinates, in feed order."""
    try:
        rows = load_stockist_rows()
    except (FileNotFoundError, ValueError) as exc:
        raise _feed_unavailable(exc) from exc
    response.headers["Cache-Control"] = FEED_CACHE_CONTROL
    return [StockistFeedModel.model_validate(row) for row in rows]


@router.get("/stockists/states", response_model=StatesResponse, status_code=status.HTTP_200_OK)
def list_states() -> StatesResponse:
    return StatesResponse(states=list(_registry().states()))


@router.post("/stockists/search", response_model=SearchResponse, status_code=status.HTTP_200_OK)
async def search(request: SearchRequest) -> SearchResponse:
    return SearchResponse.model_validate(await search_stockists(request, registry=_registry()))


@router.post("/stockists/nearby", response_model=SearchResponse, status_code=status.HTTP_200_OK)
async def nearby(request: NearbyRequest) -> SearchResponse:
    return SearchResponse.model_validate(await locate_stockists(request, registry=_registry()))
