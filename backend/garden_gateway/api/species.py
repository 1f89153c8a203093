from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from garden_gateway.auth import get_current_user_id
from garden_gateway.dependencies import get_search_cache, get_species_client
from garden_gateway.errors import UpstreamError
from garden_gateway.schemas.species import SpeciesOut
from garden_gateway.services.search_cache import SearchCache, normalize_query
from garden_gateway.services.species_client import SpeciesLookupClient


router = APIRouter(dependencies=[Depends(get_current_user_id)])
logger = structlog.get_logger(__name__)

SEARCH_FAILED_MESSAGE = "Internal server error in search-species"


@router.get("/search-species", response_model=list[SpeciesOut])
async def search_species(
    q: str = Query(default=""),
    cache: SearchCache = Depends(get_search_cache),
    client: SpeciesLookupClient = Depends(get_species_client),
) -> list[dict[str, Any]]:
    raw_query = q.strip()
    if not normalize_query(raw_query):
        return []

    cached = cache.get(raw_query)
    if cached is not None:
        logger.debug("species_cache_hit", query=normalize_query(raw_query))
        return cached

    try:
        results = await client.search(raw_query)
    except UpstreamError as exc:
        exc.public_message = SEARCH_FAILED_MESSAGE
        raise
    cache.put(raw_query, results)
    return results
