"""API routes for the book search service."""

import time
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Request, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
import structlog

from libs.catalog.base import CatalogStoreError
from libs.catalog.embedding import EmbeddingError, EmbeddingProvider
from libs.catalog.models import Book, PagedResult
from libs.common.auth import get_current_owner_id
from ..hybrid.normalizer import InvalidQueryError
from ..hybrid.search_manager import SearchManager

logger = structlog.get_logger("search_service.api")

router = APIRouter()


class SearchRequest(BaseModel):
    """Request body for the POST search endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search_term: str = Field(..., description="Free-text search term")
    page: int = Field(1, description="1-based page number")
    page_size: Optional[int] = Field(None, description="Page size, capped at the configured maximum")
    status: Optional[str] = Field(None, description="Reading status filter (Unread, Reading, Read)")
    query_embedding: Optional[List[float]] = Field(
        None, description="Pre-computed embedding of the search term; enables hybrid search"
    )


def get_search_manager(request: Request) -> SearchManager:
    """Get search manager from application state."""
    return request.app.state.search_manager


def get_metrics(request: Request):
    """Get metrics collector from application state."""
    return request.app.state.metrics_collector


def get_embedding_provider(request: Request) -> Optional[EmbeddingProvider]:
    """Get the optional embedding provider from application state."""
    return getattr(request.app.state, "embedding_provider", None)


async def _embed_search_term(
    embedding_provider: Optional[EmbeddingProvider],
    search_term: str
) -> Optional[List[float]]:
    if embedding_provider is None or not search_term or not search_term.strip():
        return None
    try:
        return await embedding_provider.embed(search_term)
    except EmbeddingError as e:
        logger.warning("Query embedding unavailable, searching lexically", error=str(e))
        return None


async def _run_search(
    search_manager: SearchManager,
    metrics_collector,
    owner_id: str,
    search_term: str,
    page: int,
    page_size: Optional[int],
    status: Optional[str],
    query_embedding: Optional[List[float]],
) -> PagedResult[Book]:
    mode = "hybrid" if query_embedding else "lexical"
    start_time = time.time()

    try:
        result = await search_manager.search(
            search_term=search_term,
            owner_id=owner_id,
            page=page,
            page_size=page_size,
            status=status,
            query_embedding=query_embedding,
        )
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogStoreError as e:
        metrics_collector.record_search_failure(mode=mode, error=type(e).__name__)
        logger.error("Search failed", mode=mode, error=str(e))
        raise HTTPException(status_code=500, detail="Search failed")

    metrics_collector.record_search(mode=mode, duration=time.time() - start_time)
    return result


@router.get("/books/search", response_model=PagedResult[Book])
async def search_books(
    search_term: str = Query(..., alias="searchTerm", description="Free-text search term"),
    page: int = Query(1, description="1-based page number"),
    page_size: Optional[int] = Query(None, alias="pageSize", description="Page size, capped at 100"),
    status: Optional[str] = Query(None, description="Reading status filter (Unread, Reading, Read)"),
    owner_id: str = Depends(get_current_owner_id),
    search_manager: SearchManager = Depends(get_search_manager),
    metrics_collector=Depends(get_metrics),
    embedding_provider: Optional[EmbeddingProvider] = Depends(get_embedding_provider),
):
    """Search the caller's books; hybrid when the term can be embedded."""
    query_embedding = await _embed_search_term(embedding_provider, search_term)
    return await _run_search(
        search_manager,
        metrics_collector,
        owner_id=owner_id,
        search_term=search_term,
        page=page,
        page_size=page_size,
        status=status,
        query_embedding=query_embedding,
    )


@router.post("/books/search", response_model=PagedResult[Book])
async def search_books_with_embedding(
    request: SearchRequest,
    owner_id: str = Depends(get_current_owner_id),
    search_manager: SearchManager = Depends(get_search_manager),
    metrics_collector=Depends(get_metrics),
):
    """Search the caller's books with an optional pre-computed embedding."""
    return await _run_search(
        search_manager,
        metrics_collector,
        owner_id=owner_id,
        search_term=request.search_term,
        page=request.page,
        page_size=request.page_size,
        status=request.status,
        query_embedding=request.query_embedding,
    )
