"""Semantic search stage: nearest neighbours of the query embedding."""

from typing import List

import structlog

from libs.catalog.base import CatalogStore
from libs.catalog.query import VectorQuery
from ..hybrid.normalizer import SearchQuery
from ..ranking.fusion import Candidate

logger = structlog.get_logger("search_service.semantic")


class SemanticSearchStage:
    """Approximate nearest-neighbour search scoped to one owner.

    ``num_candidates`` is the ANN search breadth and should stay well above
    any candidate limit.
    """

    def __init__(self, store: CatalogStore, num_candidates: int = 100):
        self.store = store
        self.num_candidates = num_candidates

    def build_query(self, query: SearchQuery) -> VectorQuery:
        if query.query_embedding is None:
            raise ValueError("Semantic stage requires a query embedding")
        return VectorQuery(
            vector=query.query_embedding,
            owner_id=query.owner_id,
            num_candidates=self.num_candidates,
            status=query.status,
        )

    async def candidates(self, query: SearchQuery, limit: int) -> List[Candidate]:
        """Top ``limit`` nearest books, ranked from 0, for fusion."""
        hits = await self.store.vector_search(self.build_query(query), limit=limit)
        candidates = [
            Candidate(document_id=hit.book.id, rank=rank, stage_score=hit.score, book=hit.book)
            for rank, hit in enumerate(hits[:limit])
        ]
        logger.debug("Semantic candidates fetched", count=len(candidates), limit=limit)
        return candidates
