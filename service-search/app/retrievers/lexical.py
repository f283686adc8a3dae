"""Lexical search stage.

Builds the filtered boosted query once and runs it either as a candidate
generator for fusion or as a direct scored, paginated and counted query.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Tuple

import structlog

from libs.catalog.base import CatalogStore
from libs.catalog.query import ClauseKind, LexicalQuery, ScoredBook, TextClause
from libs.common.config import SearchConfig
from ..hybrid.normalizer import SearchQuery
from ..ranking.fusion import Candidate

logger = structlog.get_logger("search_service.lexical")


@dataclass(frozen=True)
class BoostWeights:
    """Per-clause weights, highest first."""
    phrase: float = 8.0
    publisher_exact: float = 5.0
    autocomplete: float = 3.0
    fuzzy: float = 2.0
    tags: float = 2.0
    description: float = 1.0

    @classmethod
    def from_config(cls, config: SearchConfig) -> "BoostWeights":
        return cls(
            phrase=config.shelf_search_boost_phrase,
            publisher_exact=config.shelf_search_boost_publisher_exact,
            autocomplete=config.shelf_search_boost_autocomplete,
            fuzzy=config.shelf_search_boost_fuzzy,
            tags=config.shelf_search_boost_tags,
            description=config.shelf_search_boost_description,
        )


class LexicalSearchStage:
    """Boosted multi-field text matching scoped to one owner."""

    def __init__(
        self,
        store: CatalogStore,
        weights: BoostWeights = BoostWeights(),
        fuzzy_max_edits: int = 1,
        fuzzy_prefix_length: int = 2,
    ):
        self.store = store
        self.weights = weights
        self.fuzzy_max_edits = fuzzy_max_edits
        self.fuzzy_prefix_length = fuzzy_prefix_length

    def build_query(self, query: SearchQuery) -> LexicalQuery:
        """Build the query shared by both execution paths."""
        w = self.weights
        clauses = (
            TextClause(ClauseKind.PHRASE, ("title", "authors"), w.phrase),
            TextClause(ClauseKind.EXACT, ("publisher",), w.publisher_exact),
            TextClause(ClauseKind.AUTOCOMPLETE, ("title", "authors", "publisher"), w.autocomplete),
            TextClause(ClauseKind.FUZZY, ("title", "authors", "publisher"), w.fuzzy),
            TextClause(ClauseKind.TEXT, ("tags",), w.tags),
            TextClause(ClauseKind.TEXT, ("description", "annotation"), w.description),
        )
        return LexicalQuery(
            term=query.search_term,
            owner_id=query.owner_id,
            clauses=clauses,
            status=query.status,
            minimum_should_match=1,
            fuzzy_max_edits=self.fuzzy_max_edits,
            fuzzy_prefix_length=self.fuzzy_prefix_length,
        )

    async def candidates(self, query: SearchQuery, limit: int) -> List[Candidate]:
        """Top ``limit`` lexical matches, ranked from 0, for fusion."""
        hits = await self.store.text_search(self.build_query(query), skip=0, limit=limit)
        candidates = [
            Candidate(document_id=hit.book.id, rank=rank, stage_score=hit.score, book=hit.book)
            for rank, hit in enumerate(hits)
        ]
        logger.debug("Lexical candidates fetched", count=len(candidates), limit=limit)
        return candidates

    async def page(self, query: SearchQuery) -> Tuple[List[ScoredBook], int]:
        """Scored page plus an accurate total from a separate count query."""
        lexical_query = self.build_query(query)
        hits, total_count = await asyncio.gather(
            self.store.text_search(lexical_query, skip=query.skip, limit=query.page_size),
            self.store.count(lexical_query),
        )
        return hits, total_count
