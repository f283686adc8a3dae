"""Search manager for hybrid semantic and lexical book search.

Combines nearest-neighbour similarity (semantic) with boosted full‑text
matching (lexical) and merges results using Reciprocal Rank Fusion (RRF).
Without a query embedding the lexical stage runs alone as a single scored,
paginated and counted query.
"""

import asyncio
import time
from typing import List, Optional, Sequence, Union

import structlog

from libs.catalog.base import CatalogStore, CatalogStoreError, StoreTimeoutError
from libs.catalog.factory import create_catalog_store
from libs.catalog.models import Book, PagedResult, ReadingStatus
from libs.common.config import SearchConfig
from .normalizer import QueryNormalizer, SearchQuery
from ..ranking.fusion import Candidate, FusedResult, RankFusionAlgorithm, create_fusion_algorithm
from ..retrievers.lexical import BoostWeights, LexicalSearchStage
from ..retrievers.semantic import SemanticSearchStage

logger = structlog.get_logger("search_service.search_manager")

HYBRID_COUNT_MODES = ("window", "lexical")
SEMANTIC_FAILURE_POLICIES = ("fail", "degrade")


class SearchManager:
    """Manages hybrid search operations.

    Responsibilities
    - Normalize caller input into a ``SearchQuery``
    - Run the lexical and semantic stages as independent tasks and join them
    - Fuse, order and paginate into a ``PagedResult``

    The manager holds no mutable per-request state; one instance serves
    concurrent requests.
    """

    def __init__(
        self,
        config: SearchConfig,
        store: Optional[CatalogStore] = None,
        fusion_algorithm: Optional[RankFusionAlgorithm] = None,
    ):
        """Construct a search manager.

        Parameters
        - config: ``SearchConfig`` with store settings and ranking knobs
        - store: Optional pre-built store; defaults to the configured backend
        - fusion_algorithm: Optional fusion override; defaults to RRF
        """
        if config.shelf_search_hybrid_count_mode not in HYBRID_COUNT_MODES:
            raise ValueError(f"Unknown hybrid count mode: {config.shelf_search_hybrid_count_mode}")
        if config.shelf_search_semantic_failure_policy not in SEMANTIC_FAILURE_POLICIES:
            raise ValueError(
                f"Unknown semantic failure policy: {config.shelf_search_semantic_failure_policy}"
            )

        self.config = config
        self.store = store if store is not None else create_catalog_store(config)
        self.normalizer = QueryNormalizer(
            default_page_size=config.shelf_search_default_page_size,
            max_page_size=config.shelf_search_max_page_size,
        )
        self.lexical_stage = LexicalSearchStage(
            self.store,
            weights=BoostWeights.from_config(config),
            fuzzy_max_edits=config.shelf_search_fuzzy_max_edits,
            fuzzy_prefix_length=config.shelf_search_fuzzy_prefix_length,
        )
        self.semantic_stage = SemanticSearchStage(
            self.store,
            num_candidates=config.shelf_search_num_candidates,
        )
        self.fusion_algorithm = fusion_algorithm or create_fusion_algorithm(config)
        self.candidate_multiplier = config.shelf_search_candidate_multiplier
        self.hybrid_count_mode = config.shelf_search_hybrid_count_mode
        self.semantic_failure_policy = config.shelf_search_semantic_failure_policy
        self.timeout = config.shelf_search_timeout_seconds

    async def initialize(self) -> None:
        """Prepare the catalog store indices."""
        await self.store.initialize()
        logger.info("Search manager initialized successfully")

    async def search(
        self,
        search_term: Optional[str],
        owner_id: Optional[str],
        page: int = 1,
        page_size: Optional[int] = None,
        status: Union[ReadingStatus, str, None] = None,
        query_embedding: Optional[Sequence[float]] = None,
    ) -> PagedResult[Book]:
        """Search one owner's books.

        Raises ``InvalidQueryError`` before touching the store when the input
        is unusable; store errors propagate unchanged.
        """
        query = self.normalizer.normalize(
            search_term=search_term,
            owner_id=owner_id,
            page=page,
            page_size=page_size,
            status=status,
            query_embedding=query_embedding,
        )
        return await self.search_query(query)

    async def search_query(self, query: SearchQuery) -> PagedResult[Book]:
        """Run an already normalized query under the request timeout."""
        mode = "hybrid" if query.is_hybrid else "lexical"
        start_time = time.time()
        runner = self._hybrid_search(query) if query.is_hybrid else self._lexical_search(query)

        try:
            if self.timeout:
                result = await asyncio.wait_for(runner, timeout=self.timeout)
            else:
                result = await runner
        except asyncio.TimeoutError as e:
            logger.error("Search timed out", mode=mode, timeout_seconds=self.timeout)
            raise StoreTimeoutError(f"Search did not finish within {self.timeout} seconds") from e
        except CatalogStoreError as e:
            logger.error("Search failed", mode=mode, error=str(e))
            raise

        logger.info(
            "Search completed",
            mode=mode,
            page=query.page,
            page_size=query.page_size,
            results_count=len(result.items),
            total_count=result.total_count,
            duration_ms=(time.time() - start_time) * 1000
        )
        return result

    async def _lexical_search(self, query: SearchQuery) -> PagedResult[Book]:
        hits, total_count = await self.lexical_stage.page(query)
        return PagedResult[Book](
            items=[hit.book for hit in hits],
            total_count=total_count,
            page=query.page,
            page_size=query.page_size,
        )

    async def _hybrid_search(self, query: SearchQuery) -> PagedResult[Book]:
        limit = query.page_size * self.candidate_multiplier

        tasks = [
            asyncio.ensure_future(self.lexical_stage.candidates(query, limit)),
            asyncio.ensure_future(self._semantic_candidates(query, limit)),
        ]
        if self.hybrid_count_mode == "lexical":
            tasks.append(asyncio.ensure_future(
                self.store.count(self.lexical_stage.build_query(query))
            ))

        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            raise

        text_candidates, vector_candidates = results[0], results[1]
        fused = self.fusion_algorithm.fuse_results(text_candidates, vector_candidates)

        if self.hybrid_count_mode == "lexical":
            total_count = max(results[2], len(fused))
        else:
            # window size, not the true number of matches
            total_count = len(fused)

        page_items = self._page_window(fused, query)
        return PagedResult[Book](
            items=[result.book for result in page_items],
            total_count=total_count,
            page=query.page,
            page_size=query.page_size,
        )

    async def _semantic_candidates(self, query: SearchQuery, limit: int) -> List[Candidate]:
        try:
            return await self.semantic_stage.candidates(query, limit)
        except CatalogStoreError as e:
            if self.semantic_failure_policy != "degrade":
                raise
            logger.warning(
                "Semantic stage failed, continuing with lexical candidates only",
                error=str(e)
            )
            return []

    @staticmethod
    def _page_window(fused: List[FusedResult], query: SearchQuery) -> List[FusedResult]:
        return fused[query.skip:query.skip + query.page_size]

    async def health_check(self) -> bool:
        """Check if the search manager is healthy."""
        return await self.store.health_check()

    async def cleanup(self) -> None:
        """Cleanup resources."""
        try:
            await self.store.close()
            logger.info("Search manager cleanup completed")
        except CatalogStoreError as e:
            logger.error("Search manager cleanup failed", error=str(e))
