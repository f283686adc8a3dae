"""Result fusion for hybrid search."""

from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from libs.catalog.models import Book
from libs.common.config import SearchConfig

logger = structlog.get_logger("search_fusion")


@dataclass(frozen=True)
class Candidate:
    """A book returned by one search stage, before fusion.

    ``rank`` is the 0-based position in that stage's list after its limit;
    ``stage_score`` is kept for diagnostics only.
    """
    document_id: str
    rank: int
    stage_score: float
    book: Book


@dataclass
class FusedResult:
    """One document after fusion."""
    document_id: str
    book: Book
    combined_score: float
    text_contribution: float = 0.0
    vector_contribution: float = 0.0
    text_rank: Optional[int] = None
    vector_rank: Optional[int] = None


class RankFusionAlgorithm:
    """Base class for rank fusion algorithms."""

    def fuse_results(
        self,
        text_candidates: List[Candidate],
        vector_candidates: List[Candidate],
    ) -> List[FusedResult]:
        """Fuse lexical and semantic candidates, best first."""
        raise NotImplementedError


class ReciprocalRankFusion(RankFusionAlgorithm):
    """Reciprocal Rank Fusion (RRF) with a separate ``k`` per stage.

    A stage contributes ``1 / (rank + k + 1)`` for every document it ranked.
    The small default ``k_text`` makes lexical positions worth far more than
    semantic ones at the same rank.
    """

    def __init__(self, k_text: float = 1.0, k_vector: float = 60.0):
        self.k_text = k_text
        self.k_vector = k_vector

    @staticmethod
    def contribution(rank: int, k: float) -> float:
        return 1.0 / (rank + k + 1.0)

    @staticmethod
    def _by_document(candidates: List[Candidate]) -> Dict[str, Candidate]:
        # first occurrence is the best rank
        ranked: Dict[str, Candidate] = {}
        for candidate in candidates:
            ranked.setdefault(candidate.document_id, candidate)
        return ranked

    def fuse_results(
        self,
        text_candidates: List[Candidate],
        vector_candidates: List[Candidate],
    ) -> List[FusedResult]:
        """Fuse results using RRF; ties keep no particular order."""
        text_map = self._by_document(text_candidates)
        vector_map = self._by_document(vector_candidates)

        fused: Dict[str, FusedResult] = {}
        for document_id, candidate in text_map.items():
            score = self.contribution(candidate.rank, self.k_text)
            fused[document_id] = FusedResult(
                document_id=document_id,
                book=candidate.book,
                combined_score=score,
                text_contribution=score,
                text_rank=candidate.rank,
            )

        for document_id, candidate in vector_map.items():
            score = self.contribution(candidate.rank, self.k_vector)
            result = fused.get(document_id)
            if result is None:
                result = fused[document_id] = FusedResult(
                    document_id=document_id,
                    book=candidate.book,
                    combined_score=0.0,
                )
            result.vector_contribution = score
            result.vector_rank = candidate.rank
            result.combined_score = result.text_contribution + result.vector_contribution

        fused_results = sorted(fused.values(), key=lambda r: r.combined_score, reverse=True)

        logger.debug(
            "RRF fusion completed",
            text_count=len(text_map),
            vector_count=len(vector_map),
            fused_count=len(fused_results),
            k_text=self.k_text,
            k_vector=self.k_vector
        )

        return fused_results


def create_fusion_algorithm(config: SearchConfig) -> RankFusionAlgorithm:
    """Create the fusion algorithm configured for the search service."""
    return ReciprocalRankFusion(
        k_text=config.shelf_search_k_text,
        k_vector=config.shelf_search_k_vector,
    )
