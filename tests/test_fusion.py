"""Tests for reciprocal rank fusion."""

import pytest

from app.ranking.fusion import Candidate, ReciprocalRankFusion, create_fusion_algorithm
from libs.common.config import SearchConfig
from tests.books import make_book


def _candidates(*document_ids):
    return [
        Candidate(document_id=doc_id, rank=rank, stage_score=0.0, book=make_book(doc_id, doc_id))
        for rank, doc_id in enumerate(document_ids)
    ]


def test_contribution_formula():
    assert ReciprocalRankFusion.contribution(0, 1.0) == pytest.approx(0.5)
    assert ReciprocalRankFusion.contribution(0, 60.0) == pytest.approx(1 / 61)
    assert ReciprocalRankFusion.contribution(3, 60.0) == pytest.approx(1 / 64)


def test_document_in_both_stages_sums_contributions():
    fusion = ReciprocalRankFusion(k_text=1.0, k_vector=60.0)

    fused = fusion.fuse_results(_candidates("a"), _candidates("a"))

    assert len(fused) == 1
    assert fused[0].combined_score == pytest.approx(0.516393, abs=1e-6)
    assert fused[0].text_rank == 0
    assert fused[0].vector_rank == 0


def test_document_missing_from_a_stage_gets_zero_there():
    fusion = ReciprocalRankFusion()

    fused = {r.document_id: r for r in fusion.fuse_results(_candidates("a"), _candidates("b"))}

    assert fused["a"].vector_contribution == 0.0
    assert fused["a"].vector_rank is None
    assert fused["b"].text_contribution == 0.0
    assert fused["b"].combined_score == pytest.approx(1 / 61)


def test_lexical_rank_dominates():
    fusion = ReciprocalRankFusion()

    fused = fusion.fuse_results(_candidates("a", "b"), _candidates("b", "a"))

    assert [r.document_id for r in fused] == ["a", "b"]
    assert fused[0].combined_score == pytest.approx(1 / 2 + 1 / 62)
    assert fused[1].combined_score == pytest.approx(1 / 3 + 1 / 61)


def test_duplicates_keep_first_rank():
    fusion = ReciprocalRankFusion()

    fused = {r.document_id: r for r in fusion.fuse_results(_candidates("a", "a", "b"), [])}

    assert len(fused) == 2
    assert fused["a"].combined_score == pytest.approx(0.5)
    assert fused["b"].combined_score == pytest.approx(1 / 4)


def test_output_is_sorted_descending():
    fusion = ReciprocalRankFusion()

    fused = fusion.fuse_results(_candidates("a", "b", "c"), _candidates("c", "d"))
    scores = [r.combined_score for r in fused]

    assert scores == sorted(scores, reverse=True)
    assert {r.document_id for r in fused} == {"a", "b", "c", "d"}


def test_empty_inputs():
    assert ReciprocalRankFusion().fuse_results([], []) == []


def test_create_fusion_algorithm_uses_config():
    config = SearchConfig(shelf_search_k_text=2.0, shelf_search_k_vector=10.0)

    fusion = create_fusion_algorithm(config)

    assert isinstance(fusion, ReciprocalRankFusion)
    assert fusion.k_text == 2.0
    assert fusion.k_vector == 10.0
