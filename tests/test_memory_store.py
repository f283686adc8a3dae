"""Tests for the in-memory catalog store."""

import pytest

from app.hybrid.normalizer import SearchQuery
from app.retrievers.lexical import LexicalSearchStage
from libs.catalog.base import StoreQueryError
from libs.catalog.memory import MemoryCatalogStore, levenshtein, tokenize
from libs.catalog.models import ReadingStatus
from libs.catalog.query import VectorQuery
from tests.books import make_book


@pytest.fixture
def store(library):
    return MemoryCatalogStore(library, vector_dimension=2)


def _lexical(store, term, owner_id="owner-1", status=None):
    stage = LexicalSearchStage(store)
    return stage.build_query(SearchQuery(search_term=term, owner_id=owner_id, status=status))


def test_tokenize():
    assert tokenize("Pride and Prejudice!") == ["pride", "and", "prejudice"]
    assert tokenize(None) == []


@pytest.mark.parametrize("a, b, distance", [
    ("kitten", "sitting", 3),
    ("prejudice", "prejudise", 1),
    ("", "abc", 3),
    ("same", "same", 0),
])
def test_levenshtein(a, b, distance):
    assert levenshtein(a, b) == distance


@pytest.mark.asyncio
async def test_exact_title_outscores_typo(store):
    results = await store.text_search(_lexical(store, "Prejudice"), limit=10)

    assert [r.book.id for r in results] == ["pride", "files"]
    # phrase + autocomplete + fuzzy
    assert results[0].score == 13.0
    # fuzzy only
    assert results[1].score == 2.0


@pytest.mark.asyncio
async def test_typo_still_matches_fuzzily(store):
    results = await store.text_search(_lexical(store, "Prejudise"), limit=10)

    scores = {r.book.id: r.score for r in results}
    assert scores["pride"] == 2.0
    assert scores["files"] > scores["pride"]


@pytest.mark.asyncio
async def test_publisher_exact_match(store):
    results = await store.text_search(_lexical(store, "penguin classics"), limit=10)

    assert len(results) == 1
    # exact + autocomplete + fuzzy
    assert results[0].score == 10.0


@pytest.mark.asyncio
async def test_autocomplete_prefix(store):
    results = await store.text_search(_lexical(store, "Pride and Prej"), limit=10)

    assert results[0].book.id == "pride"
    # autocomplete + fuzzy on "pride"
    assert results[0].score == 5.0


@pytest.mark.asyncio
async def test_tag_and_description_clauses(store):
    tags = await store.text_search(_lexical(store, "romance"), limit=10)
    description = await store.text_search(_lexical(store, "spice"), limit=10)

    assert [(r.book.id, r.score) for r in tags] == [("pride", 2.0)]
    assert [(r.book.id, r.score) for r in description] == [("dune", 1.0)]


@pytest.mark.asyncio
async def test_no_clause_matches_excludes_book(store):
    assert await store.text_search(_lexical(store, "zzzz"), limit=10) == []
    assert await store.count(_lexical(store, "zzzz")) == 0


@pytest.mark.asyncio
async def test_owner_and_status_filters(store):
    owner_two = await store.text_search(_lexical(store, "Prejudice", owner_id="owner-2"), limit=10)
    unread = await store.text_search(
        _lexical(store, "Prejudice", status=ReadingStatus.UNREAD), limit=10
    )

    assert [r.book.id for r in owner_two] == ["other-pride"]
    assert [r.book.id for r in unread] == ["files"]


@pytest.mark.asyncio
async def test_skip_limit_and_count(store):
    query = _lexical(store, "Prejudice")

    assert [r.book.id for r in await store.text_search(query, skip=1, limit=1)] == ["files"]
    assert await store.text_search(query, skip=5, limit=1) == []
    assert await store.count(query) == 2


@pytest.mark.asyncio
async def test_vector_search_orders_by_similarity(store):
    query = VectorQuery(vector=(1.0, 0.0), owner_id="owner-1", num_candidates=100)

    results = await store.vector_search(query, limit=10)

    # "dune" has no embedding and is never a candidate
    assert [r.book.id for r in results] == ["pride", "files"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_vector_search_limit_widens_candidate_breadth(store):
    # same rule as the OpenSearch knn k = max(num_candidates, limit)
    query = VectorQuery(vector=(1.0, 0.0), owner_id="owner-1", num_candidates=1)

    results = await store.vector_search(query, limit=2)

    assert [r.book.id for r in results] == ["pride", "files"]


@pytest.mark.asyncio
async def test_vector_search_respects_limit_and_status(store):
    query = VectorQuery(vector=(0.0, 1.0), owner_id="owner-1", num_candidates=100)
    filtered = VectorQuery(
        vector=(0.0, 1.0), owner_id="owner-1", num_candidates=100, status=ReadingStatus.READ
    )

    assert [r.book.id for r in await store.vector_search(query, limit=1)] == ["files"]
    assert [r.book.id for r in await store.vector_search(filtered, limit=10)] == ["pride"]


@pytest.mark.asyncio
async def test_vector_dimension_mismatch(store):
    with pytest.raises(StoreQueryError):
        await store.vector_search(
            VectorQuery(vector=(1.0, 0.0, 0.0), owner_id="owner-1", num_candidates=10)
        )

    with pytest.raises(StoreQueryError):
        store.add(make_book("bad", "Bad Vector", embedding=[1.0, 2.0, 3.0]))


@pytest.mark.asyncio
async def test_health_check(store):
    await store.initialize()
    assert await store.health_check() is True
