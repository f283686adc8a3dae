"""Tests for the embedding provider client and book text rendering."""

from datetime import datetime

import httpx
import pytest

from libs.catalog.embedding import EmbeddingError, HttpEmbeddingProvider, format_book_for_embedding
from tests.books import make_book


def _provider(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpEmbeddingProvider("http://embedding:9006/", model="text-embedding-3-large", http_client=client)


@pytest.mark.asyncio
async def test_embed_returns_first_vector():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"vectors": [[0.1, 0.2, 0.3]]})

    provider = _provider(handler)
    vector = await provider.embed("dune")
    await provider.close()

    assert vector == [0.1, 0.2, 0.3]
    assert seen["url"] == "http://embedding:9006/api/v1/embed"
    assert b'"text":"dune"' in seen["body"].replace(b" ", b"")


@pytest.mark.asyncio
async def test_embed_error_status():
    provider = _provider(lambda request: httpx.Response(500, json={"detail": "boom"}))

    with pytest.raises(EmbeddingError):
        await provider.embed("dune")


@pytest.mark.asyncio
async def test_embed_empty_vectors():
    provider = _provider(lambda request: httpx.Response(200, json={"vectors": []}))

    with pytest.raises(EmbeddingError):
        await provider.embed("dune")


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, text="<html>gateway</html>"),
    httpx.Response(200, json=["not", "an", "object"]),
    httpx.Response(200, json={"vectors": [None]}),
    httpx.Response(200, json={"vectors": [["a", "b"]]}),
])
async def test_embed_malformed_body(response):
    provider = _provider(lambda request: response)

    with pytest.raises(EmbeddingError):
        await provider.embed("dune")


@pytest.mark.asyncio
async def test_embed_transport_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = _provider(handler)

    with pytest.raises(EmbeddingError):
        await provider.embed("dune")


def test_format_book_for_embedding():
    book = make_book(
        "dune",
        "Dune",
        authors="Frank Herbert",
        publication_date=datetime(1965, 8, 1),
        tags=["science fiction", "classic"],
        description="A desert planet.",
    )

    assert format_book_for_embedding(book) == (
        "Dune\n"
        "Title: Dune\n"
        "Author: Frank Herbert\n"
        "Year of publication: 1965\n"
        "Tags: science fiction, classic\n"
        "Description: A desert planet.\n"
    )


def test_format_book_skips_missing_fields():
    book = make_book("bare", "Bare Book", authors="  ")
    assert format_book_for_embedding(book) == "Bare Book\nTitle: Bare Book\n"
