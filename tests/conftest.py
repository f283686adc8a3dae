"""Shared fixtures for the search tests."""

import pytest

from libs.catalog.models import ReadingStatus
from libs.common.config import SearchConfig
from tests.books import make_book


@pytest.fixture
def search_config():
    """Search config pointed at the in-memory store."""
    return SearchConfig(
        shelf_catalog_backend="memory",
        shelf_vector_dimension=2,
        shelf_search_timeout_seconds=5.0,
    )


@pytest.fixture
def library():
    """A small library for one owner plus one book of another owner."""
    return [
        make_book(
            "pride",
            "Pride and Prejudice",
            authors="Jane Austen",
            publisher="Penguin Classics",
            tags=["classic", "romance"],
            status=ReadingStatus.READ,
            embedding=[1.0, 0.0],
        ),
        make_book(
            "files",
            "The Prejudise Files",
            authors="A. Typo",
            publisher="Small Press",
            status=ReadingStatus.UNREAD,
            embedding=[0.0, 1.0],
        ),
        make_book(
            "dune",
            "Dune",
            authors="Frank Herbert",
            publisher="Ace",
            tags=["science fiction"],
            description="A desert planet and its spice.",
            status=ReadingStatus.READING,
        ),
        make_book(
            "other-pride",
            "Pride and Prejudice",
            owner_id="owner-2",
            authors="Jane Austen",
            embedding=[1.0, 0.0],
        ),
    ]
