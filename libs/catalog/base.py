"""Base catalog store interface.

Defines the abstract contract the search service depends on, independent of
the backing implementation (OpenSearch, in-process memory, etc.).

All methods are asynchronous so the two search stages can run concurrently.
"""

from abc import ABC, abstractmethod
from typing import List

from .query import LexicalQuery, ScoredBook, VectorQuery


class CatalogStore(ABC):
    """Abstract base class for catalog stores.

    Implementations must apply the owner filter (and the status filter when
    present) to every query, and return results ordered by descending score.
    Books without an embedding are never vector candidates.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare indices; safe to call more than once."""
        pass

    @abstractmethod
    async def text_search(
        self,
        query: LexicalQuery,
        skip: int = 0,
        limit: int = 10
    ) -> List[ScoredBook]:
        """Run the boosted full-text query.

        Returns
        - Up to ``limit`` books after skipping ``skip``, best score first
        """
        pass

    @abstractmethod
    async def count(self, query: LexicalQuery) -> int:
        """Count every book matching ``query`` (unscored, no limit)."""
        pass

    @abstractmethod
    async def vector_search(
        self,
        query: VectorQuery,
        limit: int = 10
    ) -> List[ScoredBook]:
        """Approximate nearest-neighbour search.

        Returns
        - Up to ``limit`` books, most similar first
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the catalog store is healthy."""
        pass

    async def close(self) -> None:
        """Release client resources."""
        return None


class CatalogStoreError(Exception):
    """Base exception for catalog store operations."""
    pass


class StoreUnavailableError(CatalogStoreError):
    """The store could not be reached."""
    pass


class StoreTimeoutError(CatalogStoreError):
    """The store did not answer in time."""
    pass


class StoreQueryError(CatalogStoreError):
    """The store rejected the query (missing index, bad mapping, ...)."""
    pass
