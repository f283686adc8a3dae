"""Query normalization for book search.

Turns raw caller input into an immutable ``SearchQuery``: validates the
search term and owner, clamps the page size, and parses the status filter.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from libs.catalog.models import ReadingStatus


class InvalidQueryError(ValueError):
    """Raised before any store access when the request cannot be searched."""
    pass


@dataclass(frozen=True)
class SearchQuery:
    """A validated search request scoped to exactly one owner.

    ``query_embedding`` being present selects hybrid mode; ``None`` selects
    lexical-only mode.
    """
    search_term: str
    owner_id: str
    page: int = 1
    page_size: int = 50
    status: Optional[ReadingStatus] = None
    query_embedding: Optional[Tuple[float, ...]] = None

    @property
    def is_hybrid(self) -> bool:
        return self.query_embedding is not None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size


class QueryNormalizer:
    """Validates and clamps caller-supplied search parameters.

    A page size above ``max_page_size`` is silently reduced; it is not an
    error.
    """

    def __init__(self, default_page_size: int = 50, max_page_size: int = 100):
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def normalize(
        self,
        search_term: Optional[str],
        owner_id: Optional[str],
        page: int = 1,
        page_size: Optional[int] = None,
        status: Union[ReadingStatus, str, None] = None,
        query_embedding: Optional[Sequence[float]] = None,
    ) -> SearchQuery:
        if search_term is None or not search_term.strip():
            raise InvalidQueryError("Search term must not be empty")
        if not owner_id:
            raise InvalidQueryError("Search must be scoped to an owner")
        if page < 1:
            raise InvalidQueryError(f"Page must be at least 1, got {page}")

        if page_size is None:
            page_size = self.default_page_size
        if page_size < 1:
            raise InvalidQueryError(f"Page size must be at least 1, got {page_size}")
        page_size = min(page_size, self.max_page_size)

        return SearchQuery(
            search_term=search_term.strip(),
            owner_id=str(owner_id),
            page=page,
            page_size=page_size,
            status=self._parse_status(status),
            query_embedding=tuple(float(v) for v in query_embedding) if query_embedding else None,
        )

    @staticmethod
    def _parse_status(status: Union[ReadingStatus, str, None]) -> Optional[ReadingStatus]:
        if status is None or isinstance(status, ReadingStatus):
            return status
        for candidate in ReadingStatus:
            if candidate.value.lower() == str(status).strip().lower():
                return candidate
        raise InvalidQueryError(f"Unknown reading status: {status}")
