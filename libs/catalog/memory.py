"""In-process catalog store.

Evaluates ``LexicalQuery`` and ``VectorQuery`` against books held in memory
with the same clause semantics the OpenSearch translation uses. Intended for
local development and tests; it keeps no index and scans every book.
"""

import re
from typing import Dict, Iterable, List, Optional
import numpy as np
import structlog

from .base import CatalogStore, StoreQueryError
from .models import Book
from .query import ClauseKind, LexicalQuery, ScoredBook, TextClause, VectorQuery

logger = structlog.get_logger("catalog.memory")

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: Optional[str]) -> List[str]:
    """Split text into lowercase word terms."""
    return [token.casefold() for token in _TOKEN_RE.findall(text or "")]


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def _contains_run(terms: List[str], needle: List[str], prefix_last: bool = False) -> bool:
    """True when ``needle`` occurs contiguously in ``terms``."""
    if not needle or len(needle) > len(terms):
        return False
    head, last = needle[:-1], needle[-1]
    for start in range(len(terms) - len(needle) + 1):
        window = terms[start:start + len(needle)]
        if window[:-1] != head:
            continue
        if window[-1] == last or (prefix_last and window[-1].startswith(last)):
            return True
    return False


class MemoryCatalogStore(CatalogStore):
    """Catalog store backed by a dict of books."""

    def __init__(self, books: Optional[Iterable[Book]] = None, vector_dimension: Optional[int] = None):
        self.vector_dimension = vector_dimension
        self._books: Dict[str, Book] = {}
        for book in books or []:
            self.add(book)

    def add(self, book: Book) -> None:
        """Insert or replace a book."""
        if (
            book.embedding is not None
            and self.vector_dimension is not None
            and len(book.embedding) != self.vector_dimension
        ):
            raise StoreQueryError(
                f"Embedding of book {book.id} has dimension {len(book.embedding)}, "
                f"expected {self.vector_dimension}"
            )
        self._books[book.id] = book

    async def initialize(self) -> None:
        logger.info("Memory catalog store initialized", books=len(self._books))

    ##########################################
    ############ CLAUSE MATCHING #############
    ##########################################

    @staticmethod
    def _field_values(book: Book, field: str) -> List[str]:
        value = getattr(book, field, None)
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item]
        return [str(value)]

    def _clause_matches(self, book: Book, clause: TextClause, query: LexicalQuery) -> bool:
        query_terms = tokenize(query.term)

        for field in clause.fields:
            for value in self._field_values(book, field):
                if clause.kind == ClauseKind.EXACT:
                    if value.strip().casefold() == query.term.strip().casefold():
                        return True
                    continue

                terms = tokenize(value)
                if clause.kind == ClauseKind.PHRASE:
                    if _contains_run(terms, query_terms):
                        return True
                elif clause.kind == ClauseKind.AUTOCOMPLETE:
                    if _contains_run(terms, query_terms, prefix_last=True):
                        return True
                elif clause.kind == ClauseKind.FUZZY:
                    if self._fuzzy_match(terms, query_terms, query):
                        return True
                elif clause.kind == ClauseKind.TEXT:
                    if set(terms) & set(query_terms):
                        return True
        return False

    @staticmethod
    def _fuzzy_match(terms: List[str], query_terms: List[str], query: LexicalQuery) -> bool:
        prefix = query.fuzzy_prefix_length
        for query_term in query_terms:
            for term in terms:
                if term[:prefix] != query_term[:prefix]:
                    continue
                if levenshtein(term, query_term) <= query.fuzzy_max_edits:
                    return True
        return False

    def _in_scope(self, book: Book, owner_id: str, status) -> bool:
        if book.owner_id != owner_id:
            return False
        return status is None or book.status == status

    def _score(self, book: Book, query: LexicalQuery) -> Optional[float]:
        matched = [clause for clause in query.clauses if self._clause_matches(book, clause, query)]
        if not matched or len(matched) < query.minimum_should_match:
            return None
        return float(sum(clause.boost for clause in matched))

    def _ranked(self, query: LexicalQuery) -> List[ScoredBook]:
        results = []
        for book in self._books.values():
            if not self._in_scope(book, query.owner_id, query.status):
                continue
            score = self._score(book, query)
            if score is not None:
                results.append(ScoredBook(book=book, score=score))
        results.sort(key=lambda item: item.score, reverse=True)
        return results

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def text_search(
        self,
        query: LexicalQuery,
        skip: int = 0,
        limit: int = 10
    ) -> List[ScoredBook]:
        return self._ranked(query)[skip:skip + limit]

    async def count(self, query: LexicalQuery) -> int:
        return len(self._ranked(query))

    async def vector_search(
        self,
        query: VectorQuery,
        limit: int = 10
    ) -> List[ScoredBook]:
        """Exact cosine ranking over books that carry an embedding."""
        query_vector = np.asarray(query.vector, dtype=float)
        if self.vector_dimension is not None and query_vector.shape[0] != self.vector_dimension:
            raise StoreQueryError(
                f"Query vector has dimension {query_vector.shape[0]}, expected {self.vector_dimension}"
            )
        query_norm = np.linalg.norm(query_vector)

        results = []
        for book in self._books.values():
            if book.embedding is None or not self._in_scope(book, query.owner_id, query.status):
                continue
            vector = np.asarray(book.embedding, dtype=float)
            if vector.shape != query_vector.shape:
                continue
            denominator = query_norm * np.linalg.norm(vector)
            cosine = float(np.dot(query_vector, vector) / denominator) if denominator else 0.0
            # same scale as the OpenSearch cosinesimil score
            results.append(ScoredBook(book=book, score=(1.0 + cosine) / 2.0))

        results.sort(key=lambda item: item.score, reverse=True)
        # search breadth matches the OpenSearch knn ``k``
        breadth = max(query.num_candidates, limit)
        return results[:breadth][:limit]

    async def health_check(self) -> bool:
        return True
