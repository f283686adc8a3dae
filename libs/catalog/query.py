"""Store-facing query values.

``LexicalQuery`` is the single filtered, boosted full-text query shared by the
candidate-generation path (hybrid mode) and the direct scored/counted path
(lexical-only mode). ``VectorQuery`` is its nearest-neighbour counterpart.
Backends translate these values into their own query language.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .models import Book, ReadingStatus


class ClauseKind(Enum):
    """How a should-clause matches its fields."""
    PHRASE = "phrase"              # all terms, contiguous, in order
    EXACT = "exact"                # whole field value, case-insensitive
    AUTOCOMPLETE = "autocomplete"  # phrase whose last term is a prefix
    FUZZY = "fuzzy"                # any term within the edit distance
    TEXT = "text"                  # any term


@dataclass(frozen=True)
class TextClause:
    """One boosted should-clause over one or more fields."""
    kind: ClauseKind
    fields: Tuple[str, ...]
    boost: float


@dataclass(frozen=True)
class LexicalQuery:
    """Filtered boosted query.

    Filters (owner, optional status) are mandatory and AND'd; clauses are
    OR'd with at least ``minimum_should_match`` of them matching. A matching
    clause adds its boost to the document score.
    """
    term: str
    owner_id: str
    clauses: Tuple[TextClause, ...]
    status: Optional[ReadingStatus] = None
    minimum_should_match: int = 1
    fuzzy_max_edits: int = 1
    fuzzy_prefix_length: int = 2


@dataclass(frozen=True)
class VectorQuery:
    """Approximate nearest-neighbour query scoped like ``LexicalQuery``."""
    vector: Tuple[float, ...]
    owner_id: str
    num_candidates: int
    status: Optional[ReadingStatus] = None


@dataclass
class ScoredBook:
    """A book returned by a store together with the score that ranked it."""
    book: Book
    score: float
