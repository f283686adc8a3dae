"""Catalog record and paged envelope models.

The ``Book`` record is owned by the storage layer and read-only to search.
Both models serialise with camelCase keys to match the public API.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ReadingStatus(str, Enum):
    """Reading status of a book."""
    UNREAD = "Unread"
    READING = "Reading"
    READ = "Read"


class Book(BaseModel):
    """A catalog record.

    ``embedding`` is written by an external pipeline and may be missing for
    any book at any time; it is never serialised.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    owner_id: str
    title: str
    authors: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    annotation: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    isbn10: Optional[str] = None
    isbn13: Optional[str] = None
    pages: Optional[int] = None
    publication_date: Optional[datetime] = None
    status: ReadingStatus = ReadingStatus.UNREAD
    cover_image_url: Optional[str] = None
    created_date: Optional[datetime] = None
    modified_date: Optional[datetime] = None
    started_reading_date: Optional[datetime] = None
    finished_reading_date: Optional[datetime] = None
    embedding: Optional[List[float]] = Field(default=None, exclude=True)


ItemT = TypeVar("ItemT")


class PagedResult(BaseModel, Generic[ItemT]):
    """One page of results plus the counts a client needs to paginate."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[ItemT]
    total_count: int
    page: int
    page_size: int

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)
