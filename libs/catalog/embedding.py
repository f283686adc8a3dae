"""Embedding provider client.

Search never computes book vectors itself; an external service does. This
module holds the small client the HTTP layer uses to embed a search term,
and the canonical text rendering the indexing pipeline embeds for a book.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import httpx
import structlog

from .models import Book

logger = structlog.get_logger("catalog.embedding")


class EmbeddingError(Exception):
    """The embedding provider failed or returned no vector."""
    pass


class EmbeddingProvider(ABC):
    """Turns text into a fixed-length float vector."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        pass

    async def close(self) -> None:
        return None


class HttpEmbeddingProvider(EmbeddingProvider):
    """Client for the embedding service ``/api/v1/embed`` endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str = "default",
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def embed(self, text: str) -> List[float]:
        """POST to the embedding service to obtain one vector."""
        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/v1/embed",
                json={
                    "items": [{"text": text}],
                    "model": self.model
                }
            )
        except httpx.HTTPError as e:
            logger.error("Embedding service request failed", error=str(e))
            raise EmbeddingError(f"Embedding service request failed: {e}") from e

        if response.status_code != 200:
            raise EmbeddingError(f"Embedding service returned status {response.status_code}")

        try:
            vectors = response.json().get("vectors") or []
            vector = [float(value) for value in vectors[0]] if vectors else []
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Embedding service returned a malformed body", error=str(e))
            raise EmbeddingError(f"Embedding service returned a malformed body: {e}") from e

        if not vector:
            raise EmbeddingError("Embedding service returned no vectors")
        return vector

    async def close(self) -> None:
        await self.http_client.aclose()


def format_book_for_embedding(book: Book) -> str:
    """Render the text embedded for a book.

    The title leads on its own line, followed by labelled lines for each
    populated field.
    """
    lines = [book.title, f"Title: {book.title}"]

    if book.authors and book.authors.strip():
        lines.append(f"Author: {book.authors}")
    if book.publication_date is not None:
        lines.append(f"Year of publication: {book.publication_date.year}")
    if book.tags:
        lines.append(f"Tags: {', '.join(book.tags)}")
    if book.description and book.description.strip():
        lines.append(f"Description: {book.description}")

    return "\n".join(lines) + "\n"
