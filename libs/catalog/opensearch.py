"""OpenSearch catalog store implementation."""

from typing import Any, Awaitable, Dict, List, Optional
import structlog
from opensearchpy import AsyncOpenSearch, exceptions

from .base import (
    CatalogStore,
    StoreQueryError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from .models import Book
from .query import ClauseKind, LexicalQuery, ScoredBook, TextClause, VectorQuery

logger = structlog.get_logger("catalog.opensearch")

EXACT_SUBFIELD = "exact"
EMBEDDING_FIELD = "embedding"


class OpenSearchCatalogStore(CatalogStore):
    """OpenSearch-based catalog store.

    One index holds the books: text fields for the lexical stage and a
    ``knn_vector`` field for the semantic stage. Books indexed without an
    embedding simply have no vector and never show up in kNN results.
    """

    def __init__(
        self,
        hosts: List[str],
        index_name: str = "books",
        vector_dimension: int = 3072,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = False,
        ssl_assert_hostname: bool = False,
        ssl_show_warn: bool = False,
        timeout: float = 10.0,
        client: Optional[AsyncOpenSearch] = None,
    ):
        """Initialize OpenSearch catalog store.

        Args:
            hosts: List of OpenSearch host URLs
            index_name: Name of the books index
            vector_dimension: Dimension of the book embeddings
            username: OpenSearch username
            password: OpenSearch password
            verify_certs: Whether to verify SSL certificates
            ssl_assert_hostname: Whether to assert hostname
            ssl_show_warn: Whether to show SSL warnings
            timeout: Per-request timeout in seconds
            client: Pre-built client, mainly for tests
        """
        self.hosts = hosts
        self.index_name = index_name
        self.vector_dimension = vector_dimension
        self.timeout = timeout

        self.client = client or AsyncOpenSearch(
            hosts=hosts,
            http_auth=(username, password) if username and password else None,
            verify_certs=verify_certs,
            ssl_assert_hostname=ssl_assert_hostname,
            ssl_show_warn=ssl_show_warn,
            use_ssl=True if hosts[0].startswith('https') else False,
            timeout=timeout,
        )

    def index_mapping(self) -> Dict[str, Any]:
        """Index settings and mappings for the books index."""
        exact_subfield = {
            EXACT_SUBFIELD: {"type": "keyword", "normalizer": "lowercase_normalizer"}
        }
        return {
            "settings": {
                "index": {
                    "knn": True,
                    "number_of_shards": 1,
                    "number_of_replicas": 0
                },
                "analysis": {
                    "normalizer": {
                        "lowercase_normalizer": {
                            "type": "custom",
                            "filter": ["lowercase", "asciifolding"]
                        }
                    }
                }
            },
            "mappings": {
                "properties": {
                    "owner_id": {"type": "keyword"},
                    "status": {"type": "keyword"},
                    "title": {"type": "text", "fields": exact_subfield},
                    "authors": {"type": "text", "fields": exact_subfield},
                    "publisher": {"type": "text", "fields": exact_subfield},
                    "tags": {"type": "text"},
                    "description": {"type": "text"},
                    "annotation": {"type": "text"},
                    "isbn10": {"type": "keyword"},
                    "isbn13": {"type": "keyword"},
                    "pages": {"type": "integer"},
                    "publication_date": {"type": "date"},
                    "cover_image_url": {"type": "keyword", "index": False},
                    "created_date": {"type": "date"},
                    "modified_date": {"type": "date"},
                    "started_reading_date": {"type": "date"},
                    "finished_reading_date": {"type": "date"},
                    EMBEDDING_FIELD: {
                        "type": "knn_vector",
                        "dimension": self.vector_dimension,
                        "method": {
                            "name": "hnsw",
                            "space_type": "cosinesimil",
                            "engine": "lucene",
                            "parameters": {
                                "ef_construction": 128,
                                "m": 24
                            }
                        }
                    }
                }
            }
        }

    async def initialize(self) -> None:
        """Create the books index if it doesn't exist."""
        if not await self._execute("exists", self.client.indices.exists(index=self.index_name)):
            await self._execute(
                "create_index",
                self.client.indices.create(index=self.index_name, body=self.index_mapping())
            )
            logger.info("OpenSearch index created", index_name=self.index_name)

        logger.info("OpenSearch catalog store initialized", index_name=self.index_name)

    ##########################################
    ############ QUERY BUILDERS ##############
    ##########################################

    def build_filters(self, owner_id: str, status) -> List[Dict[str, Any]]:
        filters: List[Dict[str, Any]] = [{"term": {"owner_id": owner_id}}]
        if status is not None:
            filters.append({"term": {"status": status.value}})
        return filters

    def build_clause(self, clause: TextClause, query: LexicalQuery) -> Dict[str, Any]:
        """Translate one should-clause into a constant-score OpenSearch query."""
        fields = list(clause.fields)

        if clause.kind == ClauseKind.PHRASE:
            inner = {"multi_match": {"query": query.term, "type": "phrase", "fields": fields}}
        elif clause.kind == ClauseKind.EXACT:
            terms = [{"term": {f"{field}.{EXACT_SUBFIELD}": query.term}} for field in fields]
            inner = terms[0] if len(terms) == 1 else {
                "bool": {"should": terms, "minimum_should_match": 1}
            }
        elif clause.kind == ClauseKind.AUTOCOMPLETE:
            inner = {"multi_match": {"query": query.term, "type": "phrase_prefix", "fields": fields}}
        elif clause.kind == ClauseKind.FUZZY:
            inner = {
                "multi_match": {
                    "query": query.term,
                    "fields": fields,
                    "fuzziness": query.fuzzy_max_edits,
                    "prefix_length": query.fuzzy_prefix_length,
                }
            }
        elif clause.kind == ClauseKind.TEXT:
            inner = {"multi_match": {"query": query.term, "fields": fields}}
        else:
            raise ValueError(f"Unsupported clause kind: {clause.kind}")

        return {"constant_score": {"filter": inner, "boost": clause.boost}}

    def build_bool_query(self, query: LexicalQuery) -> Dict[str, Any]:
        return {
            "bool": {
                "filter": self.build_filters(query.owner_id, query.status),
                "should": [self.build_clause(clause, query) for clause in query.clauses],
                "minimum_should_match": query.minimum_should_match,
            }
        }

    def build_text_search_body(self, query: LexicalQuery, skip: int, limit: int) -> Dict[str, Any]:
        return {
            "from": skip,
            "size": limit,
            "query": self.build_bool_query(query),
            "_source": {"excludes": [EMBEDDING_FIELD]},
        }

    def build_count_body(self, query: LexicalQuery) -> Dict[str, Any]:
        return {"query": self.build_bool_query(query)}

    def build_vector_search_body(self, query: VectorQuery, limit: int) -> Dict[str, Any]:
        return {
            "size": limit,
            "query": {
                "knn": {
                    EMBEDDING_FIELD: {
                        "vector": list(query.vector),
                        "k": max(query.num_candidates, limit),
                        "filter": {
                            "bool": {"filter": self.build_filters(query.owner_id, query.status)}
                        },
                    }
                }
            },
            "_source": {"excludes": [EMBEDDING_FIELD]},
        }

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def text_search(
        self,
        query: LexicalQuery,
        skip: int = 0,
        limit: int = 10
    ) -> List[ScoredBook]:
        """Run the boosted full-text query."""
        response = await self._execute(
            "text_search",
            self.client.search(index=self.index_name, body=self.build_text_search_body(query, skip, limit))
        )
        results = self._parse_hits(response)

        logger.debug(
            "OpenSearch text search completed",
            results_count=len(results),
            skip=skip,
            limit=limit
        )
        return results

    async def count(self, query: LexicalQuery) -> int:
        """Count every book matching the lexical query."""
        response = await self._execute(
            "count",
            self.client.count(index=self.index_name, body=self.build_count_body(query))
        )
        return int(response.get("count", 0))

    async def vector_search(
        self,
        query: VectorQuery,
        limit: int = 10
    ) -> List[ScoredBook]:
        """Search for similar books using kNN."""
        response = await self._execute(
            "vector_search",
            self.client.search(index=self.index_name, body=self.build_vector_search_body(query, limit))
        )
        results = self._parse_hits(response)[:limit]

        logger.debug(
            "OpenSearch vector search completed",
            results_count=len(results),
            num_candidates=query.num_candidates
        )
        return results

    async def health_check(self) -> bool:
        """Check if the OpenSearch cluster answers."""
        try:
            return bool(await self.client.ping())
        except exceptions.OpenSearchException as e:
            logger.error("OpenSearch health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the OpenSearch client connection."""
        await self.client.close()
        logger.info("OpenSearch client connection closed")

    ##########################################
    ################ HELPERS #################
    ##########################################

    def _parse_hits(self, response: Dict[str, Any]) -> List[ScoredBook]:
        results = []
        for hit in response.get("hits", {}).get("hits", []):
            source = dict(hit.get("_source", {}))
            source["id"] = hit["_id"]
            results.append(ScoredBook(
                book=Book.model_validate(source),
                score=float(hit.get("_score") or 0.0)
            ))
        return results

    async def _execute(self, operation: str, call: Awaitable[Any]) -> Any:
        """Await an OpenSearch call, translating transport errors."""
        try:
            return await call
        except exceptions.ConnectionTimeout as e:
            logger.error("OpenSearch request timed out", operation=operation, error=str(e))
            raise StoreTimeoutError(f"OpenSearch {operation} timed out") from e
        except exceptions.ConnectionError as e:
            logger.error("OpenSearch unavailable", operation=operation, error=str(e))
            raise StoreUnavailableError(f"OpenSearch {operation} failed: unavailable") from e
        except exceptions.TransportError as e:
            logger.error("OpenSearch rejected request", operation=operation, error=str(e))
            raise StoreQueryError(f"OpenSearch {operation} failed: {e}") from e
