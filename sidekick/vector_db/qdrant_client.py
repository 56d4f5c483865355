"""Qdrant vector database client wrapper for code chunk embeddings."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import blake3
from qdrant_client import QdrantClient
from qdrant_client.http import models
from qdrant_client.http.models import Distance, PointStruct, VectorParams

from ..indexer.models import EmbeddingVector, SearchResult

logger = logging.getLogger(__name__)

REPO_NAME_KEY = "repoName"
CHUNK_ID_KEY = "chunkId"


def hex_to_uuid(hex_str: str) -> str:
    """Convert a hexadecimal string to a UUID format.

    Args:
        hex_str: Hexadecimal string (up to 32 characters)

    Returns:
        UUID string
    """
    hex_str = hex_str.ljust(32, "0")
    return f"{hex_str[0:8]}-{hex_str[8:12]}-{hex_str[12:16]}-{hex_str[16:20]}-{hex_str[20:32]}"


def point_id_for(chunk_id: str) -> str:
    """Deterministic Qdrant point id for a chunk id.

    Qdrant only accepts UUIDs or integers as ids, so the chunk id is hashed.
    The same chunk id always maps to the same point, which makes re-indexing
    an overwrite.
    """
    return hex_to_uuid(blake3.blake3(chunk_id.encode()).hexdigest()[:32])


def repo_name_variants(repo_name: str) -> List[str]:
    """The stored casings a repository scope matches: as given and lower-cased."""
    variants = [repo_name]
    if repo_name.lower() != repo_name:
        variants.append(repo_name.lower())
    return variants


def repo_filter(repo_name: str) -> models.Filter:
    """Filter matching records whose repoName is either casing of ``repo_name``."""
    return models.Filter(
        must=[
            models.FieldCondition(
                key=REPO_NAME_KEY,
                match=models.MatchAny(any=repo_name_variants(repo_name)),
            )
        ]
    )


class CodeVectorDB:
    """Batched upsert, scoped similarity search and scoped delete over Qdrant."""

    def __init__(
        self,
        client: QdrantClient,
        collection_name: str = "sidekick-code-index",
        vector_size: int = 768,  # Default for nomic-embed-text
        batch_size: int = 50,
    ):
        """Initialize the adapter around an existing Qdrant client.

        Args:
            client: Qdrant client (remote, or ``QdrantClient(":memory:")``)
            collection_name: Name of the collection to use
            vector_size: Dimension of embedding vectors
            batch_size: Maximum number of points per upsert request
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        self.client = client
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.batch_size = batch_size

    @classmethod
    def connect(cls, host: str = "localhost", port: int = 6333, **kwargs: Any) -> "CodeVectorDB":
        """Connect to a Qdrant server and make sure the collection exists."""
        vector_db = cls(QdrantClient(host=host, port=port), **kwargs)
        vector_db.ensure_collection()
        return vector_db

    def ensure_collection(self) -> None:
        """Create collection if it doesn't exist."""
        try:
            collections = self.client.get_collections().collections
            collection_names = [col.name for col in collections]

            if self.collection_name not in collection_names:
                logger.info(f"Creating collection: {self.collection_name}")
                self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=VectorParams(
                        size=self.vector_size,
                        distance=Distance.COSINE,
                    ),
                )
                logger.info(f"Collection {self.collection_name} created successfully")
            else:
                logger.info(f"Collection {self.collection_name} already exists")
        except Exception as e:
            logger.error(f"Error ensuring collection: {e}")
            raise

    def _to_point(self, vector: EmbeddingVector) -> PointStruct:
        payload = dict(vector.metadata)
        payload[CHUNK_ID_KEY] = vector.id
        return PointStruct(id=point_id_for(vector.id), vector=vector.values, payload=payload)

    def upsert(self, vectors: Sequence[EmbeddingVector]) -> int:
        """Insert or overwrite vectors in sequential batches.

        A failing batch aborts the remaining batches; batches already written
        stay written.

        Args:
            vectors: Embeddings with their chunk metadata

        Returns:
            Number of points upserted
        """
        total = 0
        batch_count = (len(vectors) + self.batch_size - 1) // self.batch_size

        for batch_number, start in enumerate(range(0, len(vectors), self.batch_size), 1):
            batch = vectors[start : start + self.batch_size]
            points = [self._to_point(vector) for vector in batch]

            try:
                self.client.upsert(collection_name=self.collection_name, points=points)
            except Exception as e:
                logger.error(
                    f"Error upserting batch {batch_number}/{batch_count} "
                    f"({len(points)} points), aborting remaining batches: {e}"
                )
                raise

            total += len(points)
            logger.debug(f"Upserted batch {batch_number}/{batch_count} ({len(points)} points)")

        logger.info(f"Upserted {total} vectors to Qdrant in {batch_count} batches")
        return total

    def query(
        self,
        vector: List[float],
        top_k: int = 5,
        repo_name: Optional[str] = None,
    ) -> List[SearchResult]:
        """Nearest-neighbour search, optionally scoped to one repository.

        Args:
            vector: Query embedding
            top_k: Maximum number of results to return
            repo_name: Repository scope; matches the given casing or its lower-case form

        Returns:
            Matches ranked by descending score
        """
        query_filter = repo_filter(repo_name) if repo_name else None

        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                query_filter=query_filter,
                limit=top_k,
                with_payload=True,
            )
        except Exception as e:
            logger.error(f"Error searching: {e}")
            raise

        results = []
        for point in response.points:
            metadata = {k: v for k, v in (point.payload or {}).items() if k != CHUNK_ID_KEY}
            results.append(SearchResult(metadata=metadata, score=point.score))

        logger.info(f"Found {len(results)} results" + (f" in repo {repo_name}" if repo_name else ""))
        return results

    def delete_by_repo(self, repo_name: str) -> bool:
        """Delete every vector of a repository.

        Failures are logged and not raised, so a vector store outage never
        blocks deleting the repository's local files.

        Returns:
            True if the delete request succeeded
        """
        try:
            logger.info(f"Purging vectors for repo: {repo_name}")
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(filter=repo_filter(repo_name)),
            )
            logger.info(f"Purge complete for: {repo_name}")
            return True
        except Exception as e:
            logger.error(f"Purge failed for {repo_name}: {e}")
            return False

    def get_collection_stats(self) -> Dict[str, Any]:
        """Get statistics about the collection."""
        try:
            info = self.client.get_collection(collection_name=self.collection_name)
            return {
                "total_points": info.points_count,
                "indexed_vectors_count": info.indexed_vectors_count,
                "status": str(info.status),
            }
        except Exception as e:
            logger.error(f"Error getting collection stats: {e}")
            raise

    def health_check(self) -> bool:
        """Check if Qdrant is healthy and accessible."""
        try:
            self.client.get_collections()
            return True
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False
