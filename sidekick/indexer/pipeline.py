"""Sequential chunk -> embed -> store indexing of one repository."""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .chunker import LineChunker
from .embeddings import OllamaEmbeddings
from .models import EmbeddingVector
from ..vector_db.qdrant_client import CodeVectorDB

logger = logging.getLogger(__name__)


@dataclass
class IndexingResult:
    """Summary of one indexing run."""

    repo_name: str
    total_files: int = 0
    indexed_files: int = 0
    total_chunks: int = 0
    embedded_chunks: int = 0
    failed_chunks: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RepositoryIndexer:
    """Index a repository one file and one chunk at a time.

    Each chunk costs one blocking embedding call followed by a fixed pacing
    delay. A chunk whose embedding fails is logged and skipped so the rest of
    the repository still gets indexed. Vectors left behind by chunks that no
    longer exist after a re-index are not removed.
    """

    def __init__(
        self,
        chunker: LineChunker,
        embeddings: OllamaEmbeddings,
        vector_db: CodeVectorDB,
        pacing_delay: float = 0.1,
        max_files: Optional[int] = 50,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """Initialize repository indexer.

        Args:
            chunker: Line chunker
            embeddings: Embedding client
            vector_db: Vector store adapter
            pacing_delay: Seconds to wait after every embedding call
            max_files: Only the first N files are indexed (None for no limit)
            sleep: Awaitable sleep function (defaults to asyncio.sleep)
        """
        self.chunker = chunker
        self.embeddings = embeddings
        self.vector_db = vector_db
        self.pacing_delay = pacing_delay
        self.max_files = max_files
        self._sleep = sleep or asyncio.sleep

    async def index_files(
        self,
        repo_root: Path,
        repo_name: str,
        files: Sequence[Path],
    ) -> IndexingResult:
        """Chunk, embed and store the given files of a repository.

        Args:
            repo_root: Root directory of the clone
            repo_name: Canonical repository name stored with every vector
            files: Absolute paths of the files to index

        Returns:
            Indexing summary
        """
        result = IndexingResult(repo_name=repo_name, total_files=len(files))
        selected = list(files) if self.max_files is None else list(files)[: self.max_files]

        if len(selected) < len(files):
            logger.info(f"Indexing the first {len(selected)} of {len(files)} files")

        vectors: List[EmbeddingVector] = []

        for idx, file_path in enumerate(selected, 1):
            logger.info(f"[{idx}/{len(selected)}] Processing {file_path}")

            try:
                chunks = self.chunker.chunk_file(file_path, repo_root, repo_name)
            except OSError as e:
                logger.error(f"Error reading {file_path}: {e}")
                result.failed_files.append(str(file_path))
                continue

            for chunk in chunks:
                try:
                    values = await self.embeddings.embed(chunk.content)
                    vectors.append(
                        EmbeddingVector(id=chunk.id, values=values, metadata=chunk.metadata)
                    )
                    await self._sleep(self.pacing_delay)
                except Exception as e:
                    logger.error(f"Error embedding chunk {chunk.id}: {e}")
                    result.failed_chunks.append(chunk.id)

            result.indexed_files += 1
            result.total_chunks += len(chunks)

        if vectors:
            self.vector_db.upsert(vectors)
        result.embedded_chunks = len(vectors)

        logger.info(
            f"Indexed {repo_name}: {result.total_chunks} chunks from {result.indexed_files} files, "
            f"{len(result.failed_chunks)} chunks failed"
        )
        return result
