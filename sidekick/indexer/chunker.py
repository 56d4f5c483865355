"""Sliding-window line chunking for source files."""

import logging
import re
from pathlib import Path
from typing import List

from .languages import relative_posix
from .models import Chunk

logger = logging.getLogger(__name__)

# Vector store keys may only contain these characters
_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def make_chunk_id(repo_name: str, relative_path: str, start_line: int, end_line: int) -> str:
    """Build the deterministic, identifier-safe id of a chunk.

    Args:
        repo_name: Canonical repository name
        relative_path: File path relative to the repository root
        start_line: 1-based first line of the chunk
        end_line: 1-based last line of the chunk (inclusive)

    Returns:
        ``repo::path::start-end`` with every unsafe character replaced by ``_``
    """
    raw_id = f"{repo_name}::{relative_path}::{start_line}-{end_line}"
    return _UNSAFE_ID_CHARS.sub("_", raw_id)


class LineChunker:
    """Split files into overlapping windows of lines."""

    def __init__(self, chunk_size: int = 50, overlap: int = 10, min_lines: int = 5):
        """Initialize line chunker.

        Args:
            chunk_size: Number of lines per window
            overlap: Number of lines shared by consecutive windows
            min_lines: Windows with fewer lines than this are skipped
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= overlap < chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_lines = min_lines

    @property
    def stride(self) -> int:
        return self.chunk_size - self.overlap

    def chunk_text(self, content: str, relative_path: str, repo_name: str) -> List[Chunk]:
        """Chunk the full text of one file.

        Windows start every ``stride`` lines. The loop stops as soon as a
        window reaches the end of the file, so the last chunk always ends on
        the last line and no duplicate trailing chunk is produced.

        Args:
            content: Full file text
            relative_path: File path relative to the repository root
            repo_name: Canonical repository name

        Returns:
            Chunks in file order
        """
        lines = content.split("\n")
        chunks = []

        for start in range(0, len(lines), self.stride):
            window = lines[start : start + self.chunk_size]

            if len(window) < self.min_lines:
                continue

            chunk_content = "\n".join(window)
            start_line = start + 1
            end_line = start + len(window)

            chunks.append(
                Chunk(
                    id=make_chunk_id(repo_name, relative_path, start_line, end_line),
                    content=chunk_content,
                    metadata={
                        "repoName": repo_name,
                        "filename": relative_path,
                        "startLine": start_line,
                        "endLine": end_line,
                        "content": chunk_content,
                    },
                )
            )

            if start + self.chunk_size >= len(lines):
                break

        return chunks

    def chunk_file(self, file_path: Path, repo_root: Path, repo_name: str) -> List[Chunk]:
        """Read a file from a repository clone and chunk it.

        Args:
            file_path: Absolute path of the file
            repo_root: Root directory of the clone
            repo_name: Canonical repository name

        Returns:
            Chunks in file order
        """
        relative_path = relative_posix(file_path, repo_root)
        content = Path(file_path).read_text(encoding="utf-8", errors="replace")
        chunks = self.chunk_text(content, relative_path, repo_name)
        logger.debug(f"Chunked {relative_path} into {len(chunks)} chunks")
        return chunks
