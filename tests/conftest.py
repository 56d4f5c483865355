from pathlib import Path
from typing import Dict, List, Optional

import pytest
from qdrant_client import QdrantClient

from sidekick.indexer.models import EmbeddingVector
from sidekick.retry import RetryPolicy
from sidekick.vector_db.qdrant_client import CodeVectorDB


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def numbered_lines(count: int) -> str:
    return "\n".join(f"line {i}" for i in range(1, count + 1))


def make_vector(chunk_id: str, values: List[float], repo_name: str, filename: str = "a.py") -> EmbeddingVector:
    return EmbeddingVector(
        id=chunk_id,
        values=values,
        metadata={
            "repoName": repo_name,
            "filename": filename,
            "startLine": 1,
            "endLine": 10,
            "content": f"content of {chunk_id}",
        },
    )


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeEmbeddings:
    """Deterministic embeddings keyed by text; listed texts fail."""

    def __init__(self, failing: Optional[Dict[str, Exception]] = None, dimension: int = 4):
        self.failing = failing or {}
        self.dimension = dimension
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.failing:
            raise self.failing[text]
        return [1.0] + [float(len(text) % 7 + 1)] * (self.dimension - 1)


class FakeGenerator:
    def __init__(self, reply: str = "an answer"):
        self.reply = reply
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fast_retry(sleep_recorder) -> RetryPolicy:
    return RetryPolicy(max_retries=3, initial_delay=2.0, sleep=sleep_recorder)


@pytest.fixture
def vector_db() -> CodeVectorDB:
    db = CodeVectorDB(QdrantClient(":memory:"), collection_name="test-chunks", vector_size=4, batch_size=2)
    db.ensure_collection()
    return db
