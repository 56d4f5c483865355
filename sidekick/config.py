"""Environment-driven configuration and logging setup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class SidekickConfig:
    """Runtime settings, read from the environment by :func:`get_env_config`."""

    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_collection: str = "sidekick-code-index"
    vector_size: int = 768
    ollama_host: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    generation_model: str = "llama3.1"
    repo_storage_path: Path = Path("repos")
    chunk_size: int = 50
    chunk_overlap: int = 10
    upsert_batch_size: int = 50
    embed_pacing_seconds: float = 0.1
    max_index_files: Optional[int] = 50
    retry_max: int = 3
    retry_initial_seconds: float = 2.0
    complexity_top_n: int = 20
    search_top_k: int = 5
    log_level: str = "INFO"
    log_file: Optional[str] = None


def get_env_config() -> SidekickConfig:
    """Get configuration from environment variables."""
    max_index_files = int(os.getenv("MAX_INDEX_FILES", "50"))

    return SidekickConfig(
        qdrant_host=os.getenv("QDRANT_HOST", "localhost"),
        qdrant_port=int(os.getenv("QDRANT_PORT", "6333")),
        qdrant_collection=os.getenv("QDRANT_COLLECTION", "sidekick-code-index"),
        vector_size=int(os.getenv("VECTOR_SIZE", "768")),
        ollama_host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "nomic-embed-text"),
        generation_model=os.getenv("GENERATION_MODEL", "llama3.1"),
        repo_storage_path=Path(os.getenv("REPO_STORAGE_PATH", "repos")),
        chunk_size=int(os.getenv("CHUNK_SIZE", "50")),
        chunk_overlap=int(os.getenv("CHUNK_OVERLAP", "10")),
        upsert_batch_size=int(os.getenv("UPSERT_BATCH_SIZE", "50")),
        embed_pacing_seconds=int(os.getenv("EMBED_PACING_MS", "100")) / 1000,
        # 0 or less disables the limit
        max_index_files=max_index_files if max_index_files > 0 else None,
        retry_max=int(os.getenv("RETRY_MAX", "3")),
        retry_initial_seconds=int(os.getenv("RETRY_INITIAL_MS", "2000")) / 1000,
        complexity_top_n=int(os.getenv("COMPLEXITY_TOP_N", "20")),
        search_top_k=int(os.getenv("SEARCH_TOP_K", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
    )


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Attach console (and optionally file) handlers to the root logger."""
    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
