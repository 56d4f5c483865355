#!/usr/bin/env python3
"""Standalone indexer script - indexes one repository and exits.

Set REPO_URL to clone/update a remote repository into REPO_STORAGE_PATH, or
WORKSPACE_PATH (and optionally REPO_NAME) to index a local checkout as is.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from sidekick.config import configure_logging, get_env_config
from sidekick.indexer.chunker import LineChunker
from sidekick.indexer.embeddings import OllamaEmbeddings
from sidekick.indexer.languages import CODE_EXTENSIONS, find_files
from sidekick.indexer.pipeline import RepositoryIndexer
from sidekick.repos.fetcher import GitRepositoryFetcher
from sidekick.retry import RetryPolicy
from sidekick.vector_db.qdrant_client import CodeVectorDB

logger = logging.getLogger(__name__)


async def main() -> int:
    """Main indexer function."""
    config = get_env_config()
    configure_logging(config.log_level, config.log_file)

    repo_url = os.getenv("REPO_URL")
    workspace_path = os.getenv("WORKSPACE_PATH")

    if not repo_url and not workspace_path:
        logger.error("Set REPO_URL or WORKSPACE_PATH")
        return 1

    try:
        logger.info(f"Qdrant: {config.qdrant_host}:{config.qdrant_port}")
        logger.info(f"Ollama: {config.ollama_host}")

        vector_db = CodeVectorDB.connect(
            host=config.qdrant_host,
            port=config.qdrant_port,
            collection_name=config.qdrant_collection,
            vector_size=config.vector_size,
            batch_size=config.upsert_batch_size,
        )

        async with OllamaEmbeddings(
            host=config.ollama_host,
            model=config.embedding_model,
            retry_policy=RetryPolicy(config.retry_max, config.retry_initial_seconds),
        ) as embeddings:
            if not await embeddings.health_check():
                logger.error("Ollama health check failed!")
                return 1

            if repo_url:
                fetcher = GitRepositoryFetcher(config.repo_storage_path).initialize()
                repo = await fetcher.fetch(repo_url)
                repo_root, repo_name = repo.local_path, repo.repo_name
            else:
                repo_root = Path(workspace_path)
                repo_name = os.getenv("REPO_NAME") or repo_root.name
                if not repo_root.exists():
                    logger.error(f"Repository path does not exist: {repo_root}")
                    return 1

            logger.info(f"Starting indexer for repository: {repo_name} ({repo_root})")

            files = find_files(repo_root, CODE_EXTENSIONS)
            if not files:
                logger.error("No supported files found in repository")
                return 1

            indexer = RepositoryIndexer(
                LineChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap),
                embeddings,
                vector_db,
                pacing_delay=config.embed_pacing_seconds,
                max_files=config.max_index_files,
            )
            result = await indexer.index_files(repo_root, repo_name, files)

        logger.info("=" * 80)
        logger.info("Indexing Complete!")
        logger.info(f"Repository: {result.repo_name}")
        logger.info(f"Total files: {result.total_files}")
        logger.info(f"Indexed files: {result.indexed_files}")
        logger.info(f"Total chunks: {result.total_chunks}")
        logger.info(f"Embedded chunks: {result.embedded_chunks}")
        logger.info(f"Failed chunks: {len(result.failed_chunks)}")
        logger.info("=" * 80)
        return 0

    except Exception as e:
        logger.error(f"Fatal error during indexing: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
