"""MCP tool for fetching and indexing remote repositories."""

import logging

from ..indexer.pipeline import RepositoryIndexer
from ..repos.fetcher import GitRepositoryFetcher

logger = logging.getLogger(__name__)


class IndexingTool:
    """Tool for cloning a repository and indexing its code files."""

    def __init__(self, fetcher: GitRepositoryFetcher, indexer: RepositoryIndexer):
        """Initialize indexing tool.

        Args:
            fetcher: Repository fetcher
            indexer: Sequential repository indexer
        """
        self.fetcher = fetcher
        self.indexer = indexer

    async def index_repository(self, repo_url: str) -> dict:
        """Clone (or update) a repository and index it.

        Args:
            repo_url: Remote repository URL

        Returns:
            Dictionary with indexing results
        """
        if not repo_url:
            return {"success": False, "error": "Repository URL is required"}

        logger.info(f"Starting index for: {repo_url}")

        try:
            repo = await self.fetcher.fetch(repo_url)
            logger.info(f"Cloned to {repo.local_path}")

            files = self.fetcher.list_code_files(repo.repo_name)
            logger.info(f"Found {len(files)} code files")

            result = await self.indexer.index_files(repo.local_path, repo.repo_name, files)

            return {
                "success": True,
                "message": "Repository indexed successfully",
                "repo": repo.repo_name,
                "stats": {
                    "files": result.total_files,
                    "indexed_files": result.indexed_files,
                    "chunks": result.total_chunks,
                    "embedded_chunks": result.embedded_chunks,
                    "failed_chunks": len(result.failed_chunks),
                },
            }

        except Exception as e:
            logger.error(f"Indexing failed for {repo_url}: {e}", exc_info=True)
            return {"success": False, "error": f"Indexing failed: {e}"}
