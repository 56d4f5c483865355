"""MCP tools for semantic code search and grounded question answering."""

import logging
from typing import List, Optional

from ..indexer.embeddings import OllamaEmbeddings
from ..indexer.models import SearchResult
from ..llm.synthesizer import AnswerSynthesizer, build_error_query
from ..vector_db.qdrant_client import CodeVectorDB

logger = logging.getLogger(__name__)


class SearchTool:
    """Tool for semantic code search and retrieval-augmented answers."""

    def __init__(
        self,
        vector_db: CodeVectorDB,
        embeddings: OllamaEmbeddings,
        synthesizer: AnswerSynthesizer,
        top_k: int = 5,
    ):
        """Initialize search tool.

        Args:
            vector_db: Vector database client
            embeddings: Embeddings generator
            synthesizer: Answer synthesizer
            top_k: Default number of chunks retrieved per query
        """
        self.vector_db = vector_db
        self.embeddings = embeddings
        self.synthesizer = synthesizer
        self.top_k = top_k

    async def retrieve(
        self, query: str, repo_name: Optional[str] = None, limit: Optional[int] = None
    ) -> List[SearchResult]:
        """Embed a query and run a repository-scoped similarity search."""
        query_vector = await self.embeddings.embed(query)
        return self.vector_db.query(query_vector, top_k=limit or self.top_k, repo_name=repo_name)

    async def search_code(
        self, query: str, repo_name: Optional[str] = None, limit: Optional[int] = None
    ) -> dict:
        """Search for code using natural language queries.

        Args:
            query: Natural language search query
            repo_name: Repository scope (searches all repos if not specified)
            limit: Maximum number of results to return

        Returns:
            Dictionary with ranked results
        """
        try:
            logger.info(f"Searching for: {query}" + (f" in repo: {repo_name}" if repo_name else " (all repos)"))
            results = await self.retrieve(query, repo_name, limit)

            formatted_results = [
                {
                    "rank": i,
                    "score": round(result.score, 4),
                    "repo": result.metadata.get("repoName", "unknown"),
                    "file": result.filename,
                    "lines": f"{result.start_line}-{result.end_line}",
                    "code": result.content,
                }
                for i, result in enumerate(results, 1)
            ]

            return {
                "success": True,
                "query": query,
                "total_results": len(formatted_results),
                "results": formatted_results,
            }

        except Exception as e:
            logger.error(f"Error during search: {e}")
            return {"success": False, "error": str(e)}

    async def ask(
        self, query: str, repo_name: Optional[str] = None, limit: Optional[int] = None
    ) -> dict:
        """Answer a question about a repository from retrieved code.

        Args:
            query: User question (include "DOCUMENTATION MODE" for documentation output)
            repo_name: Repository scope (all repos if not specified)
            limit: Number of chunks to retrieve

        Returns:
            Dictionary with the answer and the chunks it was grounded on
        """
        if not query:
            return {"success": False, "error": "Query is required"}

        logger.info(f"Query: {query}, Repo: {repo_name or 'All'}")

        try:
            results = await self.retrieve(query, repo_name, limit)
            answer = await self.synthesizer.synthesize(query, results, repo_name)

            return {
                "success": True,
                "answer": answer,
                "sources": [result.to_source() for result in results],
            }

        except Exception as e:
            logger.error(f"Chat processing failed: {e}")
            return {"success": False, "error": f"Chat processing failed: {e}"}

    async def explain_error(self, trace: str, repo_name: Optional[str] = None) -> dict:
        """Explain a stack trace or log excerpt and point at the repository files involved."""
        if not trace:
            return {"success": False, "error": "A stack trace or log is required"}
        return await self.ask(build_error_query(trace), repo_name)
