"""MCP tools for repository browsing, analytics, graphs and diagrams."""

import logging

from ..analysis.analytics import get_repository_analytics
from ..analysis.complexity import DEFAULT_TOP_N
from ..analysis.dependency_graph import build_dependency_graph
from ..errors import NotFoundError
from ..llm.diagram_sanitizer import DIAGRAM_CATEGORIES, sanitize
from ..llm.synthesizer import AnswerSynthesizer
from ..repos.fetcher import GitRepositoryFetcher
from ..vector_db.qdrant_client import CodeVectorDB

logger = logging.getLogger(__name__)


class InsightTool:
    """Tool exposing the analytics views of an indexed repository."""

    def __init__(
        self,
        fetcher: GitRepositoryFetcher,
        vector_db: CodeVectorDB,
        synthesizer: AnswerSynthesizer,
        complexity_top_n: int = DEFAULT_TOP_N,
    ):
        self.fetcher = fetcher
        self.vector_db = vector_db
        self.synthesizer = synthesizer
        self.complexity_top_n = complexity_top_n

    def list_files(self, repo_name: str) -> dict:
        try:
            files = self.fetcher.list_repo_files(repo_name)
            return {"success": True, "repo": repo_name, "files": files}
        except NotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Error listing files of {repo_name}: {e}")
            return {"success": False, "error": str(e)}

    def file_content(self, repo_name: str, file_path: str) -> dict:
        try:
            content = self.fetcher.read_file(repo_name, file_path)
            return {"success": True, "path": file_path, "content": content}
        except NotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Error reading {file_path} of {repo_name}: {e}")
            return {"success": False, "error": str(e)}

    def dependency_graph(self, repo_name: str) -> dict:
        """Import graph of the repository's JavaScript/TypeScript files."""
        try:
            graph = build_dependency_graph(self.fetcher.resolve(repo_name))
            return {"success": True, **graph.to_dict()}
        except NotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Error building dependency graph for {repo_name}: {e}")
            return {"success": False, "error": str(e)}

    async def analytics(self, repo_name: str) -> dict:
        """Language, size, complexity and commit activity report."""
        try:
            report = await get_repository_analytics(
                self.fetcher.resolve(repo_name), complexity_top_n=self.complexity_top_n
            )
            return {"success": True, **report.to_dict()}
        except NotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Error computing analytics for {repo_name}: {e}")
            return {"success": False, "error": str(e)}

    async def visualize(self, repo_name: str, file_path: str, category: str = "flowchart") -> dict:
        """Generate a renderable Mermaid diagram of one file.

        Args:
            repo_name: Repository name
            file_path: File path relative to the repository root
            category: flowchart, sequence or class

        Returns:
            Dictionary with the sanitized diagram text
        """
        if category not in DIAGRAM_CATEGORIES:
            return {
                "success": False,
                "error": f"Unknown diagram type '{category}', expected one of {', '.join(DIAGRAM_CATEGORIES)}",
            }

        try:
            content = self.fetcher.read_file(repo_name, file_path)
            raw_diagram = await self.synthesizer.generate_diagram(content, category, file_path)
            return {"success": True, "type": category, "diagram": sanitize(raw_diagram, category)}
        except NotFoundError as e:
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Visualization failed for {file_path}: {e}")
            return {"success": False, "error": f"Visualization failed: {e}"}

    def delete_repository(self, repo_name: str) -> dict:
        """Purge a repository's vectors.

        A vector store failure is reported but never turned into an error, so
        the caller can always go on to delete the local clone.
        """
        purged = self.vector_db.delete_by_repo(repo_name)
        return {"success": True, "repo": repo_name, "vectors_purged": purged}
