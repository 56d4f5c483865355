"""FastMCP server for asking questions about code repositories."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import SidekickConfig, configure_logging, get_env_config
from .indexer.chunker import LineChunker
from .indexer.embeddings import OllamaEmbeddings
from .indexer.pipeline import RepositoryIndexer
from .llm.generation import OllamaGenerator
from .llm.synthesizer import AnswerSynthesizer
from .repos.fetcher import GitRepositoryFetcher
from .retry import RetryPolicy
from .tools.index_tool import IndexingTool
from .tools.insight_tool import InsightTool
from .tools.search_tool import SearchTool
from .vector_db.qdrant_client import CodeVectorDB

logger = logging.getLogger(__name__)

mcp = FastMCP("code-sidekick")


@dataclass
class SidekickServices:
    """Every component the tools need, built once by :func:`initialize_components`."""

    config: SidekickConfig
    vector_db: CodeVectorDB
    embeddings: OllamaEmbeddings
    generator: OllamaGenerator
    fetcher: GitRepositoryFetcher
    index_tool: IndexingTool
    search_tool: SearchTool
    insight_tool: InsightTool


services: Optional[SidekickServices] = None


async def initialize_components(config: SidekickConfig) -> SidekickServices:
    """Connect to Qdrant and Ollama, prepare repository storage, build the tools."""
    logger.info("Initializing Code Sidekick...")

    try:
        logger.info(f"Connecting to Qdrant at {config.qdrant_host}:{config.qdrant_port}")
        vector_db = CodeVectorDB.connect(
            host=config.qdrant_host,
            port=config.qdrant_port,
            collection_name=config.qdrant_collection,
            vector_size=config.vector_size,
            batch_size=config.upsert_batch_size,
        )

        retry_policy = RetryPolicy(
            max_retries=config.retry_max,
            initial_delay=config.retry_initial_seconds,
        )

        logger.info(f"Connecting to Ollama at {config.ollama_host}")
        embeddings = OllamaEmbeddings(
            host=config.ollama_host,
            model=config.embedding_model,
            retry_policy=retry_policy,
        )
        generator = OllamaGenerator(
            host=config.ollama_host,
            model=config.generation_model,
            retry_policy=retry_policy,
        )

        if not await embeddings.health_check():
            logger.warning(
                f"Ollama health check failed. Make sure Ollama is running and "
                f"'{config.embedding_model}' model is available."
            )
        # The server runs tools in its own event loop
        await embeddings.close()

        fetcher = GitRepositoryFetcher(config.repo_storage_path).initialize()
        chunker = LineChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap)
        indexer = RepositoryIndexer(
            chunker,
            embeddings,
            vector_db,
            pacing_delay=config.embed_pacing_seconds,
            max_files=config.max_index_files,
        )
        synthesizer = AnswerSynthesizer(generator)

        ready = SidekickServices(
            config=config,
            vector_db=vector_db,
            embeddings=embeddings,
            generator=generator,
            fetcher=fetcher,
            index_tool=IndexingTool(fetcher, indexer),
            search_tool=SearchTool(vector_db, embeddings, synthesizer, top_k=config.search_top_k),
            insight_tool=InsightTool(
                fetcher, vector_db, synthesizer, complexity_top_n=config.complexity_top_n
            ),
        )

        logger.info("All components initialized successfully!")
        return ready

    except Exception as e:
        logger.error(f"Error during initialization: {e}")
        raise


NOT_INITIALIZED = {"success": False, "error": "Server not initialized"}


@mcp.tool()
async def index_repository(repo_url: str) -> dict:
    """Clone (or update) a remote repository and index its code for questions.

    Args:
        repo_url: Repository URL (e.g., "https://github.com/user/repo.git")

    Returns:
        Dictionary with the canonical repository name and indexing statistics
    """
    if not services:
        return NOT_INITIALIZED
    return await services.index_tool.index_repository(repo_url)


@mcp.tool()
async def ask_repository(query: str, repo_name: Optional[str] = None) -> dict:
    """Ask a natural-language question answered from the repository's code.

    Include "DOCUMENTATION MODE" in the query to get general documentation
    even when little code matches.

    Args:
        query: The question
        repo_name: Repository to ask about (all indexed repositories if omitted)

    Returns:
        Dictionary with the answer and its source chunks
    """
    if not services:
        return NOT_INITIALIZED
    return await services.search_tool.ask(query, repo_name)


@mcp.tool()
async def search_code(query: str, repo_name: Optional[str] = None, limit: int = 10) -> dict:
    """Semantic code search without answer generation.

    Args:
        query: Natural language search query
        repo_name: Repository scope (all repositories if omitted)
        limit: Maximum number of results

    Returns:
        Dictionary with ranked code chunks
    """
    if not services:
        return NOT_INITIALIZED
    return await services.search_tool.search_code(query, repo_name, limit)


@mcp.tool()
async def explain_error(trace: str, repo_name: Optional[str] = None) -> dict:
    """Explain a stack trace or log and link it to files in the repository.

    Args:
        trace: Stack trace or log excerpt
        repo_name: Repository the error comes from
    """
    if not services:
        return NOT_INITIALIZED
    return await services.search_tool.explain_error(trace, repo_name)


@mcp.tool()
def list_repository_files(repo_name: str) -> dict:
    """List the files of a fetched repository."""
    if not services:
        return NOT_INITIALIZED
    return services.insight_tool.list_files(repo_name)


@mcp.tool()
def get_file_content(repo_name: str, file_path: str) -> dict:
    """Read a file of a fetched repository.

    Args:
        repo_name: Repository name
        file_path: Path relative to the repository root
    """
    if not services:
        return NOT_INITIALIZED
    return services.insight_tool.file_content(repo_name, file_path)


@mcp.tool()
def get_dependency_graph(repo_name: str) -> dict:
    """Approximate import graph ({nodes, edges}) of a repository's JS/TS files."""
    if not services:
        return NOT_INITIALIZED
    return services.insight_tool.dependency_graph(repo_name)


@mcp.tool()
async def get_repository_analytics(repo_name: str) -> dict:
    """Language histogram, file sizes, complexity and commit activity of a repository."""
    if not services:
        return NOT_INITIALIZED
    return await services.insight_tool.analytics(repo_name)


@mcp.tool()
async def visualize_code(repo_name: str, file_path: str, diagram_type: str = "flowchart") -> dict:
    """Generate a renderable Mermaid diagram for a file.

    Args:
        repo_name: Repository name
        file_path: Path relative to the repository root
        diagram_type: "flowchart", "sequence" or "class"

    Returns:
        Dictionary with the Mermaid diagram text
    """
    if not services:
        return NOT_INITIALIZED
    return await services.insight_tool.visualize(repo_name, file_path, diagram_type)


@mcp.tool()
def delete_repository_vectors(repo_name: str) -> dict:
    """Remove every indexed vector of a repository."""
    if not services:
        return NOT_INITIALIZED
    return services.insight_tool.delete_repository(repo_name)


@mcp.tool()
def health_check() -> dict:
    """Check health status of the vector database."""
    if not services:
        return NOT_INITIALIZED

    try:
        return {
            "success": True,
            "components": {"server": True, "vector_db": services.vector_db.health_check()},
            "collection": services.vector_db.get_collection_stats(),
        }
    except Exception as e:
        logger.error(f"Error during health check: {e}")
        return {"success": False, "error": str(e)}


def main() -> None:
    global services

    config = get_env_config()
    configure_logging(config.log_level, config.log_file)

    logger.info("Starting Code Sidekick MCP Server...")
    services = asyncio.run(initialize_components(config))
    logger.info("Server ready!")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")


if __name__ == "__main__":
    main()
