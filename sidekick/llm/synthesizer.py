"""Retrieval-augmented answer generation and diagram prompting."""

import logging
from typing import Optional, Sequence

from .diagram_sanitizer import CLASS, DIAGRAM_CATEGORIES, FLOWCHART, SEQUENCE
from .generation import OllamaGenerator
from ..indexer.models import SearchResult

logger = logging.getLogger(__name__)

DOCUMENTATION_SENTINEL = "DOCUMENTATION MODE"
ERROR_ANALYSIS_SENTINEL = "ANALYZE ERROR MODE"
NO_CONTEXT_MARKER = "[NO RELEVANT CODE CONTEXT FOUND IN THE REPOSITORY]"

# Large files are cut before being sent to the model for a diagram
MAX_DIAGRAM_SOURCE_CHARS = 12000

_DIAGRAM_INSTRUCTIONS = {
    FLOWCHART: (
        "a Mermaid flowchart of the control flow. Start with 'flowchart TD'. "
        "Use only '-->' arrows and put every node label in double quotes"
    ),
    SEQUENCE: (
        "a Mermaid sequence diagram of the interactions between the components. "
        "Start with 'sequenceDiagram'"
    ),
    CLASS: (
        "a Mermaid class diagram of the classes, their members and relationships. "
        "Start with 'classDiagram'"
    ),
}


def format_chunk(result: SearchResult) -> str:
    return (
        f"File: {result.filename}\n"
        f"Lines: {result.start_line}-{result.end_line}\n"
        f"Code:\n```\n{result.content}\n```"
    )


def build_context(results: Sequence[SearchResult]) -> str:
    """Concatenate retrieved chunks, or return the explicit no-context marker."""
    if not results:
        return NO_CONTEXT_MARKER
    return "\n\n".join(format_chunk(result) for result in results)


def is_documentation_mode(query: str) -> bool:
    return DOCUMENTATION_SENTINEL in query


def build_answer_prompt(
    query: str,
    results: Sequence[SearchResult],
    repo_name: Optional[str] = None,
) -> str:
    """Build the generation prompt for a question about a repository.

    Standard mode restricts the model to the retrieved context. Documentation
    mode lets it fill sparse context with general technical documentation.
    """
    context = build_context(results)
    repo_line = f"Repository: {repo_name}\n" if repo_name else ""

    if is_documentation_mode(query):
        instructions = (
            "You are an expert technical writer named Sidekick documenting a code repository.\n"
            "Use the provided code context as the primary source of truth.\n"
            "If the context is sparse or missing, still produce your best-guess general "
            "technical documentation for a project of this kind, and say which parts are "
            "inferred rather than taken from the code.\n"
            "Format the documentation as Markdown."
        )
    else:
        instructions = (
            "You are an expert AI coding assistant named Sidekick.\n"
            "Answer the user's question based ONLY on the provided code context.\n"
            "If the answer is not in the context, say so. Do not invent files, "
            "functions or behavior that the context does not show.\n"
            "Provide code examples from the context where relevant."
        )

    return f"{instructions}\n\n{repo_line}Context:\n{context}\n\nQuestion: {query}\n"


def build_error_query(trace: str) -> str:
    """Wrap a stack trace or log excerpt in the error-analysis request."""
    return (
        f"SYSTEM: {ERROR_ANALYSIS_SENTINEL}. EXPLAIN THE FOLLOWING STACK TRACE/LOG "
        f"AND LINK TO FILES IN THE REPO: \n\n {trace}"
    )


def build_diagram_prompt(content: str, category: str, filename: Optional[str] = None) -> str:
    """Build the prompt asking for raw Mermaid markup describing one file."""
    if category not in DIAGRAM_CATEGORIES:
        raise ValueError(
            f"Unknown diagram category '{category}', expected one of {', '.join(DIAGRAM_CATEGORIES)}"
        )

    if len(content) > MAX_DIAGRAM_SOURCE_CHARS:
        logger.warning(
            f"Truncating diagram source from {len(content)} to {MAX_DIAGRAM_SOURCE_CHARS} chars"
        )
        content = content[:MAX_DIAGRAM_SOURCE_CHARS]

    file_line = f"File: {filename}\n" if filename else ""
    return (
        f"Generate {_DIAGRAM_INSTRUCTIONS[category]}.\n"
        "Return ONLY the Mermaid code. No Markdown fences, no explanation, no notes.\n"
        "Keep the diagram readable: at most 25 nodes, short labels.\n\n"
        f"{file_line}Code:\n{content}\n"
    )


class AnswerSynthesizer:
    """Generate grounded answers and diagram markup with a generation model."""

    def __init__(self, generator: OllamaGenerator):
        """Initialize answer synthesizer.

        Args:
            generator: Generation model client
        """
        self.generator = generator

    async def synthesize(
        self,
        query: str,
        results: Sequence[SearchResult],
        repo_name: Optional[str] = None,
    ) -> str:
        """Answer a question from retrieved chunks.

        An empty retrieval still produces an answer: the prompt carries the
        no-context marker instead of an empty context block.

        Args:
            query: User question
            results: Retrieved chunks, best first
            repo_name: Repository the question is scoped to

        Returns:
            Answer text
        """
        mode = "documentation" if is_documentation_mode(query) else "standard"
        logger.info(f"Synthesizing {mode} answer from {len(results)} chunks")

        prompt = build_answer_prompt(query, results, repo_name)
        return await self.generator.generate(prompt)

    async def generate_diagram(
        self,
        content: str,
        category: str = FLOWCHART,
        filename: Optional[str] = None,
    ) -> str:
        """Ask the model for raw Mermaid markup describing a file.

        The returned text still has to go through the diagram sanitizer.
        """
        prompt = build_diagram_prompt(content, category, filename)
        logger.info(f"Generating {category} diagram" + (f" for {filename}" if filename else ""))
        return await self.generator.generate(prompt)
