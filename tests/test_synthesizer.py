import pytest

from conftest import FakeGenerator
from sidekick.indexer.models import SearchResult
from sidekick.llm.synthesizer import (
    MAX_DIAGRAM_SOURCE_CHARS,
    NO_CONTEXT_MARKER,
    AnswerSynthesizer,
    build_answer_prompt,
    build_context,
    build_diagram_prompt,
    build_error_query,
    is_documentation_mode,
)


def result(filename="src/auth.js", start=10, end=30, code="function login() {}", score=0.9):
    return SearchResult(
        metadata={"repoName": "acme_web", "filename": filename, "startLine": start, "endLine": end, "content": code},
        score=score,
    )


def test_context_formats_each_chunk():
    context = build_context([result(), result(filename="src/db.js", start=1, end=5, code="connect()")])

    assert context == (
        "File: src/auth.js\nLines: 10-30\nCode:\n```\nfunction login() {}\n```"
        "\n\n"
        "File: src/db.js\nLines: 1-5\nCode:\n```\nconnect()\n```"
    )


def test_empty_retrieval_uses_no_context_marker():
    prompt = build_answer_prompt("Where is login handled?", [])

    assert NO_CONTEXT_MARKER in prompt
    assert "ONLY on the provided code context" in prompt
    assert prompt.rstrip().endswith("Question: Where is login handled?")


def test_standard_prompt_names_repository():
    prompt = build_answer_prompt("How does login work?", [result()], repo_name="acme_web")

    assert "Repository: acme_web" in prompt
    assert "function login() {}" in prompt


def test_documentation_mode_allows_general_documentation():
    query = "SYSTEM: DOCUMENTATION MODE. Write a README for this repository."

    assert is_documentation_mode(query)
    prompt = build_answer_prompt(query, [])
    assert "best-guess general technical documentation" in prompt
    assert "ONLY on the provided code context" not in prompt


def test_error_query_wraps_trace():
    query = build_error_query("TypeError: x is undefined\n    at login (src/auth.js:12)")

    assert query.startswith("SYSTEM: ANALYZE ERROR MODE.")
    assert query.endswith("TypeError: x is undefined\n    at login (src/auth.js:12)")
    assert not is_documentation_mode(query)


def test_diagram_prompt_rejects_unknown_category():
    with pytest.raises(ValueError):
        build_diagram_prompt("code", "pie")


def test_diagram_prompt_truncates_large_files():
    prompt = build_diagram_prompt("x" * (MAX_DIAGRAM_SOURCE_CHARS + 500), "flowchart", "big.js")

    assert "x" * MAX_DIAGRAM_SOURCE_CHARS in prompt
    assert "x" * (MAX_DIAGRAM_SOURCE_CHARS + 1) not in prompt
    assert "File: big.js" in prompt


@pytest.mark.asyncio
async def test_synthesize_sends_prompt_to_generator():
    generator = FakeGenerator("Login is handled in src/auth.js.")
    synthesizer = AnswerSynthesizer(generator)

    answer = await synthesizer.synthesize("Where is login handled?", [result()], "acme_web")

    assert answer == "Login is handled in src/auth.js."
    assert len(generator.prompts) == 1
    assert "File: src/auth.js" in generator.prompts[0]


@pytest.mark.asyncio
async def test_generate_diagram_returns_raw_model_text():
    generator = FakeGenerator("```mermaid\nsequenceDiagram\nA->>B: hi\n```")
    synthesizer = AnswerSynthesizer(generator)

    raw = await synthesizer.generate_diagram("class A {}", "sequence", "a.js")

    assert raw.startswith("```mermaid")
    assert "sequenceDiagram" in generator.prompts[0]
