"""Normalize model-generated Mermaid text into something the renderer accepts.

Models wrap diagrams in Markdown fences, prefix them with prose, use the
legacy ``graph`` keyword, mix arrow styles and append explanations. The
passes below clean that up one concern at a time. Each pass is a total
function over text and expects the output of the pass before it, so
:data:`PIPELINE` must run in order.
"""

import logging
import re
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

FLOWCHART = "flowchart"
SEQUENCE = "sequence"
CLASS = "class"
DIAGRAM_CATEGORIES = (FLOWCHART, SEQUENCE, CLASS)

DIRECTIONS = ("TB", "TD", "BT", "RL", "LR")
CANONICAL_ARROW = "-->"

_FENCED_BLOCK = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[\w-]*")
_DIRECTION = "|".join(DIRECTIONS)
# A header line: the keyword opens the line, and a flowchart keyword is followed
# only by an optional direction
_DIAGRAM_START = re.compile(
    rf"^[ \t]*((?:flowchart|graph)(?:[ \t]+(?:{_DIRECTION}))?[ \t]*(?:;|$)"
    r"|(?:sequenceDiagram|classDiagram|stateDiagram(?:-v2)?|erDiagram)\b)",
    re.MULTILINE,
)
_LEGACY_KEYWORD = re.compile(rf"\Agraph\b(?:[ \t]+({_DIRECTION})\b)?")
_BARE_FLOWCHART = re.compile(rf"\Aflowchart\b(?![ \t]+(?:{_DIRECTION})\b)[ \t]*")
_FLOWCHART_DIRECTION = re.compile(rf"\Aflowchart[ \t]+(?:{_DIRECTION})\b")

# Most specific first; the final pattern only sees single-dash arrows.
_ARROW_REWRITES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"-\.+-?>"), CANONICAL_ARROW),
    (re.compile(r"={2,}>"), CANONICAL_ARROW),
    (re.compile(r"-{3,}>"), CANONICAL_ARROW),
    (re.compile(r"(?<![-=.])->(?!>)"), CANONICAL_ARROW),
]

# Label text: quoted strings, bracketed node labels and |edge labels|
_LABEL_SPAN = re.compile(r"\"[^\"\n]*\"|\[[^\[\]\n]*\]|\{[^{}\n]*\}|\([^()\n]*\)|\|[^|\n]*\|")

_SQUARE_LABEL = re.compile(r"(\b[\w-]+)\[(?![\"(/\\\[])([^\[\]\"\n]*)\]")
_CURLY_LABEL = re.compile(r"(\b[\w-]+)\{(?![\"{])([^{}\"\n]*)\}")

_EXPLANATION_MARKER = re.compile(
    r"^[ \t>*#_]*(?:(?:Explanation|Notes?|Key|Legend|Summary)\s*:"
    r"|(?:This|The above|The) diagram\b|Here(?:'s| is) (?:a |an )?(?:breakdown|explanation)\b)",
    re.MULTILINE,
)


def extract_fenced_block(text: str) -> str:
    """Return the content of the first fenced block, or the text unchanged."""
    match = _FENCED_BLOCK.search(text)
    return match.group(1) if match else text


def strip_fence_markers(text: str) -> str:
    """Remove stray fence markers (with their language tag) that are left over."""
    return _FENCE_MARKER.sub("", text)


def drop_preamble(text: str) -> str:
    """Discard everything before the first line that opens a diagram."""
    match = _DIAGRAM_START.search(text)
    return text[match.start(1):] if match else text


def normalize_legacy_keyword(text: str) -> str:
    """``graph LR`` becomes ``flowchart LR``; a bare ``graph`` becomes ``flowchart``."""

    def replace(match: re.Match) -> str:
        direction = match.group(1)
        return f"{FLOWCHART} {direction}" if direction else FLOWCHART

    return _LEGACY_KEYWORD.sub(replace, text, count=1)


def inject_default_direction(text: str) -> str:
    """Give a bare ``flowchart`` header the top-down direction."""
    return _BARE_FLOWCHART.sub(f"{FLOWCHART} TD\n", text, count=1)


def force_top_down(text: str) -> str:
    """Flowcharts are always rendered top-down."""
    return _FLOWCHART_DIRECTION.sub(f"{FLOWCHART} TD", text, count=1)


def _rewrite_arrows(text: str) -> str:
    for pattern, replacement in _ARROW_REWRITES:
        text = pattern.sub(replacement, text)
    return text


def normalize_arrows(text: str) -> str:
    """Rewrite ``->``, ``==>``, ``-.->`` and long arrows to ``-->``.

    Label text is left as written.
    """
    pieces = []
    last = 0
    for match in _LABEL_SPAN.finditer(text):
        pieces.append(_rewrite_arrows(text[last : match.start()]))
        pieces.append(match.group(0))
        last = match.end()
    pieces.append(_rewrite_arrows(text[last:]))
    return "".join(pieces)


def _split_line_statements(line: str) -> str:
    parts = line.split('"')
    # Even parts are outside double quotes
    for i in range(0, len(parts), 2):
        parts[i] = parts[i].replace(";", "\n")
    return '"'.join(parts)


def split_statements(text: str) -> str:
    """Put every ``;``-terminated statement on its own line."""
    return "\n".join(_split_line_statements(line) for line in text.split("\n"))


def quote_node_labels(text: str) -> str:
    """Wrap unquoted ``A[label]`` and ``A{label}`` text in double quotes."""
    text = _SQUARE_LABEL.sub(r'\1["\2"]', text)
    return _CURLY_LABEL.sub(r'\1{"\2"}', text)


def truncate_explanation(text: str) -> str:
    """Cut the text at the first line that starts trailing prose."""
    match = _EXPLANATION_MARKER.search(text)
    return text[: match.start()] if match else text


def collapse_blank_lines(text: str) -> str:
    """Trim every line and drop the empty ones."""
    return "\n".join(line.strip() for line in text.split("\n") if line.strip())


# (pass, flowchart only)
PIPELINE: List[Tuple[Callable[[str], str], bool]] = [
    (extract_fenced_block, False),
    (strip_fence_markers, False),
    (drop_preamble, False),
    (normalize_legacy_keyword, False),
    (inject_default_direction, False),
    (force_top_down, True),
    (normalize_arrows, True),
    (split_statements, False),
    (quote_node_labels, True),
    (truncate_explanation, False),
    (collapse_blank_lines, False),
]


def is_flowchart(category: str) -> bool:
    return category.lower() in (FLOWCHART, "flow")


def sanitize(raw_text: str, category: str = FLOWCHART) -> str:
    """Run every sanitizing pass in order.

    Args:
        raw_text: Text returned by the generation model
        category: Requested diagram category (flowchart, sequence or class)

    Returns:
        Clean Mermaid text, or ``raw_text`` itself if sanitizing left nothing
    """
    flowchart = is_flowchart(category)
    text = raw_text

    for stage, flowchart_only in PIPELINE:
        if flowchart_only and not flowchart:
            continue
        text = stage(text)

    if not text:
        logger.warning(
            f"Sanitizing a {category} diagram produced no output, returning the raw text"
        )
        return raw_text

    return text
