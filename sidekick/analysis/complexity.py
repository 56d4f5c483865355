"""Lexical cyclomatic-complexity estimate for source files."""

import logging
import re
from pathlib import Path
from typing import Sequence

from ..indexer.models import ComplexityReport, FileComplexity

logger = logging.getLogger(__name__)

# if, for, while, case, catch, &&, ||, ?
DECISION_PATTERN = re.compile(r"\b(?:if|for|while|case|catch)\b|&&|\|\||\?")

DEFAULT_TOP_N = 20
TOP_COMPLEX_FILES = 10


def count_decision_points(text: str) -> int:
    return len(DECISION_PATTERN.findall(text))


def score_complexity(text: str) -> int:
    """Baseline 1 plus one per decision token."""
    return count_decision_points(text) + 1


def analyze_complexity(files: Sequence[Path], top_n: int = DEFAULT_TOP_N) -> ComplexityReport:
    """Score the largest files of a repository.

    Only the ``top_n`` largest files by byte size are read. The average is
    taken over those scored files, while the empty-repository guard looks at
    the full list.

    Args:
        files: Absolute paths of the repository's code files
        top_n: Number of largest files to score

    Returns:
        Average complexity and the ten most complex scored files
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1")

    largest = sorted(files, key=lambda f: Path(f).stat().st_size, reverse=True)[:top_n]

    total_complexity = 0
    scored = []
    for file_path in largest:
        content = Path(file_path).read_text(encoding="utf-8", errors="replace")
        complexity = score_complexity(content)
        total_complexity += complexity
        scored.append(FileComplexity(name=Path(file_path).name, complexity=complexity))

    average = round(total_complexity / len(largest), 2) if len(files) > 0 else 0

    scored.sort(key=lambda f: f.complexity, reverse=True)
    logger.debug(f"Scored {len(largest)} of {len(files)} files, average complexity {average}")

    return ComplexityReport(average_complexity=average, top_complex_files=scored[:TOP_COMPLEX_FILES])
