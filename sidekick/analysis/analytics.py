"""Repository analytics: languages, file sizes, complexity and git activity."""

import logging
from collections import Counter
from pathlib import Path

from .complexity import DEFAULT_TOP_N, analyze_complexity
from .git_metrics import GitLogSource, collect_git_metrics
from ..indexer.languages import CODE_EXTENSIONS, detect_language, find_files, relative_posix
from ..indexer.models import AnalyticsReport, SourceFile

logger = logging.getLogger(__name__)


def read_source_file(file_path: Path, repo_root: Path) -> SourceFile:
    """Read a file of a clone with its relative path and detected language."""
    return SourceFile(
        path=relative_posix(file_path, repo_root),
        content=Path(file_path).read_text(encoding="utf-8", errors="replace"),
        language=detect_language(str(file_path)),
    )


async def get_repository_analytics(
    repo_root: Path,
    complexity_top_n: int = DEFAULT_TOP_N,
) -> AnalyticsReport:
    """Compute the analytics report of a local repository clone.

    Args:
        repo_root: Root directory of the clone
        complexity_top_n: Number of largest files scored for complexity

    Returns:
        Analytics report
    """
    repo_root = Path(repo_root)
    files = find_files(repo_root, CODE_EXTENSIONS)

    languages: Counter = Counter()
    file_sizes = []
    total_loc = 0

    for file_path in files:
        source = read_source_file(file_path, repo_root)
        languages[source.language] += 1
        file_sizes.append(
            {"name": file_path.name, "size": file_path.stat().st_size, "lang": source.language}
        )
        total_loc += len(source.content.split("\n"))

    complexity = analyze_complexity(files, top_n=complexity_top_n)
    git_metrics = await collect_git_metrics(GitLogSource(repo_root))

    logger.info(
        f"Analytics for {repo_root.name}: {len(files)} files, {total_loc} lines, "
        f"{git_metrics.total_commits} commits"
    )

    return AnalyticsReport(
        languages=dict(languages),
        file_sizes=file_sizes,
        complexity=complexity,
        git_metrics=git_metrics,
        total_files=len(files),
        total_loc=total_loc,
    )
