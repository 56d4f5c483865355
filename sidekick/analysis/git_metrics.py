"""Commit activity metrics read from a repository's git history."""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Tuple

from ..errors import TransientServiceError
from ..indexer.models import GitMetrics

logger = logging.getLogger(__name__)

# Author date (strict ISO 8601) and author email, tab separated
LOG_FORMAT = "--pretty=format:%aI%x09%ae"
ACTIVITY_DAYS = 30

CommitEntry = Tuple[str, str]  # (timestamp, author_email)


class GitLogSource:
    """Reads ``git log`` of a local clone, newest commit first."""

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)

    async def commits(self) -> List[CommitEntry]:
        """Return ``(timestamp, author_email)`` for every commit.

        Raises:
            TransientServiceError: If git exits with an error
        """
        process = await asyncio.create_subprocess_exec(
            "git",
            "log",
            LOG_FORMAT,
            cwd=str(self.repo_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise TransientServiceError(
                f"git log failed in {self.repo_path}: {stderr.decode(errors='replace').strip()}"
            )

        return parse_log(stdout.decode("utf-8", errors="replace"))


def parse_log(output: str) -> List[CommitEntry]:
    entries = []
    for line in output.splitlines():
        if not line.strip():
            continue
        timestamp, _, email = line.partition("\t")
        entries.append((timestamp.strip(), email.strip()))
    return entries


def commit_day(timestamp: str) -> str:
    """UTC calendar day of an ISO 8601 timestamp."""
    moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date().isoformat()


def summarize_commits(commits: Iterable[CommitEntry]) -> GitMetrics:
    """Aggregate commits (newest first) into activity metrics.

    ``commit_data`` holds the most recent thirty days that saw commits,
    oldest first.
    """
    commits = list(commits)
    frequency = Counter(commit_day(timestamp) for timestamp, _ in commits)

    commit_data = [
        {"date": day, "count": count} for day, count in sorted(frequency.items())
    ][-ACTIVITY_DAYS:]

    return GitMetrics(
        total_commits=len(commits),
        commit_data=commit_data,
        last_commit=commits[0][0] if commits else None,
        contributors=len({email for _, email in commits}),
    )


async def collect_git_metrics(source: GitLogSource) -> GitMetrics:
    """Read and summarize commit history; failures yield empty metrics."""
    try:
        return summarize_commits(await source.commits())
    except Exception as e:
        logger.error(f"Git metrics failed: {e}")
        return GitMetrics()
