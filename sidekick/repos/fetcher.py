"""Local clones of remote repositories.

One clone directory per repository under the storage path. Fetching an
existing repository pulls in place; concurrent fetches of the same
repository must be serialized by the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import NotFoundError, TransientServiceError
from ..indexer.languages import CODE_EXTENSIONS, find_files, relative_posix

logger = logging.getLogger(__name__)


@dataclass
class FetchedRepository:
    local_path: Path
    repo_name: str


def repo_name_from_url(repo_url: str) -> str:
    """``https://github.com/user/repo.git`` becomes ``user_repo``."""
    segments = [segment for segment in repo_url.rstrip("/").split("/") if segment]
    return "_".join(segments[-2:]).replace(".git", "")


class GitRepositoryFetcher:
    """Clone, update and read repositories under a storage directory."""

    def __init__(self, storage_path: Path):
        """Initialize fetcher.

        Args:
            storage_path: Directory holding one clone per repository
        """
        self.storage_path = Path(storage_path)

    def initialize(self) -> "GitRepositoryFetcher":
        """Create the storage directory and return the ready fetcher."""
        self.storage_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Repository storage at: {self.storage_path}")
        return self

    async def _run_git(self, *args: str, cwd: Optional[Path] = None) -> str:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise TransientServiceError(
                f"git {args[0]} failed: {stderr.decode(errors='replace').strip()}"
            )
        return stdout.decode(errors="replace")

    async def fetch(self, repo_url: str) -> FetchedRepository:
        """Clone a repository, or pull if it was cloned before.

        Args:
            repo_url: Remote repository URL

        Returns:
            Local clone path and canonical repository name
        """
        repo_name = repo_name_from_url(repo_url)
        local_path = self.storage_path / repo_name

        if local_path.exists():
            logger.info(f"Updating existing clone of {repo_name}")
            await self._run_git("pull", cwd=local_path)
        else:
            logger.info(f"Cloning {repo_url} to {local_path}")
            await self._run_git("clone", repo_url, str(local_path))

        return FetchedRepository(local_path=local_path, repo_name=repo_name)

    def resolve(self, repo_name: str) -> Path:
        """Local clone directory of a repository.

        Raises:
            NotFoundError: If the repository was never fetched
        """
        local_path = (self.storage_path / repo_name).resolve()
        if local_path.parent != self.storage_path.resolve() or not local_path.is_dir():
            raise NotFoundError(f"Repository not found: {repo_name}")
        return local_path

    def list_code_files(self, repo_name: str) -> List[Path]:
        return find_files(self.resolve(repo_name), CODE_EXTENSIONS)

    def list_repo_files(self, repo_name: str) -> List[str]:
        """Every non-ignored file of a repository, relative to its root."""
        root = self.resolve(repo_name)
        return [relative_posix(path, root) for path in find_files(root)]

    def read_file(self, repo_name: str, relative_path: str) -> str:
        """Read one file of a repository.

        Raises:
            NotFoundError: If the file does not exist or lies outside the clone
        """
        root = self.resolve(repo_name)
        full_path = (root / relative_path).resolve()

        if root not in full_path.parents or not full_path.is_file():
            raise NotFoundError(f"File not found: {relative_path}")

        return full_path.read_text(encoding="utf-8", errors="replace")
