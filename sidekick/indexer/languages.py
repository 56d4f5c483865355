"""File extension to language mapping and repository file discovery."""

import logging
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional

from gitignore_parser import parse_gitignore

logger = logging.getLogger(__name__)

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".h": "C/C++",
    ".cs": "C#",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
}

CODE_EXTENSIONS: FrozenSet[str] = frozenset(EXTENSION_LANGUAGES)

# Inputs for the import graph
SCRIPT_EXTENSIONS: FrozenSet[str] = frozenset({".js", ".jsx", ".ts", ".tsx"})

IGNORED_DIRECTORIES: FrozenSet[str] = frozenset({"node_modules", "dist", "build", ".git"})

UNKNOWN_LANGUAGE = "Other"


def detect_language(path: str) -> str:
    """Best-effort language name for a file path, based on its extension."""
    return EXTENSION_LANGUAGES.get(Path(path).suffix, UNKNOWN_LANGUAGE)


def _is_ignored(relative: Path) -> bool:
    return any(part in IGNORED_DIRECTORIES for part in relative.parts[:-1])


def _load_gitignore(repo_root: Path) -> Optional[Callable[[str], bool]]:
    gitignore_path = repo_root / ".gitignore"
    if not gitignore_path.exists():
        return None

    try:
        matcher = parse_gitignore(gitignore_path, base_dir=str(repo_root))
        logger.debug(f"Loaded .gitignore from {gitignore_path}")
        return matcher
    except Exception as e:
        logger.warning(f"Error parsing .gitignore: {e}")
        return None


def find_files(
    repo_root: Path,
    extensions: Optional[FrozenSet[str]] = None,
    follow_gitignore: bool = True,
) -> List[Path]:
    """List files under a repository root, skipping vendored and build output.

    Args:
        repo_root: Root directory of the repository clone
        extensions: Only return files with these extensions (None for all files)
        follow_gitignore: Whether to respect the root .gitignore file

    Returns:
        Absolute file paths, sorted for a stable order
    """
    repo_root = Path(repo_root)
    gitignore_matcher = _load_gitignore(repo_root) if follow_gitignore else None
    found = []

    for path in repo_root.rglob("*"):
        if not path.is_file():
            continue

        relative = path.relative_to(repo_root)
        if _is_ignored(relative):
            continue

        if extensions is not None and path.suffix not in extensions:
            continue

        if gitignore_matcher and gitignore_matcher(str(path)):
            continue

        found.append(path)

    found.sort()
    logger.debug(f"Found {len(found)} files under {repo_root}")
    return found


def relative_posix(path: Path, repo_root: Path) -> str:
    """Path relative to the repository root, always with forward slashes."""
    return Path(path).relative_to(Path(repo_root)).as_posix()
