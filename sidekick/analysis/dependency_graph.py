"""Approximate import graph over a repository's JavaScript/TypeScript files.

Resolution is a prefix match against known paths, not module resolution:
``./utils`` imported from ``src/app.ts`` links to the first known file whose
path starts with ``src/utils``.
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import Callable, Dict, Iterator, Sequence

from ..indexer.languages import SCRIPT_EXTENSIONS, find_files, relative_posix
from ..indexer.models import DependencyGraph

logger = logging.getLogger(__name__)

# from './path'  |  import './path'
IMPORT_PATTERN = re.compile(r"""from\s+['"]([^'"]+)['"]|import\s+['"]([^'"]+)['"]""")


def iter_import_specifiers(content: str) -> Iterator[str]:
    for match in IMPORT_PATTERN.finditer(content):
        specifier = match.group(1) or match.group(2)
        if specifier:
            yield specifier


def resolve_specifier(importer: str, specifier: str) -> str:
    """Join a relative specifier with the importing file's directory."""
    return posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))


def extract_dependency_graph(
    files: Sequence[str],
    read_file: Callable[[str], str],
) -> DependencyGraph:
    """Build nodes and edges for a set of script files.

    Args:
        files: File paths relative to the repository root, forward slashes
        read_file: Returns the text of a relative path

    Returns:
        One node per file (``n0``, ``n1``, ...) and one edge per resolved
        relative import. Duplicate edges and cycles are kept.
    """
    graph = DependencyGraph()
    file_to_id: Dict[str, str] = {}

    for index, path in enumerate(files):
        node_id = f"n{index}"
        graph.nodes.append({"id": node_id, "label": path, "path": path})
        file_to_id[path] = node_id

    for path in files:
        try:
            content = read_file(path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            continue

        source_id = file_to_id[path]
        for specifier in iter_import_specifiers(content):
            if not specifier.startswith("."):
                continue

            resolved = resolve_specifier(path, specifier)
            for target_path, target_id in file_to_id.items():
                if target_path.startswith(resolved):
                    graph.edges.append({"source": source_id, "target": target_id})
                    break

    logger.info(f"Built dependency graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph


def build_dependency_graph(repo_root: Path) -> DependencyGraph:
    """Scan a repository clone and build its dependency graph."""
    repo_root = Path(repo_root)
    files = [relative_posix(path, repo_root) for path in find_files(repo_root, SCRIPT_EXTENSIONS)]

    def read_file(relative_path: str) -> str:
        return (repo_root / relative_path).read_text(encoding="utf-8", errors="replace")

    return extract_dependency_graph(files, read_file)
