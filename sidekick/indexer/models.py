"""Data models for repository indexing, retrieval and analytics."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SourceFile:
    """A file read from a repository clone."""

    path: str  # relative to repo root, forward slashes
    content: str
    language: str


@dataclass
class Chunk:
    """A line-range slice of a file, the unit of embedding and retrieval."""

    id: str  # repo::path::start-end, restricted to [A-Za-z0-9_-]
    content: str
    metadata: Dict[str, Any]  # repoName, filename, startLine, endLine, content

    @property
    def start_line(self) -> int:
        return self.metadata["startLine"]

    @property
    def end_line(self) -> int:
        return self.metadata["endLine"]

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "metadata": dict(self.metadata)}


@dataclass
class EmbeddingVector:
    """An embedding keyed by chunk id, stored with the chunk's metadata."""

    id: str
    values: List[float]
    metadata: Dict[str, Any]


@dataclass
class SearchResult:
    """A ranked match returned by the vector store."""

    metadata: Dict[str, Any]
    score: float

    @property
    def filename(self) -> str:
        return self.metadata.get("filename", "")

    @property
    def start_line(self) -> int:
        return self.metadata.get("startLine", 0)

    @property
    def end_line(self) -> int:
        return self.metadata.get("endLine", 0)

    @property
    def content(self) -> str:
        return self.metadata.get("content", "")

    def to_source(self) -> Dict[str, Any]:
        """Format as the source entry returned next to an answer."""
        return {
            "filename": self.filename,
            "score": self.score,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "code": self.content,
        }


@dataclass
class DependencyGraph:
    """Approximate import graph. May contain cycles and duplicate edges."""

    nodes: List[Dict[str, str]] = field(default_factory=list)
    edges: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileComplexity:
    name: str
    complexity: int


@dataclass
class ComplexityReport:
    """Complexity of the largest files of a repository."""

    average_complexity: float
    top_complex_files: List[FileComplexity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "averageComplexity": self.average_complexity,
            "topComplexFiles": [asdict(f) for f in self.top_complex_files],
        }


@dataclass
class GitMetrics:
    """Commit activity read from the repository's history."""

    total_commits: int = 0
    commit_data: List[Dict[str, Any]] = field(default_factory=list)  # [{date, count}]
    last_commit: Optional[str] = None
    contributors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCommits": self.total_commits,
            "commitData": list(self.commit_data),
            "lastCommit": self.last_commit,
            "contributors": self.contributors,
        }


@dataclass
class AnalyticsReport:
    """Everything shown on a repository's analytics view."""

    languages: Dict[str, int]
    file_sizes: List[Dict[str, Any]]
    complexity: ComplexityReport
    git_metrics: GitMetrics
    total_files: int
    total_loc: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "languages": dict(self.languages),
            "fileSizes": list(self.file_sizes),
            "complexity": self.complexity.to_dict(),
            "gitMetrics": self.git_metrics.to_dict(),
            "totalFiles": self.total_files,
            "totalLoC": self.total_loc,
        }
