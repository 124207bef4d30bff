from __future__ import annotations

import dataclasses
import os
from pathlib import Path

DEFAULT_IGNORE_PATTERNS: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        "target",
        "build",
        "dist",
        "__pycache__",
        ".venv",
        "venv",
    }
)


def default_concurrency() -> int:
    return max(1, os.cpu_count() or 4)


@dataclasses.dataclass(frozen=True)
class Commit:
    id: str
    author: str
    date: str  # YYYY-MM-DD
    message: str
    branch: str = "main"


@dataclasses.dataclass(frozen=True)
class RepositoryResult:
    path: str
    commits: tuple[Commit, ...]


@dataclasses.dataclass(frozen=True)
class ScanConfig:
    root_directory: Path = dataclasses.field(default_factory=Path.cwd)
    max_depth: int = 3
    ignore_patterns: frozenset[str] = DEFAULT_IGNORE_PATTERNS
    days_back: int = 7
    max_commits_per_repository: int = 200
    concurrency_limit: int = dataclasses.field(default_factory=default_concurrency)
    author_filter: str | None = None
    timeout_s: float = 30.0
