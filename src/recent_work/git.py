from __future__ import annotations

import logging
import os
import subprocess
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from .paths import should_ignore

log = logging.getLogger(__name__)

REPO_MARKER = ".git"
LOG_FORMAT = "%h|%an|%ad|%s|%D"


def run_git(args: list[str], cwd: Path, timeout_s: int = 30) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def get_config_value(key: str, cwd: Path, *, global_scope: bool) -> str:
    """Read one `git config` value; "" when unset, git is missing, or the query fails."""
    args = ["config"]
    if global_scope:
        args.append("--global")
    args += ["--get", key]
    try:
        code, out, _ = run_git(args, cwd=cwd)
    except (OSError, subprocess.TimeoutExpired) as e:
        log.debug("git config %s failed: %s", key, e)
        return ""
    if code != 0:
        return ""
    return out.strip()


def is_repo_root(path: Path) -> bool:
    # `.git` is a file for worktrees and submodules.
    return os.path.lexists(os.path.join(path, REPO_MARKER))


def _child_dirs(path: Path) -> list[str]:
    names: list[str] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                if entry.is_dir(follow_symlinks=False):
                    names.append(entry.name)
            except OSError:
                continue
    names.sort()
    return names


def discover_repositories(root: Path, max_depth: int, ignore_patterns: Iterable[str]) -> list[Path]:
    """
    Breadth-first walk from `root` collecting directories that directly contain a
    `.git` marker. Repository roots are not descended into, entries at
    `depth >= max_depth` are dropped, and unreadable directories are skipped
    with a warning.
    """
    if max_depth <= 0:
        return []

    patterns = [p for p in ignore_patterns if p]
    queue: deque[tuple[Path, int]] = deque([(Path(root), 0)])
    repos: list[Path] = []

    while queue:
        path, depth = queue.popleft()
        if depth >= max_depth:
            continue
        if is_repo_root(path):
            repos.append(path)
            continue
        try:
            children = _child_dirs(path)
        except OSError as e:
            log.warning("Error scanning directory %s: %s", path, e)
            continue
        for name in children:
            if patterns and should_ignore(name, patterns):
                continue
            queue.append((path / name, depth + 1))

    return repos


def history_query_args(since_date: str, max_commits: int) -> list[str]:
    return [
        "log",
        "--all",
        f"--since={since_date}",
        f"--max-count={max_commits}",
        f"--pretty=format:{LOG_FORMAT}",
        "--date=short",
    ]
