from __future__ import annotations

from collections.abc import Iterable

from .aggregate import all_commits
from .identity import ResolvedAuthorFilter, describe_author_filter
from .models import Commit, RepositoryResult, ScanConfig

RULE_WIDE = "=" * 80
RULE_NARROW = "-" * 60
NO_RESULTS = "No Git repositories with recent commits found."


def trunc(s: str, max_len: int) -> str:
    if max_len <= 0 or len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def group_by_branch_author(commits: Iterable[Commit]) -> list[tuple[str, str, list[Commit]]]:
    groups: dict[tuple[str, str], list[Commit]] = {}
    for c in commits:
        groups.setdefault((c.branch, c.author), []).append(c)
    out = []
    for (branch, author), items in sorted(groups.items(), key=lambda kv: kv[0]):
        items.sort(key=lambda c: c.date, reverse=True)
        out.append((branch, author, items))
    return out


def _header(config: ScanConfig, author_filter: ResolvedAuthorFilter) -> list[str]:
    return [
        f"Recent Work - Recent Commits (Last {config.days_back} days)",
        f"Project Directory: {config.root_directory}",
        f"Author Filter: {describe_author_filter(author_filter)}",
        "",
        RULE_WIDE,
        "",
    ]


def render_results(
    results: list[RepositoryResult],
    config: ScanConfig,
    author_filter: ResolvedAuthorFilter,
    *,
    message_width: int = 0,
) -> list[str]:
    lines = _header(config, author_filter)

    if not results:
        lines.append(NO_RESULTS)
        return lines

    for r in results:
        lines.append(r.path)
        lines.append(f"   {len(r.commits)} recent commits:")
        lines.append("")
        for branch, author, commits in group_by_branch_author(r.commits):
            lines.append(f"   {branch} - {author}")
            for c in commits:
                lines.append(f"      {c.id} ({c.date}) {trunc(c.message, message_width)}")
            lines.append("")
        lines.append(RULE_NARROW)
        lines.append("")
    return lines


def render_timeline(
    results: list[RepositoryResult],
    config: ScanConfig,
    author_filter: ResolvedAuthorFilter,
    *,
    message_width: int = 0,
) -> list[str]:
    """One line per commit across all repositories, newest first."""
    lines = _header(config, author_filter)
    rows = all_commits(results)
    if not rows:
        lines.append(NO_RESULTS)
        return lines
    for path, c in rows:
        lines.append(f"{c.date}  {c.id}  {path} [{c.branch}] {c.author}: {trunc(c.message, message_width)}")
    return lines


def format_config(config: ScanConfig, author_filter: ResolvedAuthorFilter | None) -> list[str]:
    flt = describe_author_filter(author_filter) if author_filter is not None else (config.author_filter or "All authors")
    return [
        "Recent Work Configuration:",
        f"  Project Directory: {config.root_directory}",
        f"  Days Back: {config.days_back}",
        f"  Max Depth: {config.max_depth}",
        f"  Author Filter: {flt}",
        f"  Ignore Patterns: {', '.join(sorted(config.ignore_patterns))}",
        f"  Max Commits Per Repo: {config.max_commits_per_repository}",
        f"  Parallel Git Jobs: {config.concurrency_limit}",
        f"  Timeout: {config.timeout_s:g}s",
    ]
