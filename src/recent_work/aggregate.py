from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

from .identity import ResolvedAuthorFilter, matches_author
from .models import Commit, RepositoryResult

T = TypeVar("T")


def finalize_commits(commits: Iterable[Commit], flt: ResolvedAuthorFilter) -> list[Commit]:
    seen: set[str] = set()
    out: list[Commit] = []
    for c in commits:
        if c.id in seen:
            continue
        seen.add(c.id)
        if matches_author(c.author, flt):
            out.append(c)
    # sort() is stable, so same-day commits keep git's order.
    out.sort(key=lambda c: c.date, reverse=True)
    return out


def batched(items: Sequence[T], size: int) -> list[list[T]]:
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def aggregate_results(batches: Iterable[Iterable[RepositoryResult]]) -> list[RepositoryResult]:
    out: list[RepositoryResult] = []
    for batch in batches:
        out.extend(batch)
    return out


def all_commits(results: Iterable[RepositoryResult]) -> list[tuple[str, Commit]]:
    rows = [(r.path, c) for r in results for c in r.commits]
    rows.sort(key=lambda t: t[1].date, reverse=True)
    return rows
