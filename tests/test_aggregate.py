from __future__ import annotations

import pytest

from recent_work.aggregate import aggregate_results, all_commits, batched, finalize_commits
from recent_work.identity import AllAuthors, LiteralFilter
from recent_work.models import Commit, RepositoryResult


def _c(sha: str, date: str, author: str = "Alice", message: str = "m") -> Commit:
    return Commit(id=sha, author=author, date=date, message=message, branch="main")


def test_finalize_commits_dedupes_by_id() -> None:
    commits = [_c("a1", "2024-01-02", message="first"), _c("a1", "2024-01-02", message="again"), _c("a2", "2024-01-01")]
    out = finalize_commits(commits, AllAuthors())
    assert [c.id for c in out] == ["a1", "a2"]
    assert out[0].message == "first"


def test_finalize_commits_sorts_date_descending_and_stable() -> None:
    commits = [
        _c("x", "2024-01-01"),
        _c("y", "2024-01-03"),
        _c("z1", "2024-01-02"),
        _c("z2", "2024-01-02"),
    ]
    out = finalize_commits(commits, AllAuthors())
    assert [c.id for c in out] == ["y", "z1", "z2", "x"]
    for a, b in zip(out, out[1:]):
        assert a.date >= b.date


def test_finalize_commits_applies_author_filter() -> None:
    commits = [_c("a", "2024-01-02", author="Alice"), _c("b", "2024-01-01", author="Bob")]
    out = finalize_commits(commits, LiteralFilter("bob"))
    assert [c.id for c in out] == ["b"]


def test_batched_partitions_in_order() -> None:
    assert batched([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert batched([], 3) == []
    with pytest.raises(ValueError):
        batched([1], 0)


def test_aggregate_results_concatenates_in_batch_order() -> None:
    r1 = RepositoryResult(path="/a", commits=(_c("a", "2024-01-01"),))
    r2 = RepositoryResult(path="/b", commits=(_c("b", "2024-01-03"),))
    r3 = RepositoryResult(path="/c", commits=(_c("c", "2024-01-02"),))
    assert aggregate_results([[r1, r2], [], [r3]]) == [r1, r2, r3]
    assert [(p, c.id) for p, c in all_commits([r1, r2, r3])] == [("/b", "b"), ("/c", "c"), ("/a", "a")]
