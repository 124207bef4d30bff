from __future__ import annotations

from recent_work.commits import extract_branch, parse_commit_line, parse_log_output
from recent_work.models import Commit


def test_parse_commit_line_all_fields() -> None:
    c = parse_commit_line("b1|Bob|2024-01-01|add feature|origin/feature-x")
    assert c == Commit(id="b1", author="Bob", date="2024-01-01", message="add feature", branch="feature-x")


def test_parse_commit_line_trims_fields() -> None:
    c = parse_commit_line("  a1 | Alice <a@x> | 2024-01-02 |  fix bug  | ")
    assert c is not None
    assert (c.id, c.author, c.date, c.message, c.branch) == ("a1", "Alice <a@x>", "2024-01-02", "fix bug", "main")


def test_parse_commit_line_empty_refs_defaults_to_main() -> None:
    c = parse_commit_line("a1|Alice|2024-01-02|fix bug|")
    assert c is not None
    assert c.branch == "main"


def test_parse_commit_line_four_fields_is_enough() -> None:
    c = parse_commit_line("a1|Alice|2024-01-02|fix bug")
    assert c is not None
    assert c.branch == "main"


def test_parse_commit_line_rejects_short_or_blank_lines() -> None:
    assert parse_commit_line("") is None
    assert parse_commit_line("   ") is None
    assert parse_commit_line("a1|Alice|2024-01-02") is None
    assert parse_commit_line("just some text") is None


def test_extract_branch_prefers_origin() -> None:
    assert extract_branch("HEAD -> main, origin/develop, tag: v1") == "develop"
    assert extract_branch("feature-a, origin/feature-b") == "feature-b"


def test_extract_branch_first_token_and_prefixes() -> None:
    assert extract_branch("topic, other") == "topic"
    assert extract_branch("HEAD -> work") == "work"
    assert extract_branch("refs/heads/wip") == "wip"
    assert extract_branch("refs/remotes/origin/release") == "release"
    assert extract_branch("") == "main"
    assert extract_branch("   ") == "main"


def test_parse_log_output_drops_unparseable_lines() -> None:
    out = "a1|A|2024-01-02|one|\ngarbage\n\r\na2|B|2024-01-01|two|origin/x\n"
    commits = parse_log_output(out)
    assert [c.id for c in commits] == ["a1", "a2"]
    assert commits[1].branch == "x"
