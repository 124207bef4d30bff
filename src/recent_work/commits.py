from __future__ import annotations

import re

from .models import Commit

DEFAULT_BRANCH = "main"
FIELD_SEP = "|"

_ORIGIN_RE = re.compile(r"origin/([^,)]+)")
_FIRST_REF_RE = re.compile(r"([^,)]+)")
_REF_PREFIXES = ("refs/heads/", "refs/remotes/origin/")


def extract_branch(refs: str) -> str:
    """
    Pick a branch name out of a `%D` decoration such as
    ``HEAD -> main, origin/main, tag: v1``.

    An ``origin/<name>`` token wins, otherwise the first comma/paren separated
    token. When a commit is on several branches the first match is taken, which
    is not always the branch the commit was made on.
    """
    r = (refs or "").strip()
    if not r:
        return DEFAULT_BRANCH
    m = _ORIGIN_RE.search(r) or _FIRST_REF_RE.search(r)
    if m is None:
        return DEFAULT_BRANCH
    branch = m.group(1).strip()
    if branch.startswith("HEAD -> "):
        branch = branch[len("HEAD -> ") :].strip()
    for prefix in _REF_PREFIXES:
        if branch.startswith(prefix):
            branch = branch[len(prefix) :]
    return branch or DEFAULT_BRANCH


def parse_commit_line(line: str) -> Commit | None:
    if not line or not line.strip():
        return None
    parts = line.split(FIELD_SEP, 4)
    if len(parts) < 4:
        return None
    sha, author, date, message = (p.strip() for p in parts[:4])
    refs = parts[4].strip() if len(parts) > 4 else ""
    return Commit(id=sha, author=author, date=date, message=message, branch=extract_branch(refs))


def parse_log_output(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for line in output.splitlines():
        c = parse_commit_line(line)
        if c is not None:
            commits.append(c)
    return commits
