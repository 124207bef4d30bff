from __future__ import annotations

from collections.abc import Iterable


def should_ignore(name: str, patterns: Iterable[str]) -> bool:
    for pat in patterns:
        if pat and pat in name:
            return True
    return False
