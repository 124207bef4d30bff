from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from recent_work.config import ensure_config_file, load_config, save_config, scan_config_from_dict, scan_config_to_dict
from recent_work.errors import ConfigurationError
from recent_work.models import DEFAULT_IGNORE_PATTERNS, ScanConfig


def test_scan_config_defaults() -> None:
    cfg = ScanConfig()
    assert cfg.max_depth == 3
    assert cfg.days_back == 7
    assert cfg.max_commits_per_repository == 200
    assert cfg.concurrency_limit >= 1
    assert cfg.author_filter is None
    assert cfg.timeout_s == 30.0
    assert "node_modules" in cfg.ignore_patterns


def test_scan_config_from_dict_overlays_values(tmp_path: Path) -> None:
    cfg = scan_config_from_dict(
        {
            "root_directory": str(tmp_path),
            "max_depth": 5,
            "days_back": "14",
            "ignore_patterns": ["vendor", "", "dist"],
            "author_filter": "  alice ",
            "timeout_s": 5,
        }
    )
    assert cfg.root_directory == tmp_path
    assert cfg.max_depth == 5
    assert cfg.days_back == 14
    assert cfg.ignore_patterns == frozenset({"vendor", "dist"})
    assert cfg.author_filter == "alice"
    assert cfg.timeout_s == 5.0


def test_scan_config_from_dict_keeps_base_values() -> None:
    base = ScanConfig(days_back=30, author_filter="me")
    cfg = scan_config_from_dict({"max_depth": 2}, base=base)
    assert cfg.days_back == 30
    assert cfg.author_filter == "me"
    assert cfg.max_depth == 2

    cleared = scan_config_from_dict({"author_filter": ""}, base=base)
    assert cleared.author_filter is None


def test_scan_config_from_dict_replaces_non_positive_with_defaults(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="recent_work.config"):
        cfg = scan_config_from_dict({"days_back": 0, "max_depth": -1, "timeout_s": 0})
    assert cfg.days_back == 7
    assert cfg.max_depth == 3
    assert cfg.timeout_s == 30.0
    assert len([r for r in caplog.records if "must be positive" in r.getMessage()]) == 3


def test_scan_config_from_dict_rejects_bad_input() -> None:
    with pytest.raises(ConfigurationError):
        scan_config_from_dict({"no_such_key": 1})
    with pytest.raises(ConfigurationError):
        scan_config_from_dict({"max_depth": "deep"})
    with pytest.raises(ConfigurationError):
        scan_config_from_dict({"ignore_patterns": "node_modules"})
    with pytest.raises(ConfigurationError):
        scan_config_from_dict({"concurrency_limit": True})


def test_save_and_load_config(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "recent-work.json"
    cfg = ScanConfig(root_directory=tmp_path, days_back=10, author_filter="bob")
    save_config(path, scan_config_to_dict(cfg))

    data = load_config(path)
    assert data["days_back"] == 10
    assert data["ignore_patterns"] == sorted(DEFAULT_IGNORE_PATTERNS)
    assert scan_config_from_dict(data) == cfg


def test_load_config_missing_and_invalid(tmp_path: Path) -> None:
    assert load_config(tmp_path / "missing.json") == {}
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(bad)
    arr = tmp_path / "arr.json"
    arr.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(arr)


def test_ensure_config_file_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "recent-work.json"
    data = ensure_config_file(path)
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == data
    assert data["max_commits_per_repository"] == 200

    path.write_text(json.dumps({"days_back": 3}), encoding="utf-8")
    assert ensure_config_file(path) == {"days_back": 3}
