from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models import ScanConfig

log = logging.getLogger(__name__)

_POSITIVE_INT_KEYS = ("max_depth", "days_back", "max_commits_per_repository", "concurrency_limit")


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")
    return data


def save_config(config_path: Path, config: dict) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def scan_config_to_dict(cfg: ScanConfig) -> dict[str, Any]:
    return {
        "root_directory": str(cfg.root_directory),
        "max_depth": cfg.max_depth,
        "ignore_patterns": sorted(cfg.ignore_patterns),
        "days_back": cfg.days_back,
        "max_commits_per_repository": cfg.max_commits_per_repository,
        "concurrency_limit": cfg.concurrency_limit,
        "author_filter": cfg.author_filter or "",
        "timeout_s": cfg.timeout_s,
    }


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e


def scan_config_from_dict(data: dict[str, Any], base: ScanConfig | None = None) -> ScanConfig:
    """
    Overlay `data` on `base` (or the defaults).

    Unknown keys are an error. Non-positive counts and timeouts fall back to the
    default with a warning rather than failing the run.
    """
    base = base or ScanConfig()
    known = {f.name for f in dataclasses.fields(ScanConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration key(s): {', '.join(unknown)}")

    defaults = ScanConfig()
    updates: dict[str, Any] = {}

    if data.get("root_directory") not in (None, ""):
        updates["root_directory"] = Path(str(data["root_directory"])).expanduser()

    for key in _POSITIVE_INT_KEYS:
        if key not in data or data[key] is None:
            continue
        n = _as_int(key, data[key])
        if n <= 0:
            log.warning("%s must be positive, using default %s", key, getattr(defaults, key))
            n = getattr(defaults, key)
        updates[key] = n

    if data.get("timeout_s") is not None:
        try:
            t = float(data["timeout_s"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"timeout_s must be a number, got {data['timeout_s']!r}") from e
        if t <= 0:
            log.warning("timeout_s must be positive, using default %s", defaults.timeout_s)
            t = defaults.timeout_s
        updates["timeout_s"] = t

    if "ignore_patterns" in data and data["ignore_patterns"] is not None:
        pats = data["ignore_patterns"]
        if isinstance(pats, str) or not isinstance(pats, (list, tuple, set, frozenset)):
            raise ConfigurationError("ignore_patterns must be a list of strings")
        updates["ignore_patterns"] = frozenset(str(p) for p in pats if str(p).strip())

    if "author_filter" in data:
        token = str(data["author_filter"] or "").strip()
        updates["author_filter"] = token or None

    return dataclasses.replace(base, **updates)


def ensure_config_file(config_path: Path) -> dict:
    if not config_path.exists():
        save_config(config_path, scan_config_to_dict(ScanConfig()))
        log.info("wrote default config: %s", config_path)
    return load_config(config_path)
