from __future__ import annotations

import datetime as dt
import logging
import os
import threading
from pathlib import Path

from .aggregate import aggregate_results, batched
from .errors import RootDirectoryError
from .git import discover_repositories
from .identity import IdentityResolver, ResolvedAuthorFilter, resolve_author_filter
from .models import RepositoryResult, ScanConfig
from .orchestrator import HistoryOrchestrator, since_date_for

log = logging.getLogger(__name__)


def check_root_directory(root: Path) -> Path:
    if not root.is_dir():
        raise RootDirectoryError(f"Project directory does not exist: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise RootDirectoryError(f"Project directory is not readable: {root}")
    return root


def scan_projects(
    config: ScanConfig,
    *,
    orchestrator: HistoryOrchestrator | None = None,
    resolver: IdentityResolver | None = None,
    author_filter: ResolvedAuthorFilter | None = None,
    today: dt.date | None = None,
    cancel: threading.Event | None = None,
) -> list[RepositoryResult]:
    """
    Find repositories under `config.root_directory` and collect their recent commits.

    The author filter is resolved before anything is spawned, so an unset identity
    for "me" raises `IdentityNotConfigured` without touching any repository.
    Batches of `config.concurrency_limit` repositories run one after another.
    """
    flt = author_filter if author_filter is not None else resolve_author_filter(config.author_filter, resolver)
    root = check_root_directory(Path(config.root_directory))

    repos = discover_repositories(root, config.max_depth, config.ignore_patterns)
    if not repos:
        log.info("No Git repositories found under %s", root)
        return []
    log.info("Found %d repositories under %s", len(repos), root)

    orch = orchestrator or HistoryOrchestrator(timeout_s=config.timeout_s)
    since = since_date_for(config.days_back, today)
    batch_results: list[list[RepositoryResult]] = []
    for batch in batched(repos, config.concurrency_limit):
        if cancel is not None and cancel.is_set():
            break
        batch_results.append(
            orch.run_batch(batch, since, config.max_commits_per_repository, flt, cancel=cancel)
        )

    results = aggregate_results(batch_results)
    log.info("%d of %d repositories have recent commits", len(results), len(repos))
    return results
