"""Recent commits across the git repositories under a directory."""

from .errors import ConfigurationError, IdentityNotConfigured, RecentWorkError, RootDirectoryError
from .identity import (
    AllAuthors,
    GitIdentity,
    IdentityResolver,
    LiteralFilter,
    MineFilter,
    invalidate_current_user,
    matches_author,
    resolve_author_filter,
    resolve_current_user,
)
from .models import Commit, RepositoryResult, ScanConfig
from .orchestrator import HistoryOrchestrator
from .scan import scan_projects

__version__ = "0.1.0"

__all__ = [
    "AllAuthors",
    "Commit",
    "ConfigurationError",
    "GitIdentity",
    "HistoryOrchestrator",
    "IdentityNotConfigured",
    "IdentityResolver",
    "LiteralFilter",
    "MineFilter",
    "RecentWorkError",
    "RepositoryResult",
    "RootDirectoryError",
    "ScanConfig",
    "invalidate_current_user",
    "matches_author",
    "resolve_author_filter",
    "resolve_current_user",
    "scan_projects",
]
