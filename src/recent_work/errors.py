from __future__ import annotations


class RecentWorkError(Exception):
    """Base class for errors that abort a scan before any git work starts."""


class ConfigurationError(RecentWorkError):
    pass


class IdentityNotConfigured(ConfigurationError):
    def __init__(self, message: str = "") -> None:
        super().__init__(
            message
            or "Could not determine current Git user. Please set git config user.name and user.email"
        )


class RootDirectoryError(RecentWorkError):
    pass
