"""Custom exceptions for build mirroring."""

from __future__ import annotations

from pathlib import Path


class MirrorError(Exception):
    """Base exception for mirroring failures."""


class MirrorConfigurationError(MirrorError):
    """Raised when required configuration is missing or invalid."""


class UpstreamUnavailable(MirrorError):
    """Raised when the CI provider cannot be reached or answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedUpstreamResponse(UpstreamUnavailable):
    """Raised when a provider response cannot be parsed into the expected shape."""


class PersistenceFailure(MirrorError):
    """Raised when a build record cannot be written to the target directory."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = path


class InvalidTargetPath(MirrorError):
    """Raised when a target directory does not carry routing coordinates."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = path


class DownloadIncomplete(MirrorError):
    """
    Raised when a run stops on a failed build.

    The first failure is chained as ``__cause__``. Builds persisted before
    the failure stay on disk.
    """

    def __init__(self, message: str, persisted: int, total: int):
        super().__init__(message)
        self.persisted = persisted
        self.total = total
