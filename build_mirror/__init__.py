"""Incremental mirroring of CI build history into per-build JSON records."""

from build_mirror.ci_providers import (
    BuildRecord,
    CIProvider,
    CIProviderInterface,
    DownloadOptions,
    DownloadResult,
    get_ci_provider,
    get_configured_provider,
)
from build_mirror.exceptions import (
    DownloadIncomplete,
    InvalidTargetPath,
    MalformedUpstreamResponse,
    MirrorConfigurationError,
    MirrorError,
    PersistenceFailure,
    UpstreamUnavailable,
)
from build_mirror.logging_setup import configure_logging
from build_mirror.mirror import mirror_builds
from build_mirror.scheduler import BoundedWorkerPool
from build_mirror.storage import BuildStore

__version__ = "1.0.0"

__all__ = [
    "BuildRecord",
    "BuildStore",
    "BoundedWorkerPool",
    "CIProvider",
    "CIProviderInterface",
    "DownloadOptions",
    "DownloadResult",
    "get_ci_provider",
    "get_configured_provider",
    "mirror_builds",
    "configure_logging",
    "MirrorError",
    "MirrorConfigurationError",
    "UpstreamUnavailable",
    "MalformedUpstreamResponse",
    "PersistenceFailure",
    "InvalidTargetPath",
    "DownloadIncomplete",
]
