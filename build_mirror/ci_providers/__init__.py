# Core exports
from . import bamboo, drone
from .base import CIProviderInterface
from .config import get_configured_provider, get_provider_config
from .factory import CIProviderRegistry, get_ci_provider
from .models import (
    BuildRecord,
    BuildResult,
    CallbackObserver,
    CIProvider,
    DownloadObserver,
    DownloadOptions,
    DownloadResult,
    NullObserver,
    ProviderConfig,
    TargetCoordinates,
)
from .routing import parse_target_path

__all__ = [
    # Enums
    "CIProvider",
    "BuildResult",
    # Models
    "BuildRecord",
    "DownloadOptions",
    "DownloadResult",
    "ProviderConfig",
    "TargetCoordinates",
    # Observers
    "DownloadObserver",
    "NullObserver",
    "CallbackObserver",
    # Interface
    "CIProviderInterface",
    # Factory
    "CIProviderRegistry",
    "get_ci_provider",
    # Config helpers
    "get_provider_config",
    "get_configured_provider",
    # Routing
    "parse_target_path",
]
