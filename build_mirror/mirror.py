"""Synchronous entry points for callers outside an event loop."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from build_mirror.ci_providers import (
    CIProvider,
    CIProviderInterface,
    CIProviderRegistry,
    DownloadObserver,
    DownloadOptions,
    DownloadResult,
    get_configured_provider,
)
from build_mirror.ci_providers.models import Credentials
from build_mirror.config import settings

logger = logging.getLogger(__name__)


def resolve_target_dir(target_dir: Union[str, Path]) -> Path:
    """Relative target directories live under settings.BUILDS_DIR."""
    path = Path(target_dir)
    if path.is_absolute():
        return path
    return Path(settings.BUILDS_DIR) / path


def mirror_builds(
    provider: Optional[Union[CIProvider, str, CIProviderInterface]],
    target_dir: Union[str, Path],
    auth: Optional[Credentials] = None,
    concurrency: Optional[int] = None,
    observer: Optional[Union[DownloadObserver, Callable[[int, int], None]]] = None,
    since: Optional[int] = None,
) -> DownloadResult:
    """
    Run a provider download to completion.

    Args:
        provider: A provider instance, a CIProvider or provider name to build
            from settings, or None to take it from the target path
        target_dir: Target directory; relative paths resolve under BUILDS_DIR
        auth: Credentials applied to every request of the run
        concurrency: Max requests in flight (defaults to DEFAULT_CONCURRENCY)
        observer: Progress observer or ``(completed, total)`` callable
        since: Override for the resume point

    Returns:
        DownloadResult for the run
    """
    target = resolve_target_dir(target_dir)
    if provider is None:
        provider = CIProviderRegistry.type_for_target(target)
    if not isinstance(provider, CIProviderInterface):
        provider = get_configured_provider(provider)

    options = DownloadOptions(
        auth=auth,
        concurrency=settings.DEFAULT_CONCURRENCY if concurrency is None else concurrency,
        observer=observer,
        since=since,
    )
    logger.info(f"Mirroring {provider.name} builds into {target}")
    return asyncio.run(provider.download(target, options))
