"""
Bamboo Provider - Mirrors sequentially numbered plan results.

Endpoints (relative to the REST base, https://<host>/rest/api/latest):
- result/<PROJECT-PLAN>-latest.json  -> latest buildNumber
- result/<PROJECT-PLAN>-<n>.json     -> a single build result
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from build_mirror.exceptions import MalformedUpstreamResponse
from build_mirror.scheduler import BoundedWorkerPool
from build_mirror.storage import BuildStore

from .base import CIProviderInterface
from .factory import CIProviderRegistry
from .models import (
    DEFAULT_REF_NAME,
    DEFAULT_REF_TYPE,
    BuildRecord,
    BuildResult,
    CIProvider,
    Credentials,
    DownloadOptions,
    DownloadResult,
    TargetCoordinates,
)
from .routing import parse_target_path

logger = logging.getLogger(__name__)

BAMBOO_API_PATH = "rest/api/latest"


def _to_epoch_millis(value: Any) -> Optional[int]:
    """Bamboo reports ISO-8601 strings; numeric values are already milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value)
    if text.isdigit():
        return int(text)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedUpstreamResponse(f"Unparseable Bamboo timestamp: {value!r}") from e
    return int(parsed.timestamp() * 1000)


@CIProviderRegistry.register(CIProvider.BAMBOO)
class BambooProvider(CIProviderInterface):
    """
    Bamboo provider.

    Build numbers are contiguous from 1, so the missing range is
    [resume + 1, latest buildNumber] and each build is one GET.

    Config:
        base_url: Optional REST base; derived from the host path segment otherwise
        username/password: Basic auth, used when the run supplies no ``auth``
    """

    @property
    def provider_type(self) -> CIProvider:
        return CIProvider.BAMBOO

    @property
    def name(self) -> str:
        return "Bamboo"

    @property
    def default_ref_name(self) -> str:
        return self.config.extra.get("default_ref_name", DEFAULT_REF_NAME)

    def _get_auth(self, credentials: Optional[Credentials]) -> Optional[httpx.Auth]:
        if credentials is None and self.config.username:
            credentials = (self.config.username, self.config.password or "")
        if credentials is None:
            return None
        if isinstance(credentials, str):
            username, _, password = credentials.partition(":")
            return httpx.BasicAuth(username, password)
        username, password = credentials
        return httpx.BasicAuth(username, password)

    def _get_base_url(self, coordinates: TargetCoordinates) -> str:
        if self.config.base_url:
            return self.config.base_url.rstrip("/")
        return f"https://{coordinates.owner}/{BAMBOO_API_PATH}"

    def _result_url(self, coordinates: TargetCoordinates, suffix: Union[int, str]) -> str:
        return f"{self._get_base_url(coordinates)}/result/{coordinates.name}-{suffix}.json"

    async def get_total_builds(
        self,
        client: httpx.AsyncClient,
        coordinates: TargetCoordinates,
    ) -> int:
        url = self._result_url(coordinates, "latest")
        data = await self._get_json(client, url)
        try:
            return int(data["buildNumber"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedUpstreamResponse(
                f"Bamboo latest result has no numeric buildNumber: {url}",
                url=url,
            ) from e

    async def download(
        self,
        target_dir: Union[str, Path],
        options: Optional[DownloadOptions] = None,
    ) -> DownloadResult:
        options = options or DownloadOptions()
        coordinates = parse_target_path(target_dir, CIProvider.BAMBOO)
        store = BuildStore(target_dir)
        start = self.resolve_start(store, options.since)

        async with self._create_client(options.auth) as client:
            total = await self.get_total_builds(client, coordinates)

            if start > total:
                logger.info(
                    f"{coordinates.name}: up to date at build {total}, nothing to download"
                )
                return DownloadResult(
                    provider=self.provider_type,
                    target_dir=Path(target_dir),
                    start=start,
                    total=total,
                    fetched=0,
                )

            build_numbers = range(start, total + 1)
            logger.info(
                f"{coordinates.name}: downloading builds {start}..{total} "
                f"({len(build_numbers)} builds, concurrency={options.concurrency})"
            )

            async def fetch_and_persist(build_number: int) -> None:
                raw = await self._get_json(client, self._result_url(coordinates, build_number))
                record = self.normalize_build(raw)
                await self._persist(store, record)
                logger.debug(f"{coordinates.name}: saved build {record.id}")

            pool = BoundedWorkerPool(options.concurrency)
            fetched = await self._dispatch(
                pool, build_numbers, fetch_and_persist, options.observer, total
            )

        logger.info(f"{coordinates.name}: download completed. Total builds: {total}")
        return DownloadResult(
            provider=self.provider_type,
            target_dir=Path(target_dir),
            start=start,
            total=total,
            fetched=fetched,
        )

    def normalize_status(self, raw_status: Optional[str]) -> str:
        if not raw_status:
            return BuildResult.STOPPED.value
        return str(raw_status).upper()

    def normalize_build(self, raw: Dict[str, Any]) -> BuildRecord:
        if not isinstance(raw, dict) or raw.get("buildNumber") is None:
            raise MalformedUpstreamResponse("Bamboo build result has no buildNumber")

        started = _to_epoch_millis(raw.get("buildStartedTime"))
        completed = _to_epoch_millis(raw.get("buildCompletedTime"))

        # Queued or skipped results never started
        created_on = started if started is not None else (completed or 0)

        try:
            duration = raw.get("buildDurationInSeconds")
            if duration is None:
                if started is not None and completed is not None:
                    duration = (completed - started) // 1000
                elif raw.get("buildDuration") is not None:
                    duration = int(raw["buildDuration"]) // 1000
                else:
                    duration = 0

            return BuildRecord(
                id=raw["buildNumber"],
                uuid=str(raw.get("id") or raw.get("buildResultKey") or raw["buildNumber"]),
                created_on=created_on,
                duration=max(0, int(duration)),
                result=self.normalize_status(raw.get("buildState")),
                ref_type=DEFAULT_REF_TYPE,
                ref_name=self.default_ref_name,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise MalformedUpstreamResponse(
                f"Invalid Bamboo build {raw.get('buildNumber')!r}: {e}"
            ) from e
