"""
Drone Provider - Mirrors the build list of a Drone repository.

The builds endpoint returns the whole list in one response; there is no
separate "latest" endpoint, so the upstream count is the list length.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

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
    NullObserver,
    TargetCoordinates,
)
from .routing import parse_target_path

logger = logging.getLogger(__name__)

DRONE_API_BASE = "https://cloud.drone.io"

RESULT_TO_STATUS = {
    "success": BuildResult.SUCCESSFUL.value,
    "failed": BuildResult.FAILED.value,
    "error": BuildResult.FAILED.value,
}


def _to_int(value: Any, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedUpstreamResponse(f"Drone field '{field}' is not numeric: {value!r}") from e


def _build_number(raw: Any) -> Optional[int]:
    """Build number of a raw list entry, or None when it has no usable one."""
    if not isinstance(raw, dict):
        return None
    try:
        return _to_int(raw.get("number"), "number")
    except MalformedUpstreamResponse:
        return None


@CIProviderRegistry.register(CIProvider.DRONE)
class DroneProvider(CIProviderInterface):
    """
    Drone provider.

    Config:
        token: Drone API token, used when the run supplies no ``auth``
        base_url: Optional Drone server URL (defaults to cloud.drone.io)
    """

    @property
    def provider_type(self) -> CIProvider:
        return CIProvider.DRONE

    @property
    def name(self) -> str:
        return "Drone"

    def _validate_config(self) -> None:
        if not self.config.token:
            logger.debug("Drone token not provided - only public repositories are readable")

    def _get_headers(self, credentials: Optional[Credentials]) -> dict:
        headers = {"Accept": "application/json"}
        token = credentials if credentials is not None else self.config.token
        if isinstance(token, tuple):
            # (user, token) pairs carry the token second
            token = token[1]
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _get_base_url(self) -> str:
        return (self.config.base_url or DRONE_API_BASE).rstrip("/")

    def _builds_url(self, coordinates: TargetCoordinates) -> str:
        return f"{self._get_base_url()}/api/repos/{coordinates.owner}/{coordinates.name}/builds"

    async def _fetch_build_list(
        self,
        client: httpx.AsyncClient,
        coordinates: TargetCoordinates,
    ) -> List[Dict[str, Any]]:
        url = self._builds_url(coordinates)
        data = await self._get_json(client, url)
        if not isinstance(data, list):
            raise MalformedUpstreamResponse(
                f"Drone builds endpoint did not return a list: {url}",
                url=url,
            )
        return data

    async def get_total_builds(
        self,
        client: httpx.AsyncClient,
        coordinates: TargetCoordinates,
    ) -> int:
        return len(await self._fetch_build_list(client, coordinates))

    async def download(
        self,
        target_dir: Union[str, Path],
        options: Optional[DownloadOptions] = None,
    ) -> DownloadResult:
        options = options or DownloadOptions()
        coordinates = parse_target_path(target_dir, CIProvider.DRONE)
        repo_slug = f"{coordinates.owner}/{coordinates.name}"
        store = BuildStore(target_dir)
        existing = store.existing_ids()
        start = self.resolve_start(store, options.since)

        def is_missing(raw: Dict[str, Any]) -> bool:
            number = _build_number(raw)
            if number is None:
                # Left for its own task to reject
                return True
            if options.since is not None:
                return number > options.since
            return number not in existing

        async with self._create_client(options.auth) as client:
            total = await self.get_total_builds(client, coordinates)
            if total == 0:
                logger.info(f"{repo_slug}: no builds upstream")
                return DownloadResult(
                    provider=self.provider_type,
                    target_dir=Path(target_dir),
                    start=start,
                    total=0,
                    fetched=0,
                )

            builds: List[Dict[str, Any]] = []

            async def fetch_page(coords: TargetCoordinates) -> None:
                builds.extend(await self._fetch_build_list(client, coords))

            # The list is a single request; it still goes through the pool
            await self._dispatch(
                BoundedWorkerPool(options.concurrency),
                [coordinates],
                fetch_page,
                NullObserver(),
                total,
                counts_persisted=False,
            )

        missing = [raw for raw in builds if is_missing(raw)]
        if not missing:
            logger.info(f"{repo_slug}: up to date, {len(builds)} builds already on disk")
            return DownloadResult(
                provider=self.provider_type,
                target_dir=Path(target_dir),
                start=start,
                total=total,
                fetched=0,
            )

        logger.info(f"{repo_slug}: saving {len(missing)} of {len(builds)} builds")

        async def normalize_and_persist(raw: Dict[str, Any]) -> None:
            record = self.normalize_build(raw)
            await self._persist(store, record)
            logger.debug(f"{repo_slug}: saved build {record.id}")

        fetched = await self._dispatch(
            BoundedWorkerPool(options.concurrency),
            missing,
            normalize_and_persist,
            options.observer,
            total,
        )

        logger.info(f"{repo_slug}: download completed. Total builds: {total}")
        return DownloadResult(
            provider=self.provider_type,
            target_dir=Path(target_dir),
            start=start,
            total=total,
            fetched=fetched,
        )

    def normalize_status(self, raw_status: Optional[str]) -> str:
        return RESULT_TO_STATUS.get(raw_status, BuildResult.STOPPED.value)

    def normalize_build(self, raw: Dict[str, Any]) -> BuildRecord:
        if not isinstance(raw, dict) or raw.get("number") is None:
            raise MalformedUpstreamResponse("Drone build has no number")

        # A build that never ran (e.g. the pipeline file failed to parse)
        # reports started == 0; fall back to the creation time.
        started = _to_int(raw.get("started"), "started")
        created = _to_int(raw.get("created"), "created")
        start_time = started if started else created
        if start_time is None:
            raise MalformedUpstreamResponse(
                f"Drone build {raw.get('number')!r} has neither started nor created"
            )

        finished = _to_int(raw.get("finished"), "finished")
        duration = max(0, finished - start_time) if finished else 0

        try:
            return BuildRecord(
                id=raw["number"],
                uuid=str(raw.get("id", raw["number"])),
                created_on=start_time * 1000,
                duration=duration,
                result=self.normalize_status(raw.get("status")),
                ref_type=raw.get("event") or DEFAULT_REF_TYPE,
                ref_name=raw.get("source") or DEFAULT_REF_NAME,
            )
        except ValidationError as e:
            raise MalformedUpstreamResponse(f"Invalid Drone build {raw.get('number')!r}: {e}") from e
