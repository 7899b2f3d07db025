import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, TypeVar, Union

import httpx

from build_mirror.exceptions import (
    DownloadIncomplete,
    MalformedUpstreamResponse,
    UpstreamUnavailable,
)
from build_mirror.scheduler import BoundedWorkerPool
from build_mirror.storage import BuildStore

from .models import (
    BuildRecord,
    CIProvider,
    Credentials,
    DownloadObserver,
    DownloadOptions,
    DownloadResult,
    ProviderConfig,
    TargetCoordinates,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CIProviderInterface(ABC):
    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._validate_config()

    def _validate_config(self) -> None:
        pass

    @property
    @abstractmethod
    def provider_type(self) -> CIProvider:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def download(
        self,
        target_dir: Union[str, Path],
        options: Optional[DownloadOptions] = None,
    ) -> DownloadResult:
        """
        Mirror builds missing from ``target_dir``.

        Args:
            target_dir: Directory ending in <provider>/<owner>/<name>
            options: Credentials, concurrency, observer and ``since`` override

        Returns:
            DownloadResult describing the fetched range

        Raises:
            InvalidTargetPath: If the target path carries no routing data
            UpstreamUnavailable: If the total count cannot be read
            DownloadIncomplete: If any build fails to fetch or persist
        """
        pass

    @abstractmethod
    async def get_total_builds(
        self,
        client: httpx.AsyncClient,
        coordinates: TargetCoordinates,
    ) -> int:
        """
        Probe the provider for the current upstream build count.

        Raises:
            UpstreamUnavailable: On transport errors or non-2xx responses
            MalformedUpstreamResponse: If the expected count is missing
        """
        pass

    @abstractmethod
    def normalize_build(self, raw: Dict[str, Any]) -> BuildRecord:
        """
        Map a provider build object to a BuildRecord.

        Raises:
            MalformedUpstreamResponse: If required fields are missing or invalid
        """
        pass

    @abstractmethod
    def normalize_status(self, raw_status: Optional[str]) -> str:
        """Map a provider status to a canonical result string."""
        pass

    def _get_headers(self, credentials: Optional[Credentials]) -> dict:
        return {"Accept": "application/json"}

    def _get_auth(self, credentials: Optional[Credentials]) -> Optional[httpx.Auth]:
        return None

    def _create_client(self, credentials: Optional[Credentials]) -> httpx.AsyncClient:
        """One client per run; credentials apply to every request it sends."""
        return httpx.AsyncClient(
            headers=self._get_headers(credentials),
            auth=self._get_auth(credentials),
            timeout=self.config.timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> Any:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamUnavailable(
                f"{self.name} returned HTTP {status} for {url}",
                url=url,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{self.name} request to {url} failed: {e}", url=url) from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(
                f"{self.name} returned a non-JSON body for {url}",
                url=url,
                status_code=response.status_code,
            ) from e

    @staticmethod
    def resolve_start(store: BuildStore, since: Optional[int]) -> int:
        """First build id to fetch; an explicit ``since`` wins over the resume point."""
        if since is not None:
            return since + 1
        last = store.last_build_id()
        return last + 1 if last is not None else 1

    @staticmethod
    async def _persist(store: BuildStore, record: BuildRecord) -> Path:
        return await asyncio.to_thread(store.write, record)

    async def _dispatch(
        self,
        pool: BoundedWorkerPool,
        items: Sequence[T],
        task: Callable[[T], Awaitable[object]],
        observer: Optional[DownloadObserver],
        total: int,
        counts_persisted: bool = True,
    ) -> int:
        """Run tasks through the pool, turning the first failure into DownloadIncomplete."""
        try:
            return await pool.run(items, task, observer)
        except Exception as e:
            persisted = pool.completed if counts_persisted else 0
            logger.error(
                f"{self.name} download failed after persisting {persisted} builds: {e}"
            )
            raise DownloadIncomplete(
                f"{self.name} download stopped after {persisted} builds: {e}",
                persisted=persisted,
                total=total,
            ) from e
