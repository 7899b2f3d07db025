from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REF_TYPE = "not available"
DEFAULT_REF_NAME = "master"


class CIProvider(str, Enum):
    """Supported CI providers."""

    BAMBOO = "bamboo"
    DRONE = "drone"


class BuildResult(str, Enum):
    """Canonical build results. Providers may also report their own value uppercased."""

    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    STOPPED = "STOPPED"


class BuildRecord(BaseModel):
    """Provider-agnostic build record, one JSON file per build."""

    id: int = Field(..., description="Provider-local sequential build number")
    uuid: str = Field(..., description="Provider-global build identifier")
    created_on: int = Field(..., alias="createdOn", description="Build start (epoch ms)")
    duration: int = Field(..., description="Wall-clock duration in seconds")
    result: str
    ref_type: str = Field(DEFAULT_REF_TYPE, alias="refType")
    ref_name: str = Field(DEFAULT_REF_NAME, alias="refName")

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProviderConfig(BaseModel):
    """Configuration for a CI provider connection."""

    provider: CIProvider
    base_url: Optional[str] = None  # API base URL
    token: Optional[str] = None  # Bearer token (Drone)
    username: Optional[str] = None
    password: Optional[str] = None
    timeout_seconds: float = 30.0
    extra: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class TargetCoordinates(BaseModel):
    """Routing data carried by the three trailing segments of a target directory."""

    provider_segment: str
    owner: str  # Bamboo host or Drone user
    name: str  # Bamboo PROJECT-PLAN key or Drone repo

    model_config = ConfigDict(frozen=True)


@runtime_checkable
class DownloadObserver(Protocol):
    """Receives progress after every persisted build."""

    def on_build_persisted(self, completed: int, total: int) -> None: ...


class NullObserver:
    """Default observer; ignores progress."""

    def on_build_persisted(self, completed: int, total: int) -> None:
        pass


class CallbackObserver:
    """Adapts a plain ``(completed, total)`` callable to the observer interface."""

    def __init__(self, callback: Callable[[int, int], None]):
        self._callback = callback

    def on_build_persisted(self, completed: int, total: int) -> None:
        self._callback(completed, total)


Credentials = Union[str, Tuple[str, str]]


class DownloadOptions(BaseModel):
    """Per-run options for ``download``."""

    auth: Optional[Credentials] = None
    concurrency: int = Field(5, ge=1)
    observer: DownloadObserver = Field(default_factory=NullObserver)
    since: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("observer", mode="before")
    @classmethod
    def _wrap_callback(cls, value: Any) -> Any:
        if value is None:
            return NullObserver()
        if callable(value) and not isinstance(value, DownloadObserver):
            return CallbackObserver(value)
        return value


class DownloadResult(BaseModel):
    """Outcome of a successful run."""

    provider: CIProvider
    target_dir: Path
    start: int
    total: int
    fetched: int

    @property
    def up_to_date(self) -> bool:
        return self.fetched == 0
