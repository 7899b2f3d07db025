"""Test configuration and fixtures."""

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

BAMBOO_HOST = "bamboo.example.com"
BAMBOO_PLAN = "PROJ-PLAN"
BAMBOO_BASE = f"https://{BAMBOO_HOST}/rest/api/latest/result/{BAMBOO_PLAN}"

DRONE_BUILDS_URL = "https://cloud.drone.io/api/repos/octocat/hello-world/builds"


def bamboo_build(number: int, state: str = "Successful") -> dict:
    """A Bamboo result body as returned by result/<PLAN>-<n>.json."""
    return {
        "buildNumber": number,
        "id": 98000 + number,
        "buildResultKey": f"{BAMBOO_PLAN}-{number}",
        "buildStartedTime": "2019-03-20T13:35:54.000Z",
        "buildCompletedTime": "2019-03-20T13:36:36.000Z",
        "buildDurationInSeconds": 42,
        "buildState": state,
    }


def drone_build(number: int, status: str = "success", **overrides) -> dict:
    build = {
        "id": 5000 + number,
        "number": number,
        "status": status,
        "event": "push",
        "source": "main",
        "created": 1000 + number,
        "started": 1010 + number,
        "finished": 1070 + number,
    }
    build.update(overrides)
    return build


class RecordingHandler:
    """MockTransport handler that serves canned JSON and records requests."""

    def __init__(self, routes: Dict[str, object], fail: Optional[Dict[str, int]] = None):
        self.routes = routes
        self.fail = fail or {}
        self.requests: List[httpx.Request] = []

    @property
    def urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.fail:
            return httpx.Response(self.fail[url], text="boom")
        if url not in self.routes:
            return httpx.Response(404, text="not found")
        body = self.routes[url]
        if isinstance(body, (bytes, str)):
            return httpx.Response(200, content=body)
        return httpx.Response(200, content=json.dumps(body).encode())


@pytest.fixture
def bamboo_dir(tmp_path: Path) -> Path:
    return tmp_path / "bamboo" / BAMBOO_HOST / BAMBOO_PLAN


@pytest.fixture
def drone_dir(tmp_path: Path) -> Path:
    return tmp_path / "drone" / "octocat" / "hello-world"


@pytest.fixture
def bamboo_routes() -> Callable[[int], Dict[str, object]]:
    def _routes(total: int) -> Dict[str, object]:
        routes: Dict[str, object] = {f"{BAMBOO_BASE}-latest.json": bamboo_build(total)}
        for n in range(1, total + 1):
            routes[f"{BAMBOO_BASE}-{n}.json"] = bamboo_build(n)
        return routes

    return _routes


def read_record(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))
