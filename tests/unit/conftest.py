"""Shared fixtures for unit tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from lambdalabs_provisioner.core.client import ProvisioningClient
from lambdalabs_provisioner.engine.handlers import EngineContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from lambdalabs_provisioner.config.schema import Config

_LAMBDA_ENV_VARS = ("LAMBDA_API_KEY", "LAMBDA_BASE_URL", "LAMBDA_TIMEOUT", "LAMBDA_LOG")

API_PREFIX = "/api/v1/"


@pytest.fixture(autouse=True)
def _clean_lambda_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove LAMBDA_* env vars so unit tests don't leak host config."""
    for var in _LAMBDA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class FakeLambdaAPI:
    """In-memory stand-in for the Lambda Cloud API, served via ``httpx.MockTransport``.

    Responses are queued per ``(method, path)``; the last queued response
    keeps answering once the queue is drained.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self._routes.setdefault((method, path), []).append((status, body))

    def error(self, method: str, path: str, status: int, message: str, **extra: Any) -> None:
        error = {"code": extra.pop("code", None), "message": message, **extra}
        self.add(method, path, status, {"error": error})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        queue = self._routes.get((request.method, path))
        if not queue:
            return httpx.Response(
                404, json={"error": {"code": "global/not-found", "message": "no route"}}
            )
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path.removeprefix(API_PREFIX) == path
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def fake_api() -> FakeLambdaAPI:
    return FakeLambdaAPI()


@pytest.fixture
def client(fake_api: FakeLambdaAPI) -> Iterator[ProvisioningClient]:
    with ProvisioningClient("test-key", transport=httpx.MockTransport(fake_api)) as c:
        yield c


@pytest.fixture
def ctx() -> EngineContext:
    return EngineContext()


def _remote_instance(
    instance_id: str = "i-123",
    *,
    region: str = "us-west-1",
    instance_type: str = "gpu_1x_a10",
    ssh_key_names: list[str] | None = None,
    status: str = "active",
    ip: str | None = "10.0.0.5",
    name: str | None = None,
) -> dict[str, Any]:
    """Instance record in the shape ``GET instances/{id}`` returns."""
    return {
        "id": instance_id,
        "name": name,
        "ip": ip,
        "status": status,
        "hostname": f"{instance_id}.cloud.lambdalabs.com" if ip else None,
        "jupyter_url": None,
        "ssh_key_names": ssh_key_names if ssh_key_names is not None else ["laptop"],
        "file_system_names": [],
        "region": {"name": region, "description": "California, USA"},
        "instance_type": {
            "name": instance_type,
            "description": "1x A10 (24 GB PCIe)",
            "price_cents_per_hour": 75,
            "specs": {"vcpus": 30, "memory_gib": 200, "storage_gib": 1400},
        },
    }


@pytest.fixture
def remote_instance() -> Callable[..., dict[str, Any]]:
    """Factory fixture for instance records as the API reports them."""
    return _remote_instance


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""
    from lambdalabs_provisioner.config import load

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "lambdalabs.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "lambdalabs.yaml")

    return _make
