"""HTTP client for the Lambda Cloud provisioning API."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from lambdalabs_provisioner.engine.errors import TransportError

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

LAMBDA_API_BASE = "https://cloud.lambdalabs.com/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_WORKERS = 4
# Upper bound on how long a set cancel event goes unnoticed.
CANCEL_POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class ApiResponse:
    """Status and raw body of a completed exchange."""

    status_code: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ProvisioningClient:
    """Send request, get status + body.

    The API key is sent as the basic-auth username with an empty password.
    The key is captured at construction and never mutated afterwards, so one
    client can be shared by every handler.

    Requests sent with a ``cancel`` event run on a small worker pool while the
    caller waits on both the event and the response. Setting the event makes
    ``send`` return at once; the abandoned exchange finishes (or times out)
    in the background and its response is closed unread.

    Example:
        with ProvisioningClient("secret") as client:
            resp = client.send("GET", "ssh-keys")
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = LAMBDA_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url.rstrip("/") + "/",
            auth=httpx.BasicAuth(api_key, ""),
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lambda-io")

    def __enter__(self) -> ProvisioningClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
        self._http.close()

    def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> ApiResponse:
        """Execute one request and return its status and body.

        Raises:
            TransportError: The request could not be completed or was canceled.
        """
        if cancel is not None and cancel.is_set():
            raise TransportError(f"{method} {path} canceled before dispatch")

        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug("%s %s", method, path)
        try:
            if cancel is None:
                resp = self._http.request(method, path, **kwargs)
            else:
                future = self._pool.submit(self._http.request, method, path, **kwargs)
                resp = _await(future, cancel, f"{method} {path}")
        except httpx.RequestError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if cancel is not None and cancel.is_set():
            # Discard the response so the caller never sees a partial outcome.
            resp.close()
            raise TransportError(f"{method} {path} canceled")

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return ApiResponse(status_code=resp.status_code, content=resp.content)


def _await(future: Future[httpx.Response], cancel: threading.Event, label: str) -> httpx.Response:
    """Block until *future* completes or *cancel* is set, whichever comes first."""
    finished = threading.Event()
    future.add_done_callback(lambda _: finished.set())
    while not finished.wait(CANCEL_POLL_INTERVAL):
        if cancel.is_set():
            future.cancel()
            future.add_done_callback(_close_abandoned)
            logger.debug("%s abandoned after cancellation", label)
            raise TransportError(f"{label} canceled")
    return future.result()


def _close_abandoned(future: Future[httpx.Response]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()
