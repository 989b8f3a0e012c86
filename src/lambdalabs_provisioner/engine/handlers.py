"""Engine-facing handler interfaces."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from lambdalabs_provisioner.engine.classifier import classify, decode
from lambdalabs_provisioner.engine.errors import ValidationError
from lambdalabs_provisioner.engine.types import Outcome
from lambdalabs_provisioner.resources.base import ObservedState, Resource, ResourceHandle

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from lambdalabs_provisioner.core.client import ApiResponse, ProvisioningClient

R = TypeVar("R", bound=Resource)
S = TypeVar("S", bound=ObservedState)
M = TypeVar("M", bound="BaseModel")


@dataclass(frozen=True)
class EngineContext:
    """Per-call context passed to handlers.

    ``cancel`` is the caller's cancellation signal; once set, the in-flight
    call is abandoned and a ``TransportError`` is raised.
    """

    cancel: threading.Event = field(default_factory=threading.Event)
    timeout: float | None = None


class ResourceHandler(Generic[R, S]):
    """Base class for resource handlers.

    Handlers translate desired records into provisioning calls and remote
    responses into observed records. Subclass and override the lifecycle
    methods. A handler holds its client and no other state, so one instance
    may serve many resources. When given a factory instead of a client, the
    client is built on the first request; ``validate`` never needs one.
    """

    state_model: type[S]

    def __init__(
        self,
        client: ProvisioningClient | None = None,
        *,
        client_factory: Callable[[], ProvisioningClient] | None = None,
    ) -> None:
        if client is None and client_factory is None:
            raise TypeError("Either client or client_factory is required")
        self._client = client
        self._client_factory = client_factory

    @property
    def client(self) -> ProvisioningClient:
        if self._client is None:
            assert self._client_factory is not None
            self._client = self._client_factory()
        return self._client

    def validate(self, desired: R) -> list[str]:
        """Single-resource validation, run before any request.

        Return list of error messages (empty = valid).
        """
        _ = desired
        return []

    def create(self, ctx: EngineContext, desired: R) -> S:
        """Create the remote object. The returned record carries the bound handle."""
        raise NotImplementedError

    def read(
        self, ctx: EngineContext, handle: ResourceHandle, prior: S | None = None
    ) -> S | Literal[Outcome.ABSENT]:
        """Read the remote object. Return ``Outcome.ABSENT`` if it no longer exists."""
        raise NotImplementedError

    def update(self, ctx: EngineContext, handle: ResourceHandle, desired: R, prior: S) -> S:
        """Persist non-identity changes.

        No request is sent: the remote objects managed here cannot be modified
        after creation. Identity changes are rejected since they need a new
        remote object.
        """
        _ = ctx
        changed = sorted(
            f for f, value in desired.identity().items() if prior.identity()[f] != value
        )
        if changed:
            raise ValidationError(
                [
                    f"{desired.address}: changing {f!r} requires replacing the resource"
                    for f in changed
                ]
            )
        return prior.model_copy(update={"id": handle, **self._mutable_attrs(desired)})

    def delete(
        self, ctx: EngineContext, handle: ResourceHandle
    ) -> Literal[Outcome.DELETED, Outcome.ALREADY_GONE]:
        """Delete the remote object. A missing object counts as already deleted."""
        raise NotImplementedError

    def import_resource(self, ctx: EngineContext, external_id: str) -> ResourceHandle:
        """Bind a handle to an existing remote object.

        Nothing is validated here; call :meth:`read` to populate the record.
        """
        _ = ctx
        return ResourceHandle(external_id)

    # ── Helpers ─────────────────────────────────────────────────────

    def _mutable_attrs(self, desired: R) -> dict[str, Any]:
        """Observed-record updates derived from non-identity desired fields."""
        _ = desired
        return {}

    def _check_validation(self, desired: R) -> None:
        errors = self.validate(desired)
        if errors:
            raise ValidationError(errors)

    def _send(
        self, ctx: EngineContext, method: str, path: str, *, json: Any = None
    ) -> ApiResponse:
        return self.client.send(method, path, json=json, cancel=ctx.cancel, timeout=ctx.timeout)

    def _expect(self, response: ApiResponse, model: type[M]) -> M:
        """Decode a successful response, raising the classified error otherwise."""
        error = classify(response)
        if error is not None:
            raise error
        return decode(response, model)

