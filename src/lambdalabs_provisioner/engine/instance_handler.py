"""Instance handler implementing the lifecycle via the instance-operations API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from lambdalabs_provisioner.engine.classifier import classify, decode
from lambdalabs_provisioner.engine.errors import NotFoundError, ResponseCardinalityError
from lambdalabs_provisioner.engine.handlers import ResourceHandler
from lambdalabs_provisioner.engine.types import Outcome
from lambdalabs_provisioner.resources.base import ResourceHandle
from lambdalabs_provisioner.resources.instance import InstanceResource, InstanceState
from lambdalabs_provisioner.resources.values import PENDING, UNSET, Known, Pending, Unset, known

if TYPE_CHECKING:
    from lambdalabs_provisioner.engine.handlers import EngineContext

logger = logging.getLogger(__name__)

# Status reported while an instance is still being provisioned.
BOOTING = "booting"


# ── Wire models ─────────────────────────────────────────────────────


class _Named(BaseModel):
    name: str
    description: str | None = None


class _LaunchData(BaseModel):
    instance_ids: list[str]


class _LaunchResponse(BaseModel):
    data: _LaunchData


class RemoteInstance(BaseModel):
    """Instance record as returned by ``GET instances/{id}``."""

    id: str
    name: str | None = None
    ip: str | None = None
    status: str | None = None
    hostname: str | None = None
    jupyter_url: str | None = None
    ssh_key_names: list[str] = Field(default_factory=list)
    file_system_names: list[str] = Field(default_factory=list)
    region: _Named
    instance_type: _Named


class _GetResponse(BaseModel):
    data: RemoteInstance


class _InstanceRef(BaseModel):
    id: str


class _TerminateData(BaseModel):
    terminated_instances: list[_InstanceRef] = Field(default_factory=list)


class _TerminateResponse(BaseModel):
    data: _TerminateData


# ── Handler ─────────────────────────────────────────────────────────


class InstanceHandler(ResourceHandler[InstanceResource, InstanceState]):
    """Lifecycle handler for compute instances."""

    state_model = InstanceState

    def validate(self, desired: InstanceResource) -> list[str]:
        errors: list[str] = []
        if len(desired.ssh_key_names) != 1:
            errors.append(
                f"{desired.address}: exactly one SSH key name must be specified, "
                f"got {len(desired.ssh_key_names)}"
            )
        return errors

    def _launch_payload(self, desired: InstanceResource) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "region_name": desired.region_name,
            "instance_type_name": desired.instance_type_name,
            "ssh_key_names": list(desired.ssh_key_names),
            "quantity": 1,
            "name": desired.name,
        }
        if desired.file_system_names:
            payload["file_system_names"] = list(desired.file_system_names)
        return payload

    def _state_from_remote(self, remote: RemoteInstance) -> InstanceState:
        ip: Unset | Pending | Known = known(remote.ip)
        if remote.ip is None and remote.status == BOOTING:
            ip = PENDING
        return InstanceState(
            id=ResourceHandle(remote.id),
            region_name=remote.region.name,
            instance_type_name=remote.instance_type.name,
            ssh_key_names=remote.ssh_key_names,
            file_system_names=remote.file_system_names,
            name=known(remote.name),
            ip=ip,
            status=known(remote.status),
            hostname=known(remote.hostname),
            jupyter_url=known(remote.jupyter_url),
        )

    def create(self, ctx: EngineContext, desired: InstanceResource) -> InstanceState:
        """Launch a single instance."""
        self._check_validation(desired)

        resp = self._send(
            ctx, "POST", "instance-operations/launch", json=self._launch_payload(desired)
        )
        launched = self._expect(resp, _LaunchResponse)

        ids = launched.data.instance_ids
        if len(ids) != 1:
            raise ResponseCardinalityError(expected=1, got=len(ids))

        logger.info("Launched instance %s for %s", ids[0], desired.address)
        # The launch response carries only the id; address and status follow later.
        return InstanceState(
            id=ResourceHandle(ids[0]),
            region_name=desired.region_name,
            instance_type_name=desired.instance_type_name,
            ssh_key_names=list(desired.ssh_key_names),
            file_system_names=list(desired.file_system_names or []),
            name=Known(value=desired.name) if desired.name else UNSET,
            ip=PENDING,
            status=PENDING,
            hostname=PENDING,
            jupyter_url=PENDING,
        )

    def read(
        self,
        ctx: EngineContext,
        handle: ResourceHandle,
        prior: InstanceState | None = None,
    ) -> InstanceState | Literal[Outcome.ABSENT]:
        """Read an instance. Returns ``Outcome.ABSENT`` when the id is unknown."""
        resp = self._send(ctx, "GET", f"instances/{handle}")
        error = classify(resp)
        if isinstance(error, NotFoundError):
            logger.info("Instance %s no longer exists", handle)
            return Outcome.ABSENT
        if error is not None:
            raise error

        current = self._state_from_remote(decode(resp, _GetResponse).data)
        if prior is not None:
            for field, (before, after) in current.drift_from(prior).items():
                logger.warning("Instance %s drifted: %s %r -> %r", handle, field, before, after)
        return current

    def _mutable_attrs(self, desired: InstanceResource) -> dict[str, Any]:
        return {
            "name": Known(value=desired.name) if desired.name else UNSET,
            "file_system_names": list(desired.file_system_names or []),
        }

    def delete(
        self, ctx: EngineContext, handle: ResourceHandle
    ) -> Literal[Outcome.DELETED, Outcome.ALREADY_GONE]:
        """Terminate an instance."""
        resp = self._send(
            ctx, "POST", "instance-operations/terminate", json={"instance_ids": [handle]}
        )
        error = classify(resp)
        if isinstance(error, NotFoundError):
            logger.info("Instance %s already terminated", handle)
            return Outcome.ALREADY_GONE
        if error is not None:
            raise error

        terminated = decode(resp, _TerminateResponse).data.terminated_instances
        logger.info(
            "Terminated instance %s (%s)",
            handle,
            ", ".join(i.id for i in terminated) or "no ids reported",
        )
        return Outcome.DELETED
