"""SSH key handler implementing the lifecycle via the ssh-keys API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from lambdalabs_provisioner.engine.classifier import classify
from lambdalabs_provisioner.engine.errors import NotFoundError, RemoteError
from lambdalabs_provisioner.engine.handlers import ResourceHandler
from lambdalabs_provisioner.engine.matcher import find_by_id
from lambdalabs_provisioner.engine.types import Outcome
from lambdalabs_provisioner.resources.base import ResourceHandle
from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource, SSHKeyState
from lambdalabs_provisioner.resources.values import Known, known

if TYPE_CHECKING:
    from lambdalabs_provisioner.engine.handlers import EngineContext

logger = logging.getLogger(__name__)


class RemoteSSHKey(BaseModel):
    id: str
    name: str
    public_key: str | None = None
    private_key: str | None = None


class _CreateResponse(BaseModel):
    data: RemoteSSHKey


class _ListResponse(BaseModel):
    data: list[RemoteSSHKey]


class SSHKeyHandler(ResourceHandler[SSHKeyResource, SSHKeyState]):
    """Lifecycle handler for account SSH keys."""

    state_model = SSHKeyState

    def _state_from_remote(self, remote: RemoteSSHKey) -> SSHKeyState:
        # private_key is only present in the response that generated it.
        return SSHKeyState(
            id=ResourceHandle(remote.id),
            name=remote.name,
            public_key=known(remote.public_key),
            private_key=known(remote.private_key),
        )

    def create(self, ctx: EngineContext, desired: SSHKeyResource) -> SSHKeyState:
        """Register (or generate) an SSH key."""
        self._check_validation(desired)

        payload: dict[str, Any] = {"name": desired.name}
        if desired.public_key is not None:
            payload["public_key"] = desired.public_key.get_secret_value()

        resp = self._send(ctx, "POST", "ssh-keys", json=payload)
        created = self._expect(resp, _CreateResponse).data

        logger.info(
            "Created SSH key %s for %s (%s)",
            created.id,
            desired.address,
            "generated" if created.private_key else "imported",
        )
        return self._state_from_remote(created)

    def read(
        self,
        ctx: EngineContext,
        handle: ResourceHandle,
        prior: SSHKeyState | None = None,
    ) -> SSHKeyState | Literal[Outcome.ABSENT]:
        """Find the key in the account listing. Returns ``Outcome.ABSENT`` if missing."""
        resp = self._send(ctx, "GET", "ssh-keys")
        try:
            keys = self._expect(resp, _ListResponse).data
        except NotFoundError as exc:
            # A missing listing endpoint says nothing about the key itself.
            raise RemoteError(resp.status_code, str(exc)) from exc

        match = find_by_id(keys, handle)
        if match is None:
            logger.info("SSH key %s no longer exists", handle)
            return Outcome.ABSENT

        current = self._state_from_remote(match)
        if prior is not None:
            for field, (before, after) in current.drift_from(prior).items():
                logger.warning("SSH key %s drifted: %s %r -> %r", handle, field, before, after)
        return current

    def _mutable_attrs(self, desired: SSHKeyResource) -> dict[str, Any]:
        if desired.public_key is None:
            return {}
        return {"public_key": Known(value=desired.public_key.get_secret_value())}

    def delete(
        self, ctx: EngineContext, handle: ResourceHandle
    ) -> Literal[Outcome.DELETED, Outcome.ALREADY_GONE]:
        """Delete an SSH key."""
        resp = self._send(ctx, "DELETE", f"ssh-keys/{handle}")
        error = classify(resp)
        if isinstance(error, NotFoundError):
            logger.info("SSH key %s already deleted", handle)
            return Outcome.ALREADY_GONE
        if error is not None:
            raise error

        logger.info("Deleted SSH key %s", handle)
        return Outcome.DELETED

