"""Reconciler: maps host lifecycle events onto resource handlers."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from lambdalabs_provisioner.core.state import ResourceInstance, State
from lambdalabs_provisioner.engine.errors import NotFoundError
from lambdalabs_provisioner.engine.handlers import EngineContext
from lambdalabs_provisioner.engine.types import Outcome

if TYPE_CHECKING:
    from lambdalabs_provisioner.engine.handlers import ResourceHandler
    from lambdalabs_provisioner.engine.registry import ResourceTypeRegistry
    from lambdalabs_provisioner.resources.base import ObservedState, Resource

logger = logging.getLogger(__name__)


def split_address(address: str) -> tuple[str, str]:
    """Split ``"<resource_type>.<label>"`` into its parts."""
    resource_type, sep, label = address.partition(".")
    if not sep or not resource_type or not label:
        raise ValueError(f"Invalid resource address: {address!r}")
    return resource_type, label


class Reconciler:
    """Thin façade over the handlers.

    Converts between state-file records (:class:`ResourceInstance`) and the
    typed records the handlers work on. It adds no lifecycle logic of its
    own, and persists nothing: callers store the records it returns.
    """

    def __init__(self, registry: ResourceTypeRegistry, ctx: EngineContext | None = None) -> None:
        self._registry = registry
        self._ctx = ctx or EngineContext()

    def _handler(self, resource_type: str) -> ResourceHandler[Any, Any]:
        return self._registry.get(resource_type).handler

    def _observed(self, inst: ResourceInstance) -> ObservedState:
        return self._handler(inst.resource_type).state_model.model_validate(inst.attributes)

    @staticmethod
    def _record(
        resource_type: str,
        label: str,
        observed: ObservedState,
        prior: ResourceInstance | None = None,
    ) -> ResourceInstance:
        now = datetime.now()
        return ResourceInstance(
            address=f"{resource_type}.{label}",
            resource_type=resource_type,
            label=label,
            id=observed.id,
            attributes=observed.model_dump(mode="json"),
            created_at=prior.created_at if prior is not None else now,
            updated_at=now,
        )

    def validate(self, desired: Resource) -> list[str]:
        """Local precondition checks for *desired*; no request is sent."""
        return self._handler(desired.resource_type).validate(desired)

    def create(self, desired: Resource) -> ResourceInstance:
        handler = self._handler(desired.resource_type)
        observed = handler.create(self._ctx, desired)
        logger.debug("Created %s as %s", desired.address, observed.id)
        return self._record(desired.resource_type, desired.label, observed)

    def read(self, inst: ResourceInstance) -> ResourceInstance | None:
        """Refresh a tracked resource. Returns ``None`` if it no longer exists."""
        handler = self._handler(inst.resource_type)
        result = handler.read(self._ctx, inst.id, self._observed(inst))
        if result is Outcome.ABSENT:
            return None
        return self._record(inst.resource_type, inst.label, result, inst)

    def update(self, desired: Resource, inst: ResourceInstance) -> ResourceInstance:
        handler = self._handler(desired.resource_type)
        observed = handler.update(self._ctx, inst.id, desired, self._observed(inst))
        return self._record(desired.resource_type, desired.label, observed, inst)

    def delete(self, inst: ResourceInstance) -> Outcome:
        return self._handler(inst.resource_type).delete(self._ctx, inst.id)

    def import_resource(self, address: str, external_id: str) -> ResourceInstance:
        """Bind *address* to an existing remote object and read it in.

        Raises:
            NotFoundError: No remote object has that identifier.
        """
        resource_type, label = split_address(address)
        handler = self._handler(resource_type)
        handle = handler.import_resource(self._ctx, external_id)
        result = handler.read(self._ctx, handle)
        if result is Outcome.ABSENT:
            raise NotFoundError(f"Cannot import {address}: no remote object with id {handle}")
        return self._record(resource_type, label, result)

    def refresh(self, state: State) -> tuple[State, list[str]]:
        """Read every tracked resource, one at a time.

        Returns a new state (not persisted) and the addresses dropped
        because their remote object is gone.
        """
        new_state = state.model_copy(deep=True)
        removed: list[str] = []
        for address, inst in sorted(state.resources.items()):
            refreshed = self.read(inst)
            if refreshed is None:
                logger.info("%s no longer exists remotely; dropping it from state", address)
                new_state.resources.pop(address)
                removed.append(address)
            else:
                new_state.resources[address] = refreshed
        return new_state, removed
