"""YAML configuration loading and single-resource lifecycle API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import SecretStr

from lambdalabs_provisioner.config.loader import ConfigError, load_config
from lambdalabs_provisioner.config.schema import Config, ProviderConfig
from lambdalabs_provisioner.core.provider import LambdaProvider
from lambdalabs_provisioner.core.state import ResourceInstance, State
from lambdalabs_provisioner.engine.lock import StateLock
from lambdalabs_provisioner.engine.reconciler import Reconciler
from lambdalabs_provisioner.engine.registry import default_registry
from lambdalabs_provisioner.engine.types import Outcome

if TYPE_CHECKING:
    from pathlib import Path

    from lambdalabs_provisioner.engine.handlers import EngineContext
    from lambdalabs_provisioner.resources.base import Resource

__all__ = [
    "Config",
    "ConfigError",
    "ProviderConfig",
    "State",
    "create",
    "delete",
    "drift",
    "import_resource",
    "load",
    "load_config",
    "load_state",
    "read",
    "refresh",
    "reconciler_from_config",
    "update",
    "validate",
]

logger = logging.getLogger(__name__)


def load(path: Path | str) -> Config:
    """Load a YAML configuration file."""
    return load_config(path)


def load_state(config: Config) -> State:
    """Load the state file named by the configuration (or an empty state)."""
    return State.load_or_create(config.state_path)


def _provider_from_config(config: Config) -> LambdaProvider:
    api_key = SecretStr(config.provider.api_key) if config.provider.api_key else None
    provider = LambdaProvider(
        api_key=api_key,
        base_url=config.provider.base_url,
        timeout=config.provider.timeout,
    )
    # Fail on a missing key before any state is touched.
    provider.resolve_api_key()
    return provider


def reconciler_from_config(config: Config, ctx: EngineContext | None = None) -> Reconciler:
    """Build a ``Reconciler`` from a ``Config`` instance."""
    return Reconciler(default_registry(_provider_from_config(config)), ctx)


def validate(config: Config) -> list[str]:
    """Local precondition errors for every declared resource.

    Needs no API key and sends no request.
    """
    reconciler = Reconciler(default_registry(LambdaProvider()))
    return [error for desired in config.resources for error in reconciler.validate(desired)]


def _declared(config: Config, address: str) -> Resource:
    desired = config.get(address)
    if desired is None:
        raise ConfigError(f"{address} is not declared in the configuration")
    return desired


def _tracked(state: State, address: str) -> ResourceInstance:
    inst = state.resources.get(address)
    if inst is None:
        raise ConfigError(f"{address} is not tracked in the state file")
    return inst


def _save(config: Config, state: State) -> None:
    state.serial += 1
    state.save(config.state_path)


def create(config: Config, address: str, *, ctx: EngineContext | None = None) -> ResourceInstance:
    """Create a declared resource and record it in the state file."""
    desired = _declared(config, address)
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        if address in state.resources:
            raise ConfigError(
                f"{address} already exists (id {state.resources[address].id}); "
                "delete it first to recreate"
            )
        inst = reconciler.create(desired)
        state.resources[address] = inst
        _save(config, state)
    return inst


def read(
    config: Config, address: str, *, ctx: EngineContext | None = None
) -> ResourceInstance | None:
    """Refresh one tracked resource. Returns ``None`` (and forgets it) if it is gone."""
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        refreshed = reconciler.read(_tracked(state, address))
        if refreshed is None:
            state.resources.pop(address)
        else:
            state.resources[address] = refreshed
        _save(config, state)
    return refreshed


def update(config: Config, address: str, *, ctx: EngineContext | None = None) -> ResourceInstance:
    """Apply non-identity changes of a declared resource to its state record."""
    desired = _declared(config, address)
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        inst = reconciler.update(desired, _tracked(state, address))
        state.resources[address] = inst
        _save(config, state)
    return inst


def delete(config: Config, address: str, *, ctx: EngineContext | None = None) -> Outcome:
    """Delete a tracked resource and drop it from the state file."""
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        outcome = reconciler.delete(_tracked(state, address))
        state.resources.pop(address)
        _save(config, state)
    return outcome


def import_resource(
    config: Config, address: str, external_id: str, *, ctx: EngineContext | None = None
) -> ResourceInstance:
    """Start tracking an existing remote object under *address*."""
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        if address in state.resources:
            raise ConfigError(f"{address} is already tracked (id {state.resources[address].id})")
        inst = reconciler.import_resource(address, external_id)
        state.resources[address] = inst
        _save(config, state)
    return inst


def refresh(
    config: Config, *, persist: bool = True, ctx: EngineContext | None = None
) -> tuple[State, list[str]]:
    """Refresh every tracked resource from the live service.

    Returns the refreshed state and the addresses that no longer exist.
    """
    reconciler = reconciler_from_config(config, ctx)
    with StateLock(config.state_path):
        state = load_state(config)
        new_state, removed = reconciler.refresh(state)
        if persist:
            _save(config, new_state)
    return new_state, removed


def drift(config: Config, *, ctx: EngineContext | None = None) -> dict[str, dict[str, Any]]:
    """Attribute differences between the state file and the live service (not persisted).

    Returns ``address -> {attribute: {"from": old, "to": new}}``; a resource
    that no longer exists maps to ``{}``.
    """
    old_state = load_state(config)
    new_state, removed = refresh(config, persist=False, ctx=ctx)
    changes: dict[str, dict[str, Any]] = {address: {} for address in removed}
    for address, inst in new_state.resources.items():
        old = old_state.resources[address].attributes
        new = inst.attributes
        diff = {
            k: {"from": old.get(k), "to": new.get(k)}
            for k in sorted(set(old) | set(new))
            if old.get(k) != new.get(k)
        }
        if diff:
            changes[address] = diff
    return changes
