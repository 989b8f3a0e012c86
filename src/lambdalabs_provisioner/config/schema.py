"""Configuration models for YAML-based provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lambdalabs_provisioner.core.client import DEFAULT_TIMEOUT, LAMBDA_API_BASE
from lambdalabs_provisioner.engine.reconciler import split_address
from lambdalabs_provisioner.resources.instance import InstanceResource
from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource

if TYPE_CHECKING:
    from lambdalabs_provisioner.resources.base import Resource


class ProviderConfig(BaseSettings):
    """Lambda Cloud connection settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``LAMBDA_`` prefix.  Constructor kwargs take precedence.

    ``api_key`` is typically provided via the ``LAMBDA_API_KEY`` environment
    variable rather than YAML to avoid committing secrets to version control.
    """

    model_config = SettingsConfigDict(env_prefix="LAMBDA_")

    api_key: str | None = None
    base_url: str = LAMBDA_API_BASE
    timeout: float = DEFAULT_TIMEOUT


def _labelled(v: Any) -> Any:
    """Turn ``{label: {attrs}}`` into ``{label: {"label": label, **attrs}}``."""
    if v is None:
        return {}
    if isinstance(v, dict):
        return {
            label: {"label": label, **attrs} if isinstance(attrs, dict) else attrs
            for label, attrs in v.items()
        }
    return v


class Config(BaseModel):
    """Provisioning configuration, validated straight from the YAML structure."""

    provider: ProviderConfig
    state_path: Path = Path(".lambdalabs-state.json")
    instances: Annotated[dict[str, InstanceResource], BeforeValidator(_labelled)] = {}
    ssh_keys: Annotated[dict[str, SSHKeyResource], BeforeValidator(_labelled)] = {}
    config_dir: Path = Path()

    @property
    def resources(self) -> list[Resource]:
        """All declared resources; ordering is not significant."""
        return [*self.ssh_keys.values(), *self.instances.values()]

    def get(self, address: str) -> Resource | None:
        """Look up a declared resource by address."""
        resource_type, label = split_address(address)
        if resource_type == InstanceResource.resource_type:
            return self.instances.get(label)
        if resource_type == SSHKeyResource.resource_type:
            return self.ssh_keys.get(label)
        return None
