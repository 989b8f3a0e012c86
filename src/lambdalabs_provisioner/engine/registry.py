"""Resource type registry for handler dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lambdalabs_provisioner.engine.errors import UnknownResourceTypeError

if TYPE_CHECKING:
    from lambdalabs_provisioner.core.provider import LambdaProvider
    from lambdalabs_provisioner.engine.handlers import ResourceHandler
    from lambdalabs_provisioner.resources.base import Resource


@dataclass(frozen=True)
class ResourceTypeRegistration:
    resource_type: str
    model: type[Resource]
    handler: ResourceHandler[Any, Any]


class ResourceTypeRegistry:
    """Registry mapping resource_type -> (model, handler)."""

    def __init__(self) -> None:
        self._registrations: dict[str, ResourceTypeRegistration] = {}

    def register(self, model: type[Resource], handler: ResourceHandler[Any, Any]) -> None:
        resource_type = getattr(model, "resource_type", None)
        if not isinstance(resource_type, str) or not resource_type:
            raise ValueError("Resource model must define a non-empty classvar `resource_type`")

        if resource_type in self._registrations:
            raise ValueError(f"Resource type already registered: {resource_type}")

        self._registrations[resource_type] = ResourceTypeRegistration(
            resource_type=resource_type,
            model=model,
            handler=handler,
        )

    def get(self, resource_type: str) -> ResourceTypeRegistration:
        try:
            return self._registrations[resource_type]
        except KeyError as e:
            raise UnknownResourceTypeError(resource_type) from e

    def resource_types(self) -> list[str]:
        return sorted(self._registrations)


def default_registry(provider: LambdaProvider) -> ResourceTypeRegistry:
    """Registry with both Lambda Cloud resource kinds, sharing the provider's client."""
    from lambdalabs_provisioner.resources.instance import InstanceResource
    from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource

    registry = ResourceTypeRegistry()
    registry.register(InstanceResource, provider.instances)
    registry.register(SSHKeyResource, provider.ssh_keys)
    return registry
