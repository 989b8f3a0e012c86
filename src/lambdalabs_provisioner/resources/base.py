"""Base classes for desired and observed resource records."""

from typing import Any, ClassVar, NewType

from pydantic import BaseModel, ConfigDict, Field, computed_field

# Opaque identifier binding a record to its remote object. Never regenerated.
ResourceHandle = NewType("ResourceHandle", str)


def _normalize(value: Any) -> Any:
    # Identity lists are sets; order is not significant.
    if isinstance(value, list):
        return tuple(sorted(value))
    return value


class Resource(BaseModel):
    """Base class for desired-state records.

    Resources are pure data - they define the desired state.
    Handlers know how to reconcile them against the remote service.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str]
    # Fields that cannot change without recreating the remote object.
    identity_fields: ClassVar[tuple[str, ...]] = ()

    label: str = Field(pattern=r"^[a-zA-Z0-9_-]+$")

    @computed_field
    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'lambdalabs_instance.trainer')."""
        return f"{self.resource_type}.{self.label}"

    def identity(self) -> dict[str, Any]:
        return {f: _normalize(getattr(self, f)) for f in self.identity_fields}


class ObservedState(BaseModel):
    """Base class for observed-state records.

    Every field is populated from a remote response, never invented locally.
    """

    model_config = ConfigDict(extra="forbid")

    identity_fields: ClassVar[tuple[str, ...]] = ()

    id: ResourceHandle

    def identity(self) -> dict[str, Any]:
        return {f: _normalize(getattr(self, f)) for f in self.identity_fields}

    def drift_from(self, prior: "ObservedState") -> dict[str, tuple[Any, Any]]:
        """Identity fields that differ from *prior*, as ``field -> (prior, current)``."""
        before = prior.identity()
        after = self.identity()
        return {f: (before[f], after[f]) for f in self.identity_fields if before[f] != after[f]}
