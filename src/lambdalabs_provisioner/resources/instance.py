"""Compute instance resource models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from lambdalabs_provisioner.resources.base import ObservedState, Resource
from lambdalabs_provisioner.resources.values import UNSET, Tristate

_INSTANCE_IDENTITY = ("region_name", "instance_type_name", "ssh_key_names")


class InstanceResource(Resource):
    """A Lambda Cloud compute instance.

    Region, instance type and SSH keys are fixed at launch. The API
    currently accepts exactly one SSH key and at most one file system.
    """

    resource_type: ClassVar[str] = "lambdalabs_instance"
    identity_fields: ClassVar[tuple[str, ...]] = _INSTANCE_IDENTITY

    region_name: str = Field(min_length=1)
    instance_type_name: str = Field(min_length=1)
    ssh_key_names: list[str]
    file_system_names: list[str] | None = None
    name: str | None = None


class InstanceState(ObservedState):
    """Observed state of a launched instance."""

    identity_fields: ClassVar[tuple[str, ...]] = _INSTANCE_IDENTITY

    region_name: str
    instance_type_name: str
    ssh_key_names: list[str]
    file_system_names: list[str] = Field(default_factory=list)
    name: Tristate = UNSET
    ip: Tristate = UNSET
    status: Tristate = UNSET
    hostname: Tristate = UNSET
    jupyter_url: Tristate = UNSET
