"""Resource definitions for Lambda Cloud."""

from lambdalabs_provisioner.resources.base import ObservedState, Resource, ResourceHandle
from lambdalabs_provisioner.resources.instance import InstanceResource, InstanceState
from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource, SSHKeyState
from lambdalabs_provisioner.resources.values import PENDING, UNSET, Known, Pending, Unset

__all__ = [
    "PENDING",
    "UNSET",
    "InstanceResource",
    "InstanceState",
    "Known",
    "ObservedState",
    "Pending",
    "Resource",
    "ResourceHandle",
    "SSHKeyResource",
    "SSHKeyState",
    "Unset",
]
