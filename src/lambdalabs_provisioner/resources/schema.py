"""Attribute metadata for each resource kind.

The tables describe how attributes behave at the configuration boundary:
which ones a user must or may declare, which ones only the service
computes, and which ones must never be printed.  The reconciliation
handlers work on the typed records and do not consult these tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from lambdalabs_provisioner.resources.instance import InstanceResource
from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource


@dataclass(frozen=True, slots=True)
class AttributeSpec:
    """One attribute of a resource kind.

    - ``required``: must be declared
    - ``computed``: reported by the service; declaring it is an error unless ``optional``
    - ``sensitive``: masked in any output
    """

    description: str
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False

    @property
    def configurable(self) -> bool:
        return self.required or self.optional


INSTANCE_ATTRIBUTES: dict[str, AttributeSpec] = {
    "region_name": AttributeSpec("Short name of a region", required=True),
    "instance_type_name": AttributeSpec("Name of an instance type", required=True),
    "ssh_key_names": AttributeSpec(
        "Names of the SSH keys allowed to access the instance. "
        "Currently, exactly one SSH key must be specified.",
        required=True,
    ),
    "file_system_names": AttributeSpec(
        "Names of the file systems to attach. Currently, at most one may be specified.",
        optional=True,
    ),
    "name": AttributeSpec("User-provided name for the instance", optional=True),
    "ip": AttributeSpec("IPv4 address of the instance", computed=True),
    "status": AttributeSpec("Lifecycle status of the instance", computed=True),
    "hostname": AttributeSpec("Hostname assigned to the instance", computed=True),
    "jupyter_url": AttributeSpec("URL of the instance's Jupyter server", computed=True),
    "id": AttributeSpec("Identifier of the instance", computed=True),
}

SSH_KEY_ATTRIBUTES: dict[str, AttributeSpec] = {
    "name": AttributeSpec("Name of the SSH key", required=True),
    "public_key": AttributeSpec(
        "Public key. Omit to have a key pair generated.",
        optional=True,
        computed=True,
        sensitive=True,
    ),
    "private_key": AttributeSpec(
        "Private key. Only returned when a new key pair is generated.",
        computed=True,
        sensitive=True,
    ),
    "id": AttributeSpec("Identifier of the SSH key", computed=True),
}

SCHEMAS: dict[str, dict[str, AttributeSpec]] = {
    InstanceResource.resource_type: INSTANCE_ATTRIBUTES,
    SSHKeyResource.resource_type: SSH_KEY_ATTRIBUTES,
}


def validate_attributes(resource_type: str, label: str, attrs: dict[str, Any]) -> list[str]:
    """Check a declared block against its attribute table.

    Return list of error messages (empty = valid).
    """
    table = SCHEMAS[resource_type]
    address = f"{resource_type}.{label}"
    errors: list[str] = []
    for key in attrs:
        spec = table.get(key)
        if spec is None:
            errors.append(f"{address}: unknown attribute '{key}'")
        elif not spec.configurable:
            errors.append(f"{address}: '{key}' is computed by the service and cannot be set")
    errors.extend(
        f"{address}: missing required attribute '{key}'"
        for key, spec in table.items()
        if spec.required and attrs.get(key) is None
    )
    return errors


def sensitive_attributes(resource_type: str) -> frozenset[str]:
    return frozenset(k for k, spec in SCHEMAS[resource_type].items() if spec.sensitive)
