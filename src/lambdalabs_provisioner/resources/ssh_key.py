"""SSH key resource models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field, SecretStr

from lambdalabs_provisioner.resources.base import ObservedState, Resource
from lambdalabs_provisioner.resources.values import UNSET, Tristate


class SSHKeyResource(Resource):
    """An SSH key registered on the account.

    Without ``public_key`` the service generates a key pair and returns the
    private key once, in the creation response.
    """

    resource_type: ClassVar[str] = "lambdalabs_sshkey"
    identity_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: str = Field(min_length=1)
    public_key: SecretStr | None = None


class SSHKeyState(ObservedState):
    """Observed state of a registered SSH key."""

    identity_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: str
    public_key: Tristate = UNSET
    private_key: Tristate = UNSET
