"""Lambda provider - credential and client for the Lambda Cloud API."""

import logging
import os
from functools import cached_property
from typing import TYPE_CHECKING, Self

from pydantic import BaseModel, ConfigDict, SecretStr

from lambdalabs_provisioner.core.client import DEFAULT_TIMEOUT, LAMBDA_API_BASE, ProvisioningClient
from lambdalabs_provisioner.engine.errors import ConfigError

if TYPE_CHECKING:
    from lambdalabs_provisioner.engine.instance_handler import InstanceHandler
    from lambdalabs_provisioner.engine.ssh_key_handler import SSHKeyHandler

logger = logging.getLogger(__name__)

API_KEY_ENV = "LAMBDA_API_KEY"


class LambdaProvider(BaseModel):
    """Connection configuration for the Lambda Cloud API.

    The API key is resolved once, when the client is first built: an
    explicit ``api_key`` wins, otherwise ``LAMBDA_API_KEY`` is used.

    Examples:
        # Explicit key
        provider = LambdaProvider(api_key=SecretStr("secret"))

        # Key from the environment
        provider = LambdaProvider()

        # Testing with a prepared client
        provider = LambdaProvider.from_client(ProvisioningClient("k", transport=mock))
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    api_key: SecretStr | None = None
    base_url: str = LAMBDA_API_BASE
    timeout: float = DEFAULT_TIMEOUT

    # Injected client (for testing)
    _injected_client: ProvisioningClient | None = None

    @classmethod
    def from_client(cls, client: ProvisioningClient) -> Self:
        """Create a provider with an injected client.

        Args:
            client: A pre-configured ProvisioningClient instance
        """
        provider = cls.model_construct()
        provider._injected_client = client
        return provider

    def resolve_api_key(self) -> str:
        """Return the API key from explicit configuration or the environment.

        Raises:
            ConfigError: Neither source provides a key.
        """
        if self.api_key is not None and self.api_key.get_secret_value():
            return self.api_key.get_secret_value()
        env_key = os.environ.get(API_KEY_ENV)
        if env_key:
            logger.debug("Using API key from %s", API_KEY_ENV)
            return env_key
        raise ConfigError(
            "Missing API key: set provider.api_key in the configuration "
            f"or the {API_KEY_ENV} environment variable"
        )

    @cached_property
    def client(self) -> ProvisioningClient:
        """Get the provisioning client."""
        if self._injected_client is not None:
            return self._injected_client

        return ProvisioningClient(
            self.resolve_api_key(),
            base_url=self.base_url,
            timeout=self.timeout,
        )

    # Handlers for each resource kind
    @cached_property
    def instances(self) -> "InstanceHandler":
        from lambdalabs_provisioner.engine.instance_handler import InstanceHandler

        return InstanceHandler(client_factory=lambda: self.client)

    @cached_property
    def ssh_keys(self) -> "SSHKeyHandler":
        from lambdalabs_provisioner.engine.ssh_key_handler import SSHKeyHandler

        return SSHKeyHandler(client_factory=lambda: self.client)
