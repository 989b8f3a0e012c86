"""Core infrastructure components for the Lambda provisioner."""

from lambdalabs_provisioner.core.client import ApiResponse, ProvisioningClient
from lambdalabs_provisioner.core.provider import LambdaProvider
from lambdalabs_provisioner.core.state import ResourceInstance, State

__all__ = ["ApiResponse", "LambdaProvider", "ProvisioningClient", "ResourceInstance", "State"]
