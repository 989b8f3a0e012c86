"""Reconciliation engine for Lambda Cloud resources."""

from lambdalabs_provisioner.engine.errors import (
    ConfigError,
    DecodeError,
    NotFoundError,
    ProvisionerError,
    RemoteError,
    ResponseCardinalityError,
    StateLockError,
    TransportError,
    UnknownResourceTypeError,
    ValidationError,
)
from lambdalabs_provisioner.engine.handlers import EngineContext, ResourceHandler
from lambdalabs_provisioner.engine.types import Outcome

__all__ = [
    "ConfigError",
    "DecodeError",
    "EngineContext",
    "NotFoundError",
    "Outcome",
    "ProvisionerError",
    "RemoteError",
    "ResourceHandler",
    "ResponseCardinalityError",
    "StateLockError",
    "TransportError",
    "UnknownResourceTypeError",
    "ValidationError",
]
