"""YAML configuration file loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML

from lambdalabs_provisioner.config.schema import Config
from lambdalabs_provisioner.engine.errors import ConfigError
from lambdalabs_provisioner.resources.instance import InstanceResource
from lambdalabs_provisioner.resources.schema import validate_attributes
from lambdalabs_provisioner.resources.ssh_key import SSHKeyResource

logger = logging.getLogger(__name__)

__all__ = ["ConfigError", "load_config"]

# Field name → environment variable.
_PROVIDER_ENV_MAP: dict[str, str] = {
    "api_key": "LAMBDA_API_KEY",
    "base_url": "LAMBDA_BASE_URL",
    "timeout": "LAMBDA_TIMEOUT",
}

# Config section → resource type of its entries.
_SECTIONS: dict[str, str] = {
    "instances": InstanceResource.resource_type,
    "ssh_keys": SSHKeyResource.resource_type,
}


def _resolve_provider(raw_provider: dict[str, Any], config_dir: Path) -> dict[str, Any]:
    """Resolve provider fields from YAML, env vars, and ``.env`` file.

    Priority (highest wins): YAML value > env var > ``.env`` file.
    """
    env_file = config_dir / ".env"
    dotenv_vals = dotenv_values(env_file, encoding="utf-8-sig") if env_file.is_file() else {}

    resolved: dict[str, Any] = {}
    for field, env_key in _PROVIDER_ENV_MAP.items():
        val = raw_provider.get(field)
        if val is None:
            val = os.environ.get(env_key)
        if val is None:
            val = dotenv_vals.get(env_key)
        if val is not None:
            resolved[field] = val

    unknown = set(raw_provider) - set(_PROVIDER_ENV_MAP)
    if unknown:
        raise ConfigError(f"Unknown provider setting(s): {', '.join(sorted(unknown))}")
    return resolved


def _validate_sections(raw: dict[str, Any]) -> list[str]:
    """Check every resource block against its attribute table."""
    errors: list[str] = []
    for section, resource_type in _SECTIONS.items():
        entries = raw.get(section) or {}
        if not isinstance(entries, dict):
            errors.append(f"'{section}' must be a mapping of label to attributes")
            continue
        for label, attrs in entries.items():
            if not isinstance(attrs, dict):
                errors.append(f"{resource_type}.{label}: expected a mapping of attributes")
                continue
            errors.extend(validate_attributes(resource_type, str(label), attrs))
    return errors


def load_config(path: Path | str) -> Config:
    """Load a YAML configuration file and return a ``Config`` object.

    Raises:
        ConfigError: On YAML parse errors, unknown or computed attributes,
            missing required attributes, or validation failures.
    """
    path = Path(path)

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    errors = _validate_sections(raw)
    if errors:
        raise ConfigError("\n".join(errors))

    try:
        raw["provider"] = _resolve_provider(raw.get("provider") or {}, path.parent)
        config = Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    config.config_dir = path.parent

    logger.info("Loaded config from %s (%d resources)", path, len(config.resources))
    return config
