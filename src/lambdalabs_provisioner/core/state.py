"""State management for tracking provisioned resources."""

import contextlib
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ResourceInstance(BaseModel):
    """A tracked resource instance in the state file.

    Attributes:
        address: Unique resource address (e.g., "lambdalabs_instance.trainer")
        resource_type: Type of the resource (e.g., "lambdalabs_instance")
        label: Label the resource is declared under
        id: Remote identifier bound at create/import
        attributes: Observed attribute values (serialized observed record)
        created_at: When the resource was created or imported
        updated_at: When the resource was last refreshed or updated
    """

    address: str
    resource_type: str
    label: str
    id: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class State(BaseModel):
    """Terraform-style state file for tracking provisioned resources.

    Attributes:
        version: State file format version
        serial: Incremented on every write
        lineage: Identifies the state across writes
        resources: Mapping of resource addresses to instances
    """

    version: int = 1
    serial: int = 0
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()))
    resources: dict[str, ResourceInstance] = Field(default_factory=dict)

    def save(self, path: Path) -> None:
        """Save state to a JSON file.

        - Writes atomically (temp file + rename)
        - Writes a `.backup` copy of the previous state when overwriting
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = Path(str(path) + ".backup")
        # Avoid TOCTOU race between exists() and read_bytes().
        with contextlib.suppress(FileNotFoundError):
            backup_path.write_bytes(path.read_bytes())

        data = self.model_dump(mode="json")
        content = json.dumps(data, indent=2, sort_keys=True) + "\n"

        fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        tmp_file = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            tmp_file.replace(path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_file.unlink()
        logger.debug("State saved: serial=%d path=%s", self.serial, path)

    @classmethod
    def load(cls, path: Path) -> "State":
        """Load state from a JSON file."""
        state = cls.model_validate_json(path.read_text())
        logger.debug("State loaded from %s", path)
        return state

    @classmethod
    def load_or_create(cls, path: Path) -> "State":
        """Load existing state or create a new one."""
        if path.exists():
            return cls.load(path)
        logger.debug("Created new state at %s", path)
        return cls()
