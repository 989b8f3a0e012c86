"""Engine types (lifecycle outcomes)."""

from __future__ import annotations

from enum import Enum


class Outcome(str, Enum):
    """Non-error results of read and delete."""

    ABSENT = "absent"
    DELETED = "deleted"
    ALREADY_GONE = "already-gone"
