"""Locate a remote record by identifier in an unindexed listing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterable


class HasId(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=HasId)


def find_by_id(records: Iterable[T], target: str) -> T | None:
    """Return the first record whose ``id`` equals *target*, or ``None``.

    Linear scan; listings are scoped to a single account so they stay small.
    Identifiers are expected to be unique, duplicates resolve to the first.
    """
    for record in records:
        if record.id == target:
            return record
    return None
