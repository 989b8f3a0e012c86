"""Tri-state attribute values.

An observed attribute is in one of three states:

- ``Unset``: neither the user nor the server supplied a value
- ``Pending``: the server will compute it, but has not reported it yet
- ``Known``: a value reported by the server

The distinction matters: a secret the server never returned is ``Unset``,
while an address the server has not assigned yet is ``Pending``.
"""

from __future__ import annotations

from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field


class Unset(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unset"] = "unset"

    def __repr__(self) -> str:
        return "UNSET"


class Pending(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"

    def __repr__(self) -> str:
        return "PENDING"


class Known(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["known"] = "known"
    value: str

    def __repr__(self) -> str:
        return f"Known({self.value!r})"


UNSET = Unset()
PENDING = Pending()

Tristate: TypeAlias = Annotated[Unset | Pending | Known, Field(discriminator="kind")]


def known(value: str | None) -> Unset | Known:
    """``Known(value)`` for a non-empty remote value, ``UNSET`` otherwise."""
    if value:
        return Known(value=value)
    return UNSET


def value_of(attr: Unset | Pending | Known, default: str | None = None) -> str | None:
    """Unwrap a ``Known`` value, or return *default*."""
    if isinstance(attr, Known):
        return attr.value
    return default
