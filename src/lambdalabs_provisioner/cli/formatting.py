"""Resource and drift output rendering (Terraform-style)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import typer

from lambdalabs_provisioner.resources.schema import SCHEMAS, sensitive_attributes

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.table import Table

    from lambdalabs_provisioner.core.state import ResourceInstance

SENSITIVE = "(sensitive value)"
PENDING = "(known after refresh)"


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _align_values(items: dict[str, str]) -> list[tuple[str, str]]:
    """Right-pad keys so ``=`` signs align."""
    if not items:
        return []
    max_key = max(len(k) for k in items)
    return [(k.ljust(max_key), v) for k, v in items.items()]


def _format_value(value: Any) -> str:
    """Format a stored attribute, unwrapping tri-state values."""
    if isinstance(value, dict) and "kind" in value:
        if value["kind"] == "pending":
            return PENDING
        if value["kind"] == "unset":
            return "null"
        value = value.get("value")
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list):
        return "[" + ", ".join(_format_value(v) for v in value) + "]"
    if value is None:
        return "null"
    return str(value)


def _display_attrs(resource_type: str, attributes: dict[str, Any]) -> dict[str, str]:
    masked = sensitive_attributes(resource_type) if resource_type in SCHEMAS else frozenset()
    shown: dict[str, str] = {}
    for key, value in attributes.items():
        if key in masked and value not in (None, {"kind": "unset"}):
            shown[key] = SENSITIVE
        else:
            shown[key] = _format_value(value)
    return shown


def format_instance(inst: ResourceInstance, *, color: bool = True) -> str:
    """Render a tracked resource as a Terraform-style block."""
    style = styler(color)
    lines = [
        style(f"# {inst.address}:", bold=True),
        f'resource "{inst.resource_type}" "{inst.label}" {{',
        *[
            f"    {k} = {v}"
            for k, v in _align_values(_display_attrs(inst.resource_type, inst.attributes))
        ],
        "}",
    ]
    return "\n".join(lines)


def format_drift(changes: dict[str, dict[str, Any]], *, color: bool = True) -> str:
    """Render ``address -> attribute diff`` as Terraform-style blocks."""
    style = styler(color)
    blocks: list[str] = []
    for address, diff in sorted(changes.items()):
        resource_type = address.split(".", 1)[0]
        if not diff:
            blocks.append(style(f"  - {address} no longer exists", fg="red"))
            continue
        masked = sensitive_attributes(resource_type) if resource_type in SCHEMAS else frozenset()
        items = {
            k: SENSITIVE
            if k in masked
            else f"{_format_value(d['from'])} -> {_format_value(d['to'])}"
            for k, d in diff.items()
        }
        lines = [
            style(f"  ~ {address} has changed", fg="yellow", bold=True),
            *[style(f"      ~ {k} = {v}", fg="yellow") for k, v in _align_values(items)],
        ]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def schema_table(resource_type: str) -> Table:
    """Build a Rich table describing the attributes of *resource_type*."""
    from rich.table import Table

    table = Table(title=resource_type)
    table.add_column("Attribute")
    table.add_column("Mode")
    table.add_column("Sensitive")
    table.add_column("Description")
    for name, spec in SCHEMAS[resource_type].items():
        mode = "required" if spec.required else "optional" if spec.optional else ""
        if spec.computed:
            mode = f"{mode}, computed" if mode else "computed"
        table.add_row(name, mode, "yes" if spec.sensitive else "", spec.description)
    return table
