"""Map exceptions to clean stderr messages and exit codes."""

from __future__ import annotations

import typer


def _err(msg: str, *, fg: str | None) -> None:
    """Print a styled message to stderr."""
    typer.echo(typer.style(msg, fg=fg), err=True)


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Print a clean error message to stderr and return an exit code.

    All errors map to exit code 1.  No tracebacks are printed.
    """
    from lambdalabs_provisioner.engine.errors import (
        ConfigError,
        DecodeError,
        NotFoundError,
        RemoteError,
        ResponseCardinalityError,
        StateLockError,
        TransportError,
        ValidationError,
    )

    fg = typer.colors.RED if color else None

    if isinstance(exc, ConfigError):
        _err(f"Configuration error: {exc}", fg=fg)
    elif isinstance(exc, ValidationError):
        _err("Validation failed:", fg=fg)
        for e in exc.errors:
            _err(f"  - {e}", fg=fg)
    elif isinstance(exc, RemoteError):
        code = f" [{exc.code}]" if exc.code else ""
        _err(f"API error{code} (HTTP {exc.status_code}): {exc.message}", fg=fg)
        if exc.suggestion:
            _err(f"  Suggestion: {exc.suggestion}", fg=fg)
    elif isinstance(exc, TransportError):
        _err(f"Request failed: {exc}", fg=fg)
    elif isinstance(exc, DecodeError):
        _err(f"Unexpected response: {exc}", fg=fg)
    elif isinstance(exc, ResponseCardinalityError):
        _err(f"Unexpected response: {exc}", fg=fg)
    elif isinstance(exc, NotFoundError):
        _err(f"Not found: {exc}", fg=fg)
    elif isinstance(exc, StateLockError):
        _err(f"State lock error: {exc}", fg=fg)
    else:
        _err(f"Error: {exc}", fg=fg)

    return 1
