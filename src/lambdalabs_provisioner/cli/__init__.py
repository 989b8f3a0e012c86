"""CLI application for lambdalabs-provisioner."""

from __future__ import annotations

import logging
import os
import sys

import typer

from lambdalabs_provisioner import __version__

app = typer.Typer(
    name="lambdalabs-provisioner",
    no_args_is_help=True,
    add_completion=False,
)

LOG_ENV = "LAMBDA_LOG"
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"lambdalabs-provisioner {__version__}")
        raise typer.Exit


def _log_level(verbose: int) -> int | None:
    """Level from ``LAMBDA_LOG``, else from ``-v`` count; ``None`` leaves logging alone."""
    env_level = os.environ.get(LOG_ENV, "").upper()
    if env_level:
        if env_level in _LEVELS:
            return getattr(logging, env_level)
        print(
            f"WARNING: invalid {LOG_ENV} level '{env_level}', "
            f"expected one of {', '.join(_LEVELS)}; defaulting to INFO",
            file=sys.stderr,
        )
        return logging.INFO
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return None


def _configure_logging(verbose: int) -> None:
    level = _log_level(verbose)
    if level is None:
        return
    # Third-party loggers (httpx, httpcore) stay at WARNING.
    logging.basicConfig(level=logging.WARNING, format=_LOG_FORMAT, stream=sys.stderr, force=True)
    logging.getLogger("lambdalabs_provisioner").setLevel(level)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log verbosity (-v info, -vv debug).",
    ),
) -> None:
    """Reconcile Lambda Cloud instances and SSH keys with a declared configuration."""
    _ = version
    _configure_logging(verbose)


# Register commands after app is created to avoid circular imports.
from lambdalabs_provisioner.cli import commands as _commands  # noqa: E402, F401
