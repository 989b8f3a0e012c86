"""Local state locking."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from lambdalabs_provisioner.engine.errors import StateLockError

if TYPE_CHECKING:
    from types import TracebackType

try:
    import fcntl  # type: ignore[attr-defined]
except ImportError:  # pragma: no cover
    fcntl = None  # type: ignore[assignment]


class StateLock:
    """Exclusive lock held while the CLI reads, reconciles and writes the state file."""

    def __init__(self, state_path: Path) -> None:
        self._lock_path = Path(str(state_path) + ".lock")
        self._file = None

    def __enter__(self) -> StateLock:
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._lock_path.open("a+", encoding="utf-8")
        try:
            self._lock(release=False)
        except OSError as e:
            self._file.close()
            self._file = None
            raise StateLockError(f"Cannot lock {self._lock_path}: {e}") from e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._file is None:
            return
        try:
            self._lock(release=True)
        finally:
            self._file.close()
            self._file = None

    def _lock(self, *, release: bool) -> None:
        if self._file is None:
            raise StateLockError("Lock file is not open")

        if fcntl is not None:
            fcntl.flock(self._file.fileno(), fcntl.LOCK_UN if release else fcntl.LOCK_EX)
            return

        if sys.platform == "win32":  # pragma: no cover
            import msvcrt

            mode = msvcrt.LK_UNLCK if release else msvcrt.LK_LOCK
            msvcrt.locking(self._file.fileno(), mode, 1)
            return

        raise StateLockError("State locking is not supported on this platform")
