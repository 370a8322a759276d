# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Run-level lock file.

Two pipelines running at once would race on the working copy during the pull,
on the target directory during the build, and on the published file. The lock
is a file next to the published artifact holding the owner's PID.

The PID is written to a private temp file first and then hard-linked into
place, so the lock appears with its content already there. A lock that is
empty or unreadable is left alone until it is older than STALE_GRACE_SECONDS.

If the process that wrote a lock is gone (killed, machine rebooted), the lock
is stale and gets reclaimed. Reclaiming moves the file aside and checks it is
still the stale lock that was inspected; a lock some other run created in the
meantime is put back. On Windows we can't probe a PID without side effects, so
any lock with a readable PID is treated as held.
"""

import os
import sys
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Optional

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import PipelineLockedError, PublishIOError
from rpbuild.utils.filesystem import safe_delete

logger = get_logger(__name__)

STALE_GRACE_SECONDS = 60.0


def lock_path_for(destination: Path) -> Path:
    """`../rectangular_promotion.so` → `../.rectangular_promotion.so.lock`."""
    return destination.parent / f".{destination.name}.lock"


def _read_owner(lock_path: Path) -> Optional[int]:
    try:
        return int(lock_path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


def _age_seconds(lock_path: Path) -> Optional[float]:
    try:
        return time.time() - lock_path.stat().st_mtime
    except FileNotFoundError:
        return None


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    if sys.platform == "win32":
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else.
        return True
    return True


class RunLock:
    """
    Context manager holding the pipeline lock for the duration of a run.

    Usage:
        with RunLock(lock_path):
            run the pipeline
        # lock file removed, whether the run succeeded or raised
    """

    def __init__(
        self,
        lock_path: Path,
        pid: Optional[int] = None,
        grace_seconds: float = STALE_GRACE_SECONDS,
    ) -> None:
        self._lock_path = lock_path
        self._pid = pid if pid is not None else os.getpid()
        self._grace_seconds = grace_seconds
        self._held = False

    @property
    def path(self) -> Path:
        return self._lock_path

    @property
    def held(self) -> bool:
        return self._held

    def _try_create(self) -> bool:
        fd, temp_name = tempfile.mkstemp(
            prefix=".rpbuild_lock_", dir=str(self._lock_path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(self._pid))
            os.link(temp_name, str(self._lock_path))
        except FileExistsError:
            return False
        finally:
            safe_delete(Path(temp_name))
        return True

    def _is_stale(self, owner: Optional[int]) -> bool:
        if owner is not None:
            return not _pid_alive(owner)
        age = _age_seconds(self._lock_path)
        return age is None or age > self._grace_seconds

    def _reclaim(self, stale_owner: Optional[int]) -> None:
        aside = self._lock_path.with_name(f"{self._lock_path.name}.stale.{self._pid}")
        try:
            os.replace(str(self._lock_path), str(aside))
        except FileNotFoundError:
            # Already reclaimed by someone else.
            return

        moved_owner = _read_owner(aside)
        if moved_owner != stale_owner:
            # A fresh lock was created after we looked; hand it back.
            try:
                os.link(str(aside), str(self._lock_path))
            except FileExistsError:
                pass
            safe_delete(aside)
            raise PipelineLockedError(str(self._lock_path), moved_owner)

        safe_delete(aside)

    def acquire(self) -> None:
        """
        Take the lock, reclaiming it once if its owner is dead.

        Raises:
            PipelineLockedError: A live process holds the lock.
            PublishIOError: The lock can't be created in the destination
                directory (missing or not writable).
        """
        try:
            if self._try_create():
                self._held = True
                logger.debug("Run lock acquired", extra={"path": str(self._lock_path)})
                return

            owner = _read_owner(self._lock_path)
            if not self._is_stale(owner):
                raise PipelineLockedError(str(self._lock_path), owner)

            logger.warning(
                "Reclaiming stale run lock",
                extra={"path": str(self._lock_path), "stale_pid": owner},
            )
            self._reclaim(owner)

            if not self._try_create():
                raise PipelineLockedError(str(self._lock_path), _read_owner(self._lock_path))
        except OSError as err:
            raise PublishIOError(
                f"Cannot create run lock {self._lock_path}: {err}"
            ) from err
        self._held = True

    def release(self) -> None:
        """Remove the lock file if we still own it."""
        if not self._held:
            return
        self._held = False
        if _read_owner(self._lock_path) == self._pid:
            safe_delete(self._lock_path)
            logger.debug("Run lock released", extra={"path": str(self._lock_path)})

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()
