"""Owner-only file helpers: private directories, atomic writes, advisory locks."""

import logging
import os
import platform
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

PRIVATE_FILE_MODE = 0o600
PRIVATE_DIR_MODE = 0o700


def ensure_private_dir(path: Path) -> None:
    """Create a directory (and parents) with owner-only permissions if missing."""
    if path.is_dir():
        return
    path.mkdir(parents=True, exist_ok=True, mode=PRIVATE_DIR_MODE)
    path.chmod(PRIVATE_DIR_MODE)


def write_private(path: Path, content: str) -> None:
    """Atomically replace ``path`` with ``content``, readable by the owner only.

    The data goes to a temp file in the same directory which is then renamed
    over the target, so readers never observe a half-written file.
    """
    ensure_private_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        os.chmod(tmp_name, PRIVATE_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class FileLock:
    """Blocking, exclusive advisory lock on a lock file.

    Uses ``fcntl.flock`` on Unix and ``msvcrt.locking`` on Windows. The lock
    file is left in place after release; removing it would let a waiter and a
    newcomer lock two different inodes.

    Example:
        >>> with FileLock(home / "keystore.lock"):
        ...     ...  # read-modify-write
    """

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._lock_fd: int | None = None

    def acquire(self) -> None:
        ensure_private_dir(self.lock_path.parent)
        self._lock_fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR, PRIVATE_FILE_MODE)
        try:
            if platform.system() == "Windows":
                import msvcrt

                msvcrt.locking(self._lock_fd, msvcrt.LK_LOCK, 1)
            else:
                import fcntl

                fcntl.flock(self._lock_fd, fcntl.LOCK_EX)
        except OSError:
            os.close(self._lock_fd)
            self._lock_fd = None
            raise

    def release(self) -> None:
        """Release the lock. Safe to call when not held."""
        if self._lock_fd is None:
            return
        try:
            if platform.system() == "Windows":
                import msvcrt

                msvcrt.locking(self._lock_fd, msvcrt.LK_UNLCK, 1)
            else:
                import fcntl

                fcntl.flock(self._lock_fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Error releasing file lock {self.lock_path}: {e}")
        finally:
            os.close(self._lock_fd)
            self._lock_fd = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
