import fcntl
import os
from contextlib import contextmanager

from s3deploy.errors import DeployLockError

LOCK_FILE = ".s3deploy.lock"


@contextmanager
def work_dir_lock(work_dir: str):
    """Hold an exclusive, non-blocking lock on work_dir for the duration."""
    path = os.path.join(work_dir, LOCK_FILE)
    fd = os.open(path, os.O_CREAT | os.O_WRONLY)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            raise DeployLockError(f"another download is already running in {work_dir}") from e
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        yield path
    finally:
        # closing the descriptor drops the lock
        os.close(fd)
