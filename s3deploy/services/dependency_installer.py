# s3deploy/services/dependency_installer.py
import logging
import os
from typing import List, Optional

from s3deploy.config import DEFAULT_INSTALL_COMMAND
from s3deploy.errors import DependencyInstallError
from s3deploy.utils.process import CommandFailed, run_command

logger = logging.getLogger(__name__)


class DependencyInstaller:
    """
    Runs the project's install command inside a freshly extracted release.

    A failed install is logged and reported as False; it never stops the
    release from being published.
    """

    def __init__(
        self,
        command: Optional[List[str]] = None,
        work_dir: str = ".",
        timeout: Optional[float] = None,
        log: logging.Logger = logger,
    ):
        self.command = list(command) if command is not None else list(DEFAULT_INSTALL_COMMAND)
        self.work_dir = work_dir
        self.timeout = timeout
        self.log = log

    def install_dependencies(self, extracted_path: str) -> bool:
        if not self.command:
            self.log.info("no install command configured, skipping dependency install")
            return True
        try:
            self._run(extracted_path)
        except DependencyInstallError as e:
            self.log.error(f"unable to install dependencies in {extracted_path}: {e}",
                           extra={"stderr": e.stderr})
            return False
        self.log.info(f"installed dependencies in {extracted_path}")
        return True

    def _run(self, extracted_path: str) -> None:
        cwd = os.path.join(self.work_dir, extracted_path)
        try:
            run_command(self.command, cwd=cwd, timeout=self.timeout)
        except CommandFailed as e:
            raise DependencyInstallError(str(e), stderr=e.stderr) from e
