# s3deploy/services/publisher.py
import logging
import os
from typing import Optional

from s3deploy.errors import PublishError
from s3deploy.models import DeploymentState

logger = logging.getLogger(__name__)


def read_deployment_state(current_path: str, work_dir: str = ".") -> DeploymentState:
    """Read the active release from the 'current' link, if there is one."""
    link = os.path.join(work_dir, current_path)
    if not os.path.islink(link):
        return DeploymentState(output_path=None, current_target=None)
    target = os.readlink(link)
    resolved = os.path.normpath(os.path.join(os.path.dirname(current_path), target))
    return DeploymentState(output_path=resolved, current_target=target)


class Publisher:
    def __init__(
        self,
        current_path: Optional[str] = "current",
        work_dir: str = ".",
        log: logging.Logger = logger,
    ):
        self.current_path = current_path
        self.work_dir = work_dir
        self.log = log

    def publish(self, extracted_path: str) -> str:
        """
        Point current_path at extracted_path and return the active path.

        The new link is created under a temporary name and renamed over the
        old one, so readers always see either the old or the new release.
        Without a current_path the extracted path itself is the active one.
        """
        if self.current_path is None:
            self.log.info(f"active release is {extracted_path}")
            return extracted_path

        link = os.path.join(self.work_dir, self.current_path)
        link_dir = os.path.dirname(link)
        tmp = os.path.join(link_dir, f".{os.path.basename(link)}.tmp-{os.getpid()}")
        target = os.path.relpath(
            os.path.join(self.work_dir, extracted_path), link_dir or "."
        )

        try:
            if os.path.lexists(tmp):
                os.remove(tmp)
            os.symlink(target, tmp)
            os.replace(tmp, link)
        except OSError as e:
            if os.path.lexists(tmp):
                os.remove(tmp)
            raise PublishError(f"could not point {self.current_path} at {extracted_path}: {e}") from e

        self.log.info(f"linked {self.current_path} -> {target}")
        return self.current_path

    def current_state(self) -> DeploymentState:
        if self.current_path is None:
            return DeploymentState(output_path=None, current_target=None)
        return read_deployment_state(self.current_path, self.work_dir)
