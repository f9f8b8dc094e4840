# s3deploy/services/artifact_fetcher.py
import logging
import os
import shutil
from typing import Optional

from s3deploy.errors import DownloadError
from s3deploy.models import ArtifactDescriptor, FetchPolicy

logger = logging.getLogger(__name__)


class ArtifactFetcher:
    def __init__(
        self,
        storage,
        work_dir: str = ".",
        policy: FetchPolicy = FetchPolicy.SKIP_IF_PRESENT,
        log: logging.Logger = logger,
    ):
        self.storage = storage
        self.work_dir = work_dir
        self.policy = policy
        self.log = log

    def fetch_archive(self, descriptor: ArtifactDescriptor, output_path: str) -> Optional[str]:
        """
        Stream the archive into the work dir and return its local path.

        Under SKIP_IF_PRESENT an existing output_path directory means the
        release is already here; nothing is fetched and None is returned.
        The cached copy is not verified.
        """
        target = os.path.join(self.work_dir, output_path)

        if os.path.isdir(target):
            if self.policy is FetchPolicy.SKIP_IF_PRESENT:
                self.log.info(f"app already exists at {output_path}, skipping download")
                return None
            self.log.info(f"removing existing {output_path} before refresh")
            try:
                shutil.rmtree(target)
            except OSError as e:
                raise DownloadError(f"could not remove {target}: {e}") from e

        archive_path = os.path.join(self.work_dir, descriptor.archive_file_name)
        self.log.info(
            f"saving S3 object {descriptor.bucket}/{descriptor.key} to {archive_path}",
            extra={"bucket": descriptor.bucket, "key": descriptor.key},
        )
        return self.storage.download_file(descriptor.bucket, descriptor.key, archive_path)
