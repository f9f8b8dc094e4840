# s3deploy/downloader.py
from __future__ import annotations

import contextlib
import logging
import os
from typing import Optional

from botocore.exceptions import BotoCoreError

from s3deploy.config import DownloaderConfig
from s3deploy.errors import ConfigurationError, DeployError, LayoutMismatchError
from s3deploy.models import (
    ArtifactDescriptor,
    DeploymentState,
    DownloadOutcome,
    Stage,
    normalize_build_dir,
)
from s3deploy.services.archive_extractor import ArchiveExtractor
from s3deploy.services.artifact_fetcher import ArtifactFetcher
from s3deploy.services.config_resolver import ConfigResolver
from s3deploy.services.dependency_installer import DependencyInstaller
from s3deploy.services.publisher import Publisher
from s3deploy.utils.lock import work_dir_lock
from s3deploy.utils.s3_handler import S3Storage

# How many times a layout mismatch may restart the pipeline
MAX_LAYOUT_RETRIES = 1


class S3Downloader:
    """
    Downloads the latest version of the deployed app from S3, extracts it
    and makes it the active release.

    One download() runs the stages in order: resolve the pointer object,
    fetch the archive, extract it, install dependencies, publish. Only the
    install step may fail without failing the call. A zip whose root
    directory disagrees with build_dir restarts the run once with build_dir
    set to that root; the corrected build_dir sticks for later downloads.

    Callers must not run two downloads against the same work dir at once;
    with config.lock set this is enforced with a file lock.
    """

    def __init__(
        self,
        config: DownloaderConfig,
        storage=None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.log = logger if logger is not None else logging.getLogger(__name__)
        self.storage = storage

        self.build_dir = normalize_build_dir(config.build_dir)
        self.stage = Stage.INIT
        self.attempts = 0
        self.output_path: Optional[str] = None
        self.dependencies_installed: Optional[bool] = None

        work_dir = config.work_dir
        self.extractor = ArchiveExtractor(
            work_dir, config.archive_root, timeout=config.command_timeout, log=self.log
        )
        self.installer = DependencyInstaller(
            config.install_command or [], work_dir, timeout=config.command_timeout, log=self.log
        )
        self.publisher = Publisher(config.current_path, work_dir, log=self.log)
        # storage-backed stages are built on first download
        self.resolver: Optional[ConfigResolver] = None
        self.fetcher: Optional[ArtifactFetcher] = None

    def _connect(self) -> None:
        if self.storage is None:
            try:
                self.storage = S3Storage(config=self.config.storage)
            except BotoCoreError as e:
                raise ConfigurationError(f"could not create S3 client: {e}") from e
        if self.resolver is None:
            self.resolver = ConfigResolver(self.storage, log=self.log)
        if self.fetcher is None:
            self.fetcher = ArtifactFetcher(
                self.storage, self.config.work_dir, self.config.fetch_policy, log=self.log
            )

    def download(self) -> str:
        """Run the whole pipeline and return the active path."""
        try:
            if not self.config.bucket or not self.config.key:
                raise ConfigurationError("no S3 bucket or key provided; not downloading app")
            self._connect()
            os.makedirs(self.config.work_dir, exist_ok=True)
            with self._lock():
                return self._run_pipeline()
        except DeployError as e:
            self.stage = Stage.FAILED
            self.log.error(f"download failed: {e}", extra={"error_type": type(e).__name__})
            raise

    def run(self) -> DownloadOutcome:
        """Like download(), but report failures as a value."""
        try:
            active = self.download()
        except DeployError as e:
            return DownloadOutcome(
                ok=False,
                stage=self.stage,
                attempts=self.attempts,
                output_path=self.output_path,
                error=str(e),
                error_type=type(e).__name__,
            )
        return DownloadOutcome(
            ok=True,
            stage=self.stage,
            attempts=self.attempts,
            active_path=active,
            output_path=self.output_path,
            dependencies_installed=self.dependencies_installed,
        )

    def current_state(self) -> DeploymentState:
        return self.publisher.current_state()

    def _lock(self):
        if not self.config.lock:
            return contextlib.nullcontext()
        return work_dir_lock(self.config.work_dir)

    def _transition(self, stage: Stage) -> None:
        self.log.debug(f"stage {self.stage.value} -> {stage.value}")
        self.stage = stage

    def _run_pipeline(self) -> str:
        # build_dir is kept across calls so a corrected layout is found on the next run
        self.output_path = None
        self.dependencies_installed = None
        self.attempts = 0
        while True:
            self.attempts += 1
            self.stage = Stage.INIT
            try:
                return self._attempt()
            except LayoutMismatchError as e:
                if self.attempts > MAX_LAYOUT_RETRIES:
                    raise
                self.log.info(
                    f"archive is rooted at {e.root or './'!r} but build dir is "
                    f"{e.build_dir or './'!r}; retrying with build dir {e.root or './'!r}"
                )
                self.build_dir = e.root
                self._transition(Stage.LAYOUT_CORRECTED)

    def _attempt(self) -> str:
        pointer = self.resolver.resolve_pointer(self.config.bucket, self.config.key)
        descriptor = ArtifactDescriptor.from_pointer(pointer)
        # recomputed every attempt; build_dir may have just been corrected
        self.output_path = descriptor.output_path(self.build_dir)
        self._transition(Stage.CONFIG_FETCHED)

        archive_path = self.fetcher.fetch_archive(descriptor, self.output_path)
        if archive_path is None:
            extracted = self.output_path
        else:
            self._transition(Stage.DOWNLOADED)
            try:
                extracted = self.extractor.extract(
                    archive_path, self.output_path, descriptor.format, self.build_dir
                )
            except LayoutMismatchError:
                self._discard(archive_path)
                raise
            self._transition(Stage.EXTRACTED)

            self.dependencies_installed = self.installer.install_dependencies(extracted)
            self._transition(Stage.INSTALLED)

        active = self.publisher.publish(extracted)
        self._transition(Stage.PUBLISHED)
        return active

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
