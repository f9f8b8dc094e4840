# s3deploy/errors.py
from __future__ import annotations

from typing import Optional


class DeployError(RuntimeError):
    """Base class for every failure a download can surface."""


# Missing bucket/key or an unusable setting; raised before any I/O
class ConfigurationError(DeployError):
    pass


class NotFoundError(DeployError):
    """Raised when the pointer or archive object is absent from storage."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"object not found: s3://{bucket}/{key}")
        self.bucket = bucket
        self.key = key


class ParseError(DeployError):
    """Raised when the pointer body is not the expected JSON document."""


class DownloadError(DeployError):
    """Raised on transport or local write failures while fetching."""


class ExtractionError(DeployError):
    """Raised when an archive cannot be unpacked."""

    def __init__(self, message: str, stderr: Optional[str] = None) -> None:
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.stderr = stderr


class UnsupportedFormatError(ExtractionError, ConfigurationError):
    """Archive name does not end in .zip, .tar or .tar.gz."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unrecognized archive extension: {name}")
        self.name = name


class LayoutMismatchError(ExtractionError):
    """The archive's root directory disagrees with the configured build dir."""

    def __init__(self, root: str, build_dir: str) -> None:
        super().__init__(
            f"archive root {root!r} does not match build dir {build_dir!r}"
        )
        self.root = root
        self.build_dir = build_dir


# Never propagates out of the pipeline; the installer logs it and carries on
class DependencyInstallError(DeployError):
    def __init__(self, message: str, stderr: Optional[str] = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class PublishError(DeployError):
    """Raised when the active-version pointer cannot be written."""


class DeployLockError(DeployError):
    """Another download already holds the work directory lock."""


__all__ = [
    "DeployError",
    "ConfigurationError",
    "NotFoundError",
    "ParseError",
    "DownloadError",
    "ExtractionError",
    "UnsupportedFormatError",
    "LayoutMismatchError",
    "DependencyInstallError",
    "PublishError",
    "DeployLockError",
]
