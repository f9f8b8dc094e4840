from s3deploy.config import DownloaderConfig, StorageConfig
from s3deploy.downloader import S3Downloader
from s3deploy.errors import (
    ConfigurationError,
    DependencyInstallError,
    DeployError,
    DownloadError,
    ExtractionError,
    LayoutMismatchError,
    NotFoundError,
    ParseError,
    PublishError,
)
from s3deploy.models import FetchPolicy, output_path_for

__version__ = "0.1.0"

__all__ = [
    "S3Downloader",
    "DownloaderConfig",
    "StorageConfig",
    "FetchPolicy",
    "output_path_for",
    "DeployError",
    "ConfigurationError",
    "NotFoundError",
    "ParseError",
    "DownloadError",
    "ExtractionError",
    "LayoutMismatchError",
    "DependencyInstallError",
    "PublishError",
]
