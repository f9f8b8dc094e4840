# s3deploy/config.py
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from typing import List, Optional

from s3deploy.errors import ConfigurationError
from s3deploy.models import FetchPolicy

DEFAULT_CURRENT_PATH = "current"
DEFAULT_ARCHIVE_ROOT = "deploy-dist"
DEFAULT_INSTALL_COMMAND = ["npm", "install"]


def _region() -> str:
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or "us-east-1"


def env(name: str, default: Optional[str] = "") -> Optional[str]:
    return os.environ.get(f"S3DEPLOY_{name}", default)


def _float_or_none(value: Optional[str], name: str) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


@dataclass
class StorageConfig:
    """How to reach S3. Empty values fall back to the boto3 default chain."""
    region: str = field(default_factory=_region)
    profile: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None


@dataclass
class DownloaderConfig:
    bucket: str = ""
    key: str = ""
    build_dir: str = ""
    # None switches to direct replacement: no link, callers use the returned path
    current_path: Optional[str] = DEFAULT_CURRENT_PATH
    work_dir: str = "."
    fetch_policy: FetchPolicy = FetchPolicy.SKIP_IF_PRESENT
    install_command: Optional[List[str]] = field(
        default_factory=lambda: list(DEFAULT_INSTALL_COMMAND)
    )
    archive_root: str = DEFAULT_ARCHIVE_ROOT
    command_timeout: Optional[float] = None
    lock: bool = True
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> "DownloaderConfig":
        """Build a config from S3DEPLOY_* and the usual AWS_* variables."""
        install = env("INSTALL_COMMAND", None)
        if install is None:
            install_command = list(DEFAULT_INSTALL_COMMAND)
        else:
            # an explicitly empty value disables the install step
            install_command = shlex.split(install) or None

        storage = StorageConfig(
            region=_region(),
            profile=os.environ.get("AWS_PROFILE") or None,
            endpoint_url=os.environ.get("AWS_ENDPOINT_URL_S3") or None,
        )
        return cls(
            bucket=env("BUCKET"),
            key=env("KEY"),
            build_dir=env("BUILD_DIR"),
            current_path=env("CURRENT_PATH", DEFAULT_CURRENT_PATH) or None,
            work_dir=env("WORK_DIR", "."),
            install_command=install_command,
            archive_root=env("ARCHIVE_ROOT", DEFAULT_ARCHIVE_ROOT),
            command_timeout=_float_or_none(env("COMMAND_TIMEOUT"), "S3DEPLOY_COMMAND_TIMEOUT"),
            storage=storage,
        )

    def with_overrides(self, **changes) -> "DownloaderConfig":
        """Copy with every non-None keyword applied (CLI flags win over env)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = [
    "DEFAULT_CURRENT_PATH",
    "DEFAULT_ARCHIVE_ROOT",
    "DEFAULT_INSTALL_COMMAND",
    "StorageConfig",
    "DownloaderConfig",
]
