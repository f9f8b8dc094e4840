# s3deploy/models/artifact.py
from __future__ import annotations

import json
import os
import posixpath
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from s3deploy.errors import UnsupportedFormatError


class ArchiveFormat(Enum):
    ZIP = ".zip"
    TAR = ".tar"
    TAR_GZ = ".tar.gz"

    @property
    def is_tar(self) -> bool:
        return self in (ArchiveFormat.TAR, ArchiveFormat.TAR_GZ)


# Longest suffix first so "x.tar.gz" is never read as ".gz"
_EXTENSIONS = sorted(ArchiveFormat, key=lambda f: len(f.value), reverse=True)


class Stage(Enum):
    INIT = "init"
    CONFIG_FETCHED = "config_fetched"
    DOWNLOADED = "downloaded"
    EXTRACTED = "extracted"
    LAYOUT_CORRECTED = "layout_corrected"
    INSTALLED = "installed"
    PUBLISHED = "published"
    FAILED = "failed"


class FetchPolicy(Enum):
    SKIP_IF_PRESENT = "skip-if-present"
    ALWAYS_REFRESH = "always-refresh"


# Where the real artifact lives, as stored in the pointer object
@dataclass(frozen=True)
class PointerConfig:
    bucket: str
    key: str

    @classmethod
    def from_json(cls, data: Any) -> Optional["PointerConfig"]:
        """Map a parsed pointer document; None when it is not usable."""
        if not isinstance(data, dict):
            return None
        bucket = data.get("bucket")
        key = data.get("key")
        if not isinstance(bucket, str) or not isinstance(key, str):
            return None
        if not bucket or not key:
            return None
        return cls(bucket=bucket, key=key)


@dataclass(frozen=True)
class ArtifactDescriptor:
    bucket: str
    key: str
    archive_file_name: str  # basename of key
    format: ArchiveFormat

    @classmethod
    def from_pointer(cls, pointer: PointerConfig) -> "ArtifactDescriptor":
        name = posixpath.basename(pointer.key)
        return cls(
            bucket=pointer.bucket,
            key=pointer.key,
            archive_file_name=name,
            format=parse_ext(name),
        )

    def output_path(self, build_dir: str = "") -> str:
        return output_path_for(self.archive_file_name, build_dir)


@dataclass(frozen=True)
class DeploymentState:
    """What is active on disk right now."""
    output_path: Optional[str]     # resolved directory, None when nothing is published
    current_target: Optional[str]  # raw symlink target, symlink variant only


@dataclass(frozen=True)
class DownloadOutcome:
    ok: bool
    stage: Stage
    attempts: int
    active_path: Optional[str] = None
    output_path: Optional[str] = None
    dependencies_installed: Optional[bool] = None  # None when nothing was extracted
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body = asdict(self)
        body["stage"] = self.stage.value
        return body


# ---- Helpers ----
def parse_ext(name: str) -> ArchiveFormat:
    for fmt in _EXTENSIONS:
        if name.endswith(fmt.value) and len(name) > len(fmt.value):
            return fmt
    raise UnsupportedFormatError(name)


def normalize_build_dir(build_dir: Optional[str]) -> str:
    """'dist', './dist/' and 'dist/' all become 'dist/'; blanks become ''."""
    if not build_dir:
        return ""
    cleaned = posixpath.normpath(build_dir.replace(os.sep, "/"))
    if cleaned in (".", "/"):
        return ""
    return cleaned.strip("/") + "/"


def output_path_for(archive_path: str, build_dir: str = "") -> str:
    """
    Directory name for an archive: drop the extension and the trailing
    '-<hash>' segment, e.g. app-2.0.0-deadbeef.tar.gz -> app-2.0.0.
    """
    name = posixpath.basename(archive_path)
    stem = name[: -len(parse_ext(name).value)]
    parts = stem.split("-")
    if len(parts) > 1:
        stem = "-".join(parts[:-1])
    return normalize_build_dir(build_dir) + stem


def to_json(obj: Any, pretty: bool = False) -> str:
    body = obj.to_dict() if hasattr(obj, "to_dict") else asdict(obj)
    if pretty:
        return json.dumps(body, ensure_ascii=False, indent=2)
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"))


__all__ = [
    "ArchiveFormat",
    "Stage",
    "FetchPolicy",
    "PointerConfig",
    "ArtifactDescriptor",
    "DeploymentState",
    "DownloadOutcome",
    "parse_ext",
    "normalize_build_dir",
    "output_path_for",
    "to_json",
]
