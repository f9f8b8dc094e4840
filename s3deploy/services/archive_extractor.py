# s3deploy/services/archive_extractor.py
from __future__ import annotations

import logging
import os
import re
import shutil
import zipfile
import zlib
from typing import List, Optional, Tuple, Union

from s3deploy.config import DEFAULT_ARCHIVE_ROOT
from s3deploy.errors import ExtractionError, LayoutMismatchError, UnsupportedFormatError
from s3deploy.models import ArchiveFormat, normalize_build_dir
from s3deploy.utils.process import CommandFailed, run_command

logger = logging.getLogger(__name__)

_DRIVE = re.compile(r"^[A-Za-z]:")


# Split a zip member name into clean segments, refusing anything that escapes
def _member_parts(name: str) -> List[str]:
    name = name.replace("\\", "/")
    if name.startswith("/") or _DRIVE.match(name):
        raise ExtractionError(f"refusing absolute archive entry {name!r}")
    parts = [p for p in name.split("/") if p not in ("", ".")]
    if ".." in parts:
        raise ExtractionError(f"refusing archive entry outside the target {name!r}")
    return parts


def archive_root(entries: List[Tuple[List[str], bool]]) -> str:
    """
    The directory every entry lives under, as 'name/', or '' when the
    archive is flat or mixed. entries are (parts, is_dir) pairs.
    """
    entries = [(parts, is_dir) for parts, is_dir in entries if parts]
    if not entries:
        return ""
    first = entries[0][0][0]
    nested = False
    for parts, is_dir in entries:
        if parts[0] != first:
            return ""
        if len(parts) == 1 and not is_dir:
            # a top-level file named like the root
            return ""
        nested = nested or len(parts) > 1
    return first + "/" if nested else ""


def coerce_format(fmt: Union[ArchiveFormat, str]) -> ArchiveFormat:
    if isinstance(fmt, ArchiveFormat):
        return fmt
    try:
        return ArchiveFormat(fmt)
    except ValueError:
        raise UnsupportedFormatError(str(fmt))


class ArchiveExtractor:
    def __init__(
        self,
        work_dir: str = ".",
        archive_root_name: str = DEFAULT_ARCHIVE_ROOT,
        timeout: Optional[float] = None,
        log: logging.Logger = logger,
    ):
        self.work_dir = work_dir
        self.archive_root_name = archive_root_name
        self.timeout = timeout
        self.log = log

    def extract(
        self,
        archive_path: str,
        output_path: str,
        fmt: Union[ArchiveFormat, str],
        build_dir: str = "",
    ) -> str:
        """
        Unpack archive_path so the release ends up at output_path (relative
        to the work dir) and return output_path.

        Raises LayoutMismatchError when a zip's root directory is not the
        configured build dir; nothing is written in that case.
        """
        fmt = coerce_format(fmt)

        self.log.info("extracting archive...")
        if fmt.is_tar:
            self._extract_tar(archive_path, output_path)
        else:
            self._extract_zip(archive_path, output_path, build_dir)
        self.log.info(f"extracted {archive_path}")

        self._cleanup_archive(archive_path)
        return output_path

    def _extract_zip(self, archive_path: str, output_path: str, build_dir: str) -> None:
        try:
            with zipfile.ZipFile(archive_path) as zf:
                members = [(info, _member_parts(info.filename)) for info in zf.infolist()]
                root = archive_root([(parts, info.is_dir()) for info, parts in members])
                expected = normalize_build_dir(build_dir)
                if root != expected:
                    raise LayoutMismatchError(root, expected)

                strip = len(root.rstrip("/").split("/")) if root else 0
                dest = os.path.join(self.work_dir, output_path).rstrip("/")
                staging = f"{dest}.tmp-{os.getpid()}"
                self._unpack_members(zf, members, strip, staging)
                # only a complete tree ever appears at dest
                if os.path.isdir(dest):
                    shutil.rmtree(dest)
                os.replace(staging, dest)
        except (zipfile.BadZipFile, zlib.error) as e:
            raise ExtractionError(f"{archive_path} is not a valid zip archive: {e}") from e
        except OSError as e:
            raise ExtractionError(f"could not extract {archive_path}: {e}") from e

    def _unpack_members(self, zf: zipfile.ZipFile, members, strip: int, staging: str) -> None:
        if os.path.isdir(staging):
            shutil.rmtree(staging)
        os.makedirs(staging)
        try:
            for info, parts in members:
                rel = parts[strip:]
                if not rel:
                    continue
                target = os.path.join(staging, *rel)
                if info.is_dir():
                    os.makedirs(target, exist_ok=True)
                    continue
                os.makedirs(os.path.dirname(target), exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        except (zipfile.BadZipFile, zlib.error, OSError):
            shutil.rmtree(staging, ignore_errors=True)
            raise

    def _extract_tar(self, archive_path: str, output_path: str) -> None:
        cmd = ["tar", "-xvf", os.path.abspath(archive_path)]
        try:
            run_command(cmd, cwd=self.work_dir, timeout=self.timeout)
        except CommandFailed as e:
            raise ExtractionError(f"error running command {' '.join(cmd)}", stderr=e.stderr) from e
        self._rename_app_path(output_path)

    # tar archives unpack into a fixed directory that becomes the release dir
    def _rename_app_path(self, output_path: str) -> None:
        src = os.path.join(self.work_dir, self.archive_root_name)
        dest = os.path.join(self.work_dir, output_path)
        if not os.path.isdir(src):
            raise ExtractionError(
                f"archive did not unpack into {self.archive_root_name!r}"
            )
        try:
            parent = os.path.dirname(dest)
            if parent:
                os.makedirs(parent, exist_ok=True)
            if os.path.isdir(dest):
                shutil.rmtree(dest)
            os.rename(src, dest)
        except OSError as e:
            raise ExtractionError(f"could not move {src} to {dest}: {e}") from e

    def _cleanup_archive(self, archive_path: str) -> None:
        try:
            os.remove(archive_path)
        except OSError as e:
            self.log.warning(f"could not remove archive {archive_path}: {e}")
