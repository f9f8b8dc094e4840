import io
import json
import tarfile
import zipfile
from typing import Dict, List, Tuple

import pytest

from s3deploy.errors import NotFoundError
from s3deploy.utils.process import CommandFailed

POINTER_BUCKET = "config"
POINTER_KEY = "production.json"


# -------- fakes --------

class FakeStorage:
    """In-memory stand-in for S3Storage that records every call."""

    def __init__(self, objects: Dict[Tuple[str, str], bytes]):
        self.objects = dict(objects)
        self.calls: List[Tuple[str, str, str]] = []

    def _body(self, bucket: str, key: str) -> bytes:
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise NotFoundError(bucket, key)

    def get_json(self, bucket, key):
        self.calls.append(("get_json", bucket, key))
        return json.loads(self._body(bucket, key).decode("utf-8"))

    def download_file(self, bucket, key, dest_path):
        self.calls.append(("download_file", bucket, key))
        body = self._body(bucket, key)
        with open(dest_path, "wb") as f:
            f.write(body)
        return dest_path

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)


def make_zip(entries: Dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buf.getvalue()


def make_corrupt_zip(entries: Dict[str, str], bad: str) -> bytes:
    """Stored (uncompressed) zip whose `bad` member fails its CRC check on read."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_STORED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    data = entries[bad].encode("utf-8")
    return buf.getvalue().replace(data, bytes(len(data)), 1)


def make_tar(entries: Dict[str, str], gz: bool = True) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(mode="w:gz" if gz else "w", fileobj=buf) as tar:
        for name, content in entries.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def pointer_body(bucket: str, key: str) -> bytes:
    return json.dumps({"bucket": bucket, "key": key}).encode("utf-8")


class CommandRecorder:
    """Replaces run_command; unpacks tar archives with tarfile instead of tar(1)."""

    def __init__(self, fail_with: str = None):
        self.fail_with = fail_with
        self.calls: List[Tuple[List[str], str]] = []

    def __call__(self, cmd, cwd, timeout=None):
        self.calls.append((list(cmd), cwd))
        if self.fail_with is not None:
            raise CommandFailed(cmd, 1, self.fail_with)
        if cmd[:2] == ["tar", "-xvf"]:
            with tarfile.open(cmd[2]) as tar:
                tar.extractall(cwd)
        return ""


# -------- fixtures --------

@pytest.fixture
def storage_factory():
    return FakeStorage


@pytest.fixture
def zip_bytes():
    return make_zip


@pytest.fixture
def corrupt_zip():
    return make_corrupt_zip


@pytest.fixture
def tar_bytes():
    return make_tar


@pytest.fixture
def pointer():
    return pointer_body


@pytest.fixture
def fake_tar(monkeypatch):
    recorder = CommandRecorder()
    monkeypatch.setattr("s3deploy.services.archive_extractor.run_command", recorder)
    return recorder


@pytest.fixture
def fake_install(monkeypatch):
    recorder = CommandRecorder()
    monkeypatch.setattr("s3deploy.services.dependency_installer.run_command", recorder)
    return recorder


@pytest.fixture
def failing_install(monkeypatch):
    recorder = CommandRecorder(fail_with="npm ERR! code E404")
    monkeypatch.setattr("s3deploy.services.dependency_installer.run_command", recorder)
    return recorder
