# Lives at the repo root so `import s3deploy` and `import cli` work without an install.
import pytest


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so boto3/moto never reach for a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_ENDPOINT_URL_S3", raising=False)
    for name in ("BUCKET", "KEY", "BUILD_DIR", "CURRENT_PATH", "WORK_DIR",
                 "INSTALL_COMMAND", "ARCHIVE_ROOT", "COMMAND_TIMEOUT"):
        monkeypatch.delenv(f"S3DEPLOY_{name}", raising=False)
