import json
import logging
import os
from contextlib import closing
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3deploy.config import StorageConfig
from s3deploy.errors import DownloadError, NotFoundError, ParseError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}
CHUNK_SIZE = 1024 * 1024


def _client_config(config: StorageConfig) -> Config:
    # one attempt only: a failed network operation aborts the pipeline
    kwargs: dict = {"retries": {"max_attempts": 1, "mode": "standard"}}
    if config.connect_timeout is not None:
        kwargs["connect_timeout"] = config.connect_timeout
    if config.read_timeout is not None:
        kwargs["read_timeout"] = config.read_timeout
    return Config(**kwargs)


def s3_client(
    config: Optional[StorageConfig] = None,
    session_factory: Callable[..., boto3.Session] = boto3.Session,
):
    config = config or StorageConfig()
    session_kwargs = {"region_name": config.region}
    if config.profile:
        session_kwargs["profile_name"] = config.profile
    elif config.aws_access_key_id and config.aws_secret_access_key:
        session_kwargs["aws_access_key_id"] = config.aws_access_key_id
        session_kwargs["aws_secret_access_key"] = config.aws_secret_access_key

    session = session_factory(**session_kwargs)
    kwargs: dict = {"config": _client_config(config)}
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    return session.client("s3", **kwargs)


class S3Storage:
    """Thin S3 wrapper: buffered reads for the pointer, streamed reads for archives."""

    def __init__(self, client=None, config: Optional[StorageConfig] = None):
        self.s3 = client if client is not None else s3_client(config)

    def _raise_for(self, e: Exception, bucket: str, key: str):
        if isinstance(e, ClientError):
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                logger.warning(f"Object not found: s3://{bucket}/{key}")
                raise NotFoundError(bucket, key) from e
        logger.error(f"AWS error reading s3://{bucket}/{key}: {e}", exc_info=True)
        raise DownloadError(f"Failed to retrieve {key} from bucket {bucket}: {e}") from e

    def get_json(self, bucket: str, key: str) -> Any:
        """Downloads and returns a JSON document from S3."""
        try:
            logger.info(f"Downloading object from s3://{bucket}/{key}")
            response = self.s3.get_object(Bucket=bucket, Key=key)
            with closing(response["Body"]) as body:
                content = body.read()
        except (ClientError, BotoCoreError) as e:
            self._raise_for(e, bucket, key)

        try:
            return json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ParseError(f"s3://{bucket}/{key} is not valid JSON: {e}") from e

    def download_file(self, bucket: str, key: str, dest_path: str) -> str:
        """
        Streams an object to dest_path chunk by chunk, so the body is never
        held in memory. A partial file is removed when the copy fails.
        """
        logger.info(f"Saving S3 object {bucket}/{key} to {dest_path}")
        try:
            response = self.s3.get_object(Bucket=bucket, Key=key)
            # closing the body hands the connection back to the pool
            with closing(response["Body"]) as body, open(dest_path, "wb") as f:
                for chunk in body.iter_chunks(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
        except (ClientError, BotoCoreError) as e:
            _discard(dest_path)
            self._raise_for(e, bucket, key)
        except OSError as e:
            _discard(dest_path)
            logger.error(f"Could not write {dest_path}: {e}")
            raise DownloadError(f"Failed to write {dest_path}: {e}") from e
        return dest_path


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
