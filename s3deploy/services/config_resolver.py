# s3deploy/services/config_resolver.py
import logging

from s3deploy.errors import ConfigurationError, ParseError
from s3deploy.models import PointerConfig

logger = logging.getLogger(__name__)


class ConfigResolver:
    def __init__(self, storage, log: logging.Logger = logger):
        self.storage = storage
        self.log = log

    def resolve_pointer(self, bucket: str, key: str) -> PointerConfig:
        """
        Read the pointer object at bucket/key and return where the real
        archive lives. Storage raises NotFoundError / DownloadError.
        """
        if not bucket or not key:
            raise ConfigurationError("no S3 bucket or key provided; not downloading app")

        self.log.info(f"fetching current app version from {bucket}/{key}",
                      extra={"bucket": bucket, "key": key})
        data = self.storage.get_json(bucket, key)

        pointer = PointerConfig.from_json(data)
        if pointer is None:
            raise ParseError(
                f"pointer s3://{bucket}/{key} must be an object with string 'bucket' and 'key', got {data!r}"
            )

        self.log.info(f"got config {{'bucket': {pointer.bucket!r}, 'key': {pointer.key!r}}}",
                      extra={"pointer_bucket": pointer.bucket, "pointer_key": pointer.key})
        return pointer
