from __future__ import annotations

import logging
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import ObjectStoreConfig
from .exceptions import ObjectNotFoundError, ObjectStoreError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectStore(Protocol):
    """Whole-object storage: existence check, fetch, unconditional overwrite."""

    def exists(self, bucket: str, key: str) -> bool: ...

    def get(self, bucket: str, key: str) -> bytes: ...

    def put(self, bucket: str, key: str, data: bytes) -> None: ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectStore:
    """boto3-backed object store for any S3-compatible endpoint."""

    def __init__(self, config: ObjectStoreConfig | None = None, client: Any = None):
        self.config = config or ObjectStoreConfig()

        if client is not None:
            self.client = client
        else:
            boto_config = Config(
                region_name=self.config.region,
                signature_version="s3v4",
                retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
                connect_timeout=self.config.connect_timeout_seconds,
                read_timeout=self.config.read_timeout_seconds,
                s3={"addressing_style": self.config.addressing_style},
            )
            self.client = boto3.client(
                "s3",
                config=boto_config,
                endpoint_url=self.config.endpoint_url or None,
                aws_access_key_id=self.config.access_key_id or None,
                aws_secret_access_key=self.config.secret_access_key or None,
            )

        logger.info(
            f"Initialized S3ObjectStore (endpoint={self.config.endpoint_url}, "
            f"region={self.config.region}, path_style={self.config.force_path_style})"
        )

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            logger.error(f"Failed to check s3://{bucket}/{key}: {e}")
            raise ObjectStoreError(str(e), bucket=bucket, key=key) from e
        except BotoCoreError as e:
            logger.error(f"Failed to check s3://{bucket}/{key}: {e}")
            raise ObjectStoreError(str(e), bucket=bucket, key=key) from e

    def get(self, bucket: str, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(
                    f"Object not found: s3://{bucket}/{key}", bucket=bucket, key=key
                ) from e
            logger.error(f"Failed to fetch s3://{bucket}/{key}: {e}")
            raise ObjectStoreError(str(e), bucket=bucket, key=key) from e
        except BotoCoreError as e:
            logger.error(f"Failed to fetch s3://{bucket}/{key}: {e}")
            raise ObjectStoreError(str(e), bucket=bucket, key=key) from e

    def put(self, bucket: str, key: str, data: bytes) -> None:
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType="application/octet-stream",
            )
            logger.debug(f"Wrote {len(data)} bytes to s3://{bucket}/{key}")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to write s3://{bucket}/{key}: {e}")
            raise ObjectStoreError(str(e), bucket=bucket, key=key) from e


def create_object_store(config: ObjectStoreConfig | None = None) -> S3ObjectStore:
    return S3ObjectStore(config=config)
