"""S3-compatible object store backed by boto3.

Credentials are never read from the skrepo config: boto3 resolves them
through its usual chain (environment, shared credentials file, instance
role). A custom ``endpoint`` points the client at MinIO, R2, B2 and other
S3-compatible providers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigError, NotFoundError, RemoteTransportError
from .storage import ObjectStore

if TYPE_CHECKING:
    from .config import RepositoryConfig

logger = logging.getLogger("skrepo.s3")

CONNECT_TIMEOUT_S = 10
READ_TIMEOUT_S = 60

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _status_of(exc: ClientError) -> Optional[int]:
    return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def _is_missing(exc: ClientError) -> bool:
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in _MISSING_CODES or _status_of(exc) == 404


class S3Store(ObjectStore):
    """Object store over a single S3 bucket.

    Args:
        bucket: Bucket name.
        region: AWS region (ignored by most custom endpoints).
        endpoint: Optional endpoint URL for S3-compatible providers.
        client: Pre-built boto3 S3 client (tests pass a stubbed one).
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.endpoint = endpoint
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint,
                config=BotoConfig(
                    connect_timeout=CONNECT_TIMEOUT_S,
                    read_timeout=READ_TIMEOUT_S,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            )
        self._client = client

    @classmethod
    def from_config(cls, config: "RepositoryConfig") -> "S3Store":
        """Build a store from the ``repository`` config section.

        Raises:
            ConfigError: If no bucket is configured.
        """
        if not config.bucket_name:
            raise ConfigError("bucket_name is required in repository config")
        return cls(config.bucket_name, region=config.region, endpoint=config.endpoint)

    def describe(self) -> str:
        return f"s3://{self.bucket}"

    def put(self, key: str, data: bytes) -> None:
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data)
        except ClientError as exc:
            raise RemoteTransportError(
                f"S3 put_object failed for key {key}: {exc}", _status_of(exc)
            ) from exc
        except BotoCoreError as exc:
            raise RemoteTransportError(f"S3 put_object failed for key {key}: {exc}") from exc

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFoundError(f"Object not found: {key}") from exc
            raise RemoteTransportError(
                f"S3 get_object failed for key {key}: {exc}", _status_of(exc)
            ) from exc
        except BotoCoreError as exc:
            raise RemoteTransportError(f"S3 get_object failed for key {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _is_missing(exc):
                return
            raise RemoteTransportError(
                f"S3 delete_object failed for key {key}: {exc}", _status_of(exc)
            ) from exc
        except BotoCoreError as exc:
            raise RemoteTransportError(f"S3 delete_object failed for key {key}: {exc}") from exc

    def list(self, prefix: str) -> list[str]:
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except ClientError as exc:
            raise RemoteTransportError(
                f"S3 listing failed for prefix {prefix!r}: {exc}", _status_of(exc)
            ) from exc
        except BotoCoreError as exc:
            raise RemoteTransportError(f"S3 listing failed for prefix {prefix!r}: {exc}") from exc
        return keys

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.debug("head_object %s -> %s", key, exc)
            return False
        return True
