# ============================================================================
# FILE: musicshare/core/storage.py
# Object store for uploaded audio (AWS S3 or any S3-compatible service)
# ============================================================================
from abc import ABC, abstractmethod
from typing import Iterator, Optional
from urllib.parse import quote, unquote
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from musicshare.config import settings
from musicshare.core.errors import DependencyFailure
import logging

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """
    Key-addressed blob storage.
    put() returns the public retrieval URL for the stored object.
    Implementations raise DependencyFailure when the backend errors.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def list_keys(self, prefix: str) -> Iterator[str]:
        pass

    @abstractmethod
    def url_for(self, key: str) -> str:
        pass

    def key_from_url(self, url: str) -> str:
        """Inverse of url_for(); raises ValueError for URLs this store did not issue"""
        base = self.url_for("")
        if not url or not url.startswith(base):
            raise ValueError(f"URL does not belong to this store: {url}")
        key = unquote(url[len(base):])
        if not key:
            raise ValueError(f"URL has no object key: {url}")
        return key


class S3ObjectStore(ObjectStore):
    """boto3-backed object store"""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        acl: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.acl = acl or None

        if public_base_url:
            self.base_url = public_base_url.rstrip("/")
        elif endpoint_url:
            # Path-style addressing for S3-compatible endpoints (MinIO, R2, ...)
            self.base_url = f"{endpoint_url.rstrip('/')}/{bucket}"
        else:
            self.base_url = f"https://{bucket}.s3.{region}.amazonaws.com"

        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
        self.s3_client = client
        logger.info(f"S3 object store ready (bucket={bucket}, base_url={self.base_url})")

    @classmethod
    def from_settings(cls, config=settings) -> "S3ObjectStore":
        return cls(
            bucket=config.AWS_S3_BUCKET,
            region=config.AWS_REGION,
            endpoint_url=config.S3_ENDPOINT_URL,
            public_base_url=config.S3_PUBLIC_BASE_URL,
            acl=config.S3_OBJECT_ACL,
            access_key_id=config.AWS_ACCESS_KEY_ID,
            secret_access_key=config.AWS_SECRET_ACCESS_KEY,
        )

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}"

    def put(self, key: str, data: bytes, content_type: str) -> str:
        kwargs = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if self.acl:
            kwargs["ACL"] = self.acl
        try:
            self.s3_client.put_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 put failed for {key}: {e}")
            raise DependencyFailure(f"Object store rejected upload of {key}") from e
        return self.url_for(key)

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 delete failed for {key}: {e}")
            raise DependencyFailure(f"Object store rejected delete of {key}") from e

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise DependencyFailure(f"Object store head failed for {key}") from e
        except BotoCoreError as e:
            raise DependencyFailure(f"Object store head failed for {key}") from e

    def list_keys(self, prefix: str) -> Iterator[str]:
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 list failed for prefix {prefix}: {e}")
            raise DependencyFailure(f"Object store listing failed for {prefix}") from e
