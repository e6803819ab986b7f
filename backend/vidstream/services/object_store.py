"""
Object Store

Thin boto3 adapter over one S3-compatible bucket (R2 or Spaces).
Every botocore failure is re-raised as StorageBackendError.
"""
import logging
from typing import Dict, List, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from vidstream.exceptions import StorageBackendError
from vidstream.services.catalog_service import StorageObject
from vidstream.services.storage_provider import ProviderConfig


logger = logging.getLogger(__name__)

# S3 refuses presigned URLs valid for more than 7 days
MAX_SIGNED_URL_TTL = 604800

SIGNED_URL_OPERATIONS = {
    "get": "get_object",
    "put": "put_object",
    "delete": "delete_object",
}

MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}

CORS_ALLOWED_METHODS = ["GET", "PUT", "POST", "HEAD", "DELETE"]
CORS_EXPOSE_HEADERS = ["ETag", "x-amz-meta-*"]
CORS_MAX_AGE_SECONDS = 3600


def create_s3_client(config: ProviderConfig):
    return boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        region_name=config.region,
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        config=Config(signature_version="s3v4"),
    )


class ObjectStore:
    """
    Bucket operations used by the catalog, media and sync services.

    Attributes:
        config: resolved provider configuration
        bucket: bucket name from the configuration
    """

    def __init__(self, config: ProviderConfig, client=None):
        self.config = config
        self.bucket = config.bucket
        self._client = client if client is not None else create_s3_client(config)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "ObjectStore":
        return cls(config)

    @property
    def provider(self) -> str:
        return self.config.provider.value

    def _fail(self, action: str, key: str, exc: Exception) -> StorageBackendError:
        logger.error(f"[{self.provider}] {action} failed for {self.bucket}/{key}: {exc}")
        return StorageBackendError(f"Object store {action} failed", original_error=exc)

    def list_objects(self, prefix: str) -> List[StorageObject]:
        """All objects under `prefix`, across every result page"""
        objects = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get("Contents", []) or []:
                    objects.append(StorageObject(
                        key=item["Key"],
                        size=int(item.get("Size") or 0),
                        last_modified=item.get("LastModified"),
                    ))
        except (ClientError, BotoCoreError) as e:
            raise self._fail("list", prefix, e) from e
        return objects

    def generate_signed_url(
        self,
        key: str,
        verb: str = "get",
        ttl_seconds: int = 3600,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Time-limited URL granting one operation on one object.

        Args:
            key: object key
            verb: get, put or delete
            ttl_seconds: validity window, 1..604800
            content_type: ContentType bound into a put URL
            metadata: user metadata bound into a put URL
        """
        operation = SIGNED_URL_OPERATIONS.get(verb.lower())
        if operation is None:
            raise ValueError(f"Unsupported signed URL verb: {verb}")
        if not 0 < ttl_seconds <= MAX_SIGNED_URL_TTL:
            raise ValueError(f"Signed URL ttl must be 1..{MAX_SIGNED_URL_TTL} seconds")

        params = {"Bucket": self.bucket, "Key": key}
        if operation == "put_object":
            if content_type:
                params["ContentType"] = content_type
            if metadata:
                params["Metadata"] = metadata

        try:
            return self._client.generate_presigned_url(
                ClientMethod=operation,
                Params=params,
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._fail("presign", key, e) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._fail("delete", key, e) from e

    def put(
        self,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        kwargs = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if metadata:
            kwargs["Metadata"] = metadata
        try:
            self._client.put_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise self._fail("put", key, e) from e

    def get_bytes(self, key: str) -> Optional[bytes]:
        """Object body, or None when the object does not exist"""
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in MISSING_OBJECT_CODES:
                return None
            raise self._fail("get", key, e) from e
        except BotoCoreError as e:
            raise self._fail("get", key, e) from e

    def configure_cors(self, allowed_origins: List[str]) -> Dict:
        """Replace the bucket CORS policy so browsers can use signed URLs"""
        rules = {
            "CORSRules": [{
                "AllowedOrigins": list(allowed_origins),
                "AllowedMethods": list(CORS_ALLOWED_METHODS),
                "AllowedHeaders": ["*"],
                "ExposeHeaders": list(CORS_EXPOSE_HEADERS),
                "MaxAgeSeconds": CORS_MAX_AGE_SECONDS,
            }]
        }
        try:
            self._client.put_bucket_cors(Bucket=self.bucket, CORSConfiguration=rules)
        except (ClientError, BotoCoreError) as e:
            raise self._fail("cors", "", e) from e
        logger.info(f"[{self.provider}] CORS configured on {self.bucket} for {len(allowed_origins)} origins")
        return rules


def get_store_factory():
    """
    Dependency returning the ObjectStore constructor.

    Tests override it with a factory that returns an in-memory store.
    """
    return ObjectStore.from_config
