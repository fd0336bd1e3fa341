"""
S3 object storage for user textbooks.

All operations return a StorageResult instead of raising, so callers can skip
textbook work in environments where storage is not set up.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.exceptions import ErrorKind

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


@dataclass
class StorageResult:
    success: bool
    url: Optional[str] = None
    data: Optional[bytes] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


def key_for_user(user_id: str) -> str:
    """The single, fixed object key of a user's textbook."""
    return f"pdfs/{user_id}/learning-textbook.pdf"


def _not_configured() -> StorageResult:
    return StorageResult(
        success=False,
        error="AWS credentials not configured",
        error_kind=ErrorKind.NOT_CONFIGURED,
    )


def _client_error_code(e: ClientError) -> Optional[str]:
    return (e.response.get("Error") or {}).get("Code")


class StorageGateway:
    """Upload, download and presign objects in the textbook bucket."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: str,
        secret_access_key: str,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket = bucket
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.endpoint_url = endpoint_url
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.bucket)

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    key_for_user = staticmethod(key_for_user)

    def object_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, key: str, data: bytes, content_type: str = PDF_CONTENT_TYPE) -> StorageResult:
        """Upload (overwrite) a private object and return its URL."""
        if not self.is_configured:
            logger.warning("AWS not configured - upload skipped")
            return _not_configured()

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="private",  # Users download through signed URLs only
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {key} to S3: {e}")
            return StorageResult(success=False, error=str(e), error_kind=ErrorKind.UPSTREAM)

        logger.info(f"Successfully uploaded {len(data)} bytes to S3: {key}")
        return StorageResult(success=True, url=self.object_url(key))

    def download(self, key: str) -> StorageResult:
        """Download an object's bytes; a missing object is ErrorKind.NOT_FOUND."""
        if not self.is_configured:
            logger.warning("AWS not configured - download skipped")
            return _not_configured()

        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response.get("Body")
            data = body.read() if body is not None else None
        except ClientError as e:
            if _client_error_code(e) in NOT_FOUND_CODES:
                logger.info(f"No object in S3 at {key}")
                return StorageResult(success=False, error="Object not found", error_kind=ErrorKind.NOT_FOUND)
            logger.error(f"Failed to download {key} from S3: {e}")
            return StorageResult(success=False, error=str(e), error_kind=ErrorKind.UPSTREAM)
        except BotoCoreError as e:
            logger.error(f"Failed to download {key} from S3: {e}")
            return StorageResult(success=False, error=str(e), error_kind=ErrorKind.UPSTREAM)

        if not data:
            return StorageResult(success=False, error="No data received from S3", error_kind=ErrorKind.UPSTREAM)

        logger.info(f"Successfully downloaded {len(data)} bytes from S3: {key}")
        return StorageResult(success=True, data=data)

    def signed_url(self, key: str, ttl_seconds: int = 3600) -> StorageResult:
        """Generate a time-limited GET url for an object."""
        if not self.is_configured:
            logger.warning("AWS not configured - signed URL generation skipped")
            return _not_configured()

        try:
            url = self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate signed URL for {key}: {e}")
            return StorageResult(success=False, error=str(e), error_kind=ErrorKind.UPSTREAM)

        logger.info(f"Generated signed URL for: {key} (expires in {ttl_seconds}s)")
        return StorageResult(success=True, url=url)
