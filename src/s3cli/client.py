"""boto3 client construction and the get/put/delete/exists blobstore operations."""

from __future__ import annotations

import logging
from typing import IO, Any, Dict, Optional

import boto3
from botocore import UNSIGNED
from botocore.config import Config as BotoConfig

from .config import CredentialsSource, Settings
from .endpoints import NO_REGION
from .errors import BACKEND_ERRORS, ReadOnlyModeError, is_not_found, translate_error

logger = logging.getLogger(__name__)
# Exists status lines, emitted at any log level.
status_logger = logging.getLogger("s3cli.status")

# botocore signer names
LEGACY_SIGNER = "s3"
V4_SIGNER = "s3v4"


def signature_version_for(settings: Settings) -> Any:
    if settings.credentials_source is CredentialsSource.NONE:
        return UNSIGNED
    if settings.use_v2_signing_method or settings.signature_version == 2:
        return LEGACY_SIGNER
    if settings.signature_version == 4:
        return V4_SIGNER
    return None


def make_s3_client(settings: Settings, session: Optional[boto3.session.Session] = None):
    """Build an S3 client for ``settings``. Performs no network I/O."""
    session = session or boto3.session.Session()
    boto_cfg = BotoConfig(
        s3={"addressing_style": "path"},
        signature_version=signature_version_for(settings),
    )
    client_kwargs: Dict[str, Any] = {
        "region_name": settings.effective_region if settings.effective_region != NO_REGION else None,
        "endpoint_url": settings.endpoint_url,
        "use_ssl": settings.use_ssl,
        "config": boto_cfg,
    }
    if not settings.ssl_verify_peer:
        client_kwargs["verify"] = False
    if settings.credentials_source is CredentialsSource.STATIC:
        client_kwargs["aws_access_key_id"] = settings.access_key_id
        client_kwargs["aws_secret_access_key"] = settings.secret_access_key
    return session.client("s3", **{k: v for k, v in client_kwargs.items() if v is not None})


class S3Blobstore:
    """Blob operations against a single bucket of an S3-compatible store."""

    def __init__(self, s3, settings: Settings) -> None:
        self._s3 = s3
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Blobstore":
        return cls(make_s3_client(settings), settings)

    @property
    def bucket(self) -> str:
        return self._settings.bucket_name

    def _ensure_writable(self) -> None:
        if self._settings.read_only:
            raise ReadOnlyModeError()

    def get(self, src: str, dest: IO[bytes], chunk_size: int = 64 * 1024) -> int:
        """Stream object ``src`` into ``dest``. Returns the number of bytes written.

        Raises:
            NotFoundError: If ``src`` does not exist in the bucket.
            AuthError, TransportError: For any other backend failure.
        """
        total_bytes = 0
        try:
            resp = self._s3.get_object(Bucket=self.bucket, Key=src)
            for chunk in resp["Body"].iter_chunks(chunk_size=chunk_size):
                if not chunk:
                    continue
                dest.write(chunk)
                total_bytes += len(chunk)
        except BACKEND_ERRORS as exc:
            raise translate_error(exc) from exc
        return total_bytes

    def put(self, src: IO[bytes], dest: str) -> None:
        """Upload the whole of ``src`` as object ``dest``.

        Raises:
            ReadOnlyModeError: With anonymous credentials, before any request is sent.
        """
        self._ensure_writable()
        extra_args: Dict[str, str] = {}
        if self._settings.server_side_encryption:
            extra_args["ServerSideEncryption"] = self._settings.server_side_encryption
        if self._settings.sse_kms_key_id:
            extra_args["SSEKMSKeyId"] = self._settings.sse_kms_key_id
        try:
            # upload_fileobj handles multipart and retries under the hood
            self._s3.upload_fileobj(src, self.bucket, dest, ExtraArgs=extra_args or None)
        except BACKEND_ERRORS as exc:
            raise translate_error(exc) from exc
        logger.info("Successfully uploaded file to %s", self.location(dest))

    def delete(self, dest: str) -> None:
        """Delete object ``dest``. Deleting a missing object is not an error."""
        self._ensure_writable()
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=dest)
        except BACKEND_ERRORS as exc:
            if is_not_found(exc):
                logger.debug("File '%s' already absent from bucket '%s'", dest, self.bucket)
                return
            raise translate_error(exc) from exc

    def exists(self, dest: str) -> bool:
        try:
            self._s3.head_object(Bucket=self.bucket, Key=dest)
        except BACKEND_ERRORS as exc:
            if is_not_found(exc):
                status_logger.info("File '%s' does not exist in bucket '%s'", dest, self.bucket)
                return False
            raise translate_error(exc) from exc
        status_logger.info("File '%s' exists in bucket '%s'", dest, self.bucket)
        return True

    def location(self, key: str) -> str:
        endpoint = self._s3.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"
