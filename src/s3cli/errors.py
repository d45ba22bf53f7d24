"""Error taxonomy for blobstore operations.

Every failure that reaches the command line is an ``S3CliError``. Errors
raised by boto3/botocore are translated with ``translate_error`` so callers
can tell a missing key apart from auth or transport failures.
"""

from __future__ import annotations

from typing import Optional

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
AUTH_CODES = frozenset(
    {
        "AccessDenied",
        "Forbidden",
        "403",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "ExpiredToken",
        "InvalidToken",
    }
)

# Everything boto3/botocore raise for a failed request.
BACKEND_ERRORS = (ClientError, BotoCoreError, S3UploadFailedError)


class S3CliError(RuntimeError):
    """Base class for all errors reported by the CLI."""


class ConfigError(S3CliError):
    """Raised when the configuration document is malformed or incomplete."""


class ReadOnlyModeError(S3CliError):
    """Raised when a mutating operation is attempted with anonymous credentials."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or "the client operates in read only mode. Change 'credentials_source' parameter value"
        )


class NotFoundError(S3CliError):
    """Raised when the backend reports that the key does not exist."""


class AuthError(S3CliError):
    """Raised for missing, invalid or rejected credentials."""


class TransportError(S3CliError):
    """Raised for network, TLS and any other backend failure."""


def _client_error(exc: BaseException) -> Optional[ClientError]:
    if isinstance(exc, ClientError):
        return exc
    # upload_fileobj wraps the ClientError it got from the backend
    if isinstance(exc, S3UploadFailedError) and isinstance(exc.__cause__, ClientError):
        return exc.__cause__
    return None


def error_code(exc: BaseException) -> Optional[str]:
    client_error = _client_error(exc)
    if client_error is None:
        return None
    code = client_error.response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def status_code(exc: BaseException) -> Optional[int]:
    client_error = _client_error(exc)
    if client_error is None:
        return None
    status = client_error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return int(status) if status is not None else None


def is_not_found(exc: BaseException) -> bool:
    """True when ``exc`` is the backend's answer for a missing object."""
    if status_code(exc) == 404:
        return True
    return error_code(exc) in NOT_FOUND_CODES


def translate_error(exc: BaseException) -> S3CliError:
    """Map a boto3/botocore exception onto the error taxonomy.

    The backend message is kept verbatim so backend indicators such as
    ``NoSuchKey`` stay visible to the caller.
    """
    if isinstance(exc, S3CliError):
        return exc
    message = str(exc)
    if is_not_found(exc):
        return NotFoundError(message)
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return AuthError(message)
    if status_code(exc) == 403 or error_code(exc) in AUTH_CODES:
        return AuthError(message)
    return TransportError(message)
