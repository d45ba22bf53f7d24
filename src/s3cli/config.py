"""Configuration document parsing and endpoint/region resolution."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Mapping, Optional

from .endpoints import DEFAULT_PORTS, ENDPOINTS_TO_REGIONS, NO_REGION
from .errors import ConfigError


class CredentialsSource(enum.Enum):
    STATIC = "static"
    NONE = "none"
    ENV_OR_PROFILE = "env_or_profile"

    @classmethod
    def parse(cls, value: Any) -> "CredentialsSource":
        if value is None or value == "":
            return cls.STATIC
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(repr(s.value) for s in cls)
            raise ConfigError(
                f"invalid credentials_source {value!r}: expected one of {allowed}"
            ) from None


@dataclass(frozen=True)
class Settings:
    bucket_name: str
    credentials_source: CredentialsSource = CredentialsSource.STATIC
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    region: Optional[str] = None
    use_ssl: bool = True
    ssl_verify_peer: bool = True
    use_v2_signing_method: bool = False
    signature_version: Optional[int] = None
    server_side_encryption: Optional[str] = None
    sse_kms_key_id: Optional[str] = None
    # Derived by the resolver
    effective_region: str = NO_REGION
    endpoint_url: Optional[str] = None

    @property
    def read_only(self) -> bool:
        return self.credentials_source is CredentialsSource.NONE

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Settings":
        """Validate a parsed configuration document and resolve region/endpoint.

        Pure function: no environment lookups, no network access.

        Raises:
            ConfigError: If a required field is missing or a value has the wrong type.
        """
        if not isinstance(document, Mapping):
            raise ConfigError("configuration must be a JSON object")

        bucket_name = _get_str(document, "bucket_name")
        if not bucket_name:
            raise ConfigError("bucket_name must be set")

        source = CredentialsSource.parse(document.get("credentials_source"))
        access_key_id = _get_str(document, "access_key_id")
        secret_access_key = _get_str(document, "secret_access_key")
        if source is CredentialsSource.STATIC:
            if not access_key_id or not secret_access_key:
                raise ConfigError(
                    "access_key_id and secret_access_key must be provided "
                    "when credentials_source is 'static'"
                )
        elif access_key_id or secret_access_key:
            raise ConfigError(
                f"can't use access_key_id and secret_access_key with "
                f"{source.value!r} credentials_source"
            )

        host = _get_str(document, "host")
        port = _get_port(document)
        region = _get_str(document, "region")
        use_ssl = _get_bool(document, "use_ssl", True)

        signature_version = document.get("signature_version")
        if signature_version is not None:
            if isinstance(signature_version, str) and signature_version.isdigit():
                signature_version = int(signature_version)
            if signature_version not in (2, 4) or isinstance(signature_version, bool):
                raise ConfigError(
                    f"signature_version must be 2 or 4, got {signature_version!r}"
                )

        effective_region, endpoint_url = resolve_region_and_endpoint(
            region=region, host=host, port=port, use_ssl=use_ssl
        )

        return cls(
            bucket_name=bucket_name,
            credentials_source=source,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            host=host,
            port=port,
            region=region,
            use_ssl=use_ssl,
            ssl_verify_peer=_get_bool(document, "ssl_verify_peer", True),
            use_v2_signing_method=_get_bool(document, "use_v2_signing_method", False),
            signature_version=signature_version,
            server_side_encryption=_get_str(document, "server_side_encryption"),
            sse_kms_key_id=_get_str(document, "sse_kms_key_id"),
            effective_region=effective_region,
            endpoint_url=endpoint_url,
        )

    @classmethod
    def from_reader(cls, fp: IO[str]) -> "Settings":
        try:
            document = json.load(fp)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"configuration is not valid JSON: {exc}") from exc
        return cls.from_document(document)


def load_settings(path: Path) -> Settings:
    try:
        with Path(path).open("r", encoding="utf-8") as fp:
            return Settings.from_reader(fp)
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {path}: {exc}") from exc


def region_for_host(host: Optional[str]) -> Optional[str]:
    """Region served by a well-known S3 hostname, or None if the host is not listed."""
    if not host:
        return None
    return ENDPOINTS_TO_REGIONS.get(host.strip().lower())


def endpoint_url_for(host: str, port: Optional[int], use_ssl: bool) -> str:
    scheme = "https" if use_ssl else "http"
    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def resolve_region_and_endpoint(
    region: Optional[str],
    host: Optional[str],
    port: Optional[int],
    use_ssl: bool,
) -> tuple[str, Optional[str]]:
    """Return (effective_region, endpoint_url).

    Precedence: explicit region, then the hostname table, then NO_REGION.
    An explicit region never forces a default endpoint: a configured host is
    still used as-is, even when it is not in the table.
    """
    endpoint_url = endpoint_url_for(host, port, use_ssl) if host else None
    if region:
        return region, endpoint_url
    if host:
        return region_for_host(host) or NO_REGION, endpoint_url
    return NO_REGION, None


def _get_str(document: Mapping[str, Any], key: str) -> Optional[str]:
    value = document.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string, got {type(value).__name__}")
    value = value.strip()
    return value or None


def _get_bool(document: Mapping[str, Any], key: str, default: bool) -> bool:
    value = document.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be a boolean, got {value!r}")
    return value


def _get_port(document: Mapping[str, Any]) -> Optional[int]:
    value = document.get("port")
    if isinstance(value, bool):
        raise ConfigError(f"port must be an integer, got {value!r}")
    # 0 means unset
    if value is None or value == 0:
        return None
    if not isinstance(value, int) or not 0 < value < 65536:
        raise ConfigError(f"port must be an integer between 1 and 65535, got {value!r}")
    return value
