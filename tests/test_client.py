"""Tests for S3 client construction and the blobstore operations."""

import io
from unittest.mock import MagicMock

import boto3
import pytest
from botocore import UNSIGNED
from botocore.exceptions import EndpointConnectionError, NoCredentialsError

from s3cli.client import LEGACY_SIGNER, V4_SIGNER, S3Blobstore, make_s3_client
from s3cli.config import Settings
from s3cli.errors import (
    AuthError,
    NotFoundError,
    ReadOnlyModeError,
    TransportError,
)

from .fake_s3 import client_error

STATIC = {"credentials_source": "static", "access_key_id": "A", "secret_access_key": "S"}


def make(**fields):
    return Settings.from_document({"bucket_name": "b", **STATIC, **fields})


class TestMakeS3Client:
    @pytest.fixture
    def session(self):
        return MagicMock()

    def client_kwargs(self, session, settings):
        make_s3_client(settings, session=session)
        session.client.assert_called_once()
        args, kwargs = session.client.call_args
        assert args == ("s3",)
        return kwargs

    def test_static_credentials(self, session):
        kwargs = self.client_kwargs(session, make(region="us-east-1"))

        assert kwargs["aws_access_key_id"] == "A"
        assert kwargs["aws_secret_access_key"] == "S"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["use_ssl"] is True
        assert "endpoint_url" not in kwargs
        assert "verify" not in kwargs
        assert kwargs["config"].s3 == {"addressing_style": "path"}
        assert kwargs["config"].signature_version is None

    def test_anonymous_credentials_are_unsigned(self, session):
        settings = Settings.from_document(
            {"bucket_name": "b", "credentials_source": "none", "use_v2_signing_method": True}
        )
        kwargs = self.client_kwargs(session, settings)

        assert "aws_access_key_id" not in kwargs
        assert kwargs["config"].signature_version is UNSIGNED

    def test_env_or_profile_uses_default_chain(self, session):
        settings = Settings.from_document(
            {"bucket_name": "b", "credentials_source": "env_or_profile"}
        )
        kwargs = self.client_kwargs(session, settings)

        assert "aws_access_key_id" not in kwargs
        assert "aws_secret_access_key" not in kwargs
        assert kwargs["config"].signature_version is None

    def test_no_region_leaves_region_unset(self, session):
        kwargs = self.client_kwargs(session, make(host="minio.local", port=9000, use_ssl=False))

        assert "region_name" not in kwargs
        assert kwargs["endpoint_url"] == "http://minio.local:9000"
        assert kwargs["use_ssl"] is False

    def test_peer_verification_can_be_disabled(self, session):
        kwargs = self.client_kwargs(session, make(host="h", ssl_verify_peer=False))

        assert kwargs["verify"] is False

    @pytest.mark.parametrize(
        "fields",
        [
            {"host": "s3.amazonaws.com"},
            {"region": "eu-west-1"},
            {"host": "minio.local", "port": 9000, "use_ssl": False},
        ],
    )
    def test_path_style_addressing_is_always_used(self, session, fields):
        kwargs = self.client_kwargs(session, make(**fields))

        assert kwargs["config"].s3 == {"addressing_style": "path"}

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"use_v2_signing_method": True}, LEGACY_SIGNER),
            ({"signature_version": 2}, LEGACY_SIGNER),
            ({"signature_version": 4}, V4_SIGNER),
            ({"signature_version": 4, "use_v2_signing_method": True}, LEGACY_SIGNER),
        ],
    )
    def test_signature_version(self, session, fields, expected):
        kwargs = self.client_kwargs(session, make(**fields))

        assert kwargs["config"].signature_version == expected

    def test_builds_real_client_without_network(self):
        settings = make(host="s3-eu-west-1.amazonaws.com")
        s3 = make_s3_client(settings, session=boto3.session.Session())

        assert s3.meta.region_name == "eu-west-1"
        assert s3.meta.endpoint_url == "https://s3-eu-west-1.amazonaws.com"


class TestS3Blobstore:
    @pytest.fixture
    def blobstore(self, fake_s3, static_settings):
        return S3Blobstore(fake_s3, static_settings)

    def test_put_get_exists_delete_lifecycle(self, blobstore, caplog):
        caplog.set_level("INFO", logger="s3cli")
        blobstore.put(io.BytesIO(b"hi"), "hello.txt")

        out = io.BytesIO()
        blobstore.get("hello.txt", out)
        assert out.getvalue() == b"hi"

        assert blobstore.exists("hello.txt") is True
        blobstore.delete("hello.txt")
        assert blobstore.exists("hello.txt") is False

        assert "Successfully uploaded file to https://s3.amazonaws.com/b/hello.txt" in caplog.text
        assert "File 'hello.txt' exists in bucket 'b'" in caplog.text
        assert "File 'hello.txt' does not exist in bucket 'b'" in caplog.text

    @pytest.mark.parametrize(
        "payload", [b"", b"\x00\xff\x10binary\r\n", bytes(range(256)) * 1024]
    )
    def test_round_trip_is_byte_identical(self, blobstore, payload):
        blobstore.put(io.BytesIO(payload), "k")
        out = io.BytesIO()

        written = blobstore.get("k", out, chunk_size=1000)

        assert out.getvalue() == payload
        assert written == len(payload)

    def test_get_missing_key_is_not_found(self, blobstore):
        with pytest.raises(NotFoundError, match="NoSuchKey"):
            blobstore.get("nope.txt", io.BytesIO())

    def test_put_applies_encryption_options(self, fake_s3):
        settings = make(server_side_encryption="aws:kms", sse_kms_key_id="key-1")
        S3Blobstore(fake_s3, settings).put(io.BytesIO(b"x"), "k")

        assert fake_s3.objects[("b", "k")]["extra_args"] == {
            "ServerSideEncryption": "aws:kms",
            "SSEKMSKeyId": "key-1",
        }

    def test_put_without_encryption_sends_no_extra_args(self, blobstore, fake_s3):
        blobstore.put(io.BytesIO(b"x"), "k")

        assert fake_s3.objects[("b", "k")]["extra_args"] == {}

    @pytest.mark.parametrize("missing_status", [204, 404])
    def test_delete_is_idempotent(self, blobstore, fake_s3, missing_status):
        fake_s3.missing_delete_status = missing_status
        blobstore.put(io.BytesIO(b"x"), "k")

        blobstore.delete("k")
        blobstore.delete("k")

        assert fake_s3.calls.count("delete_object") == 2

    def test_delete_surfaces_other_failures(self, static_settings):
        s3 = MagicMock()
        s3.delete_object.side_effect = client_error("AccessDenied", 403, "DeleteObject")

        with pytest.raises(AuthError, match="AccessDenied"):
            S3Blobstore(s3, static_settings).delete("k")

    def test_exists_surfaces_other_failures(self, static_settings):
        s3 = MagicMock()
        s3.head_object.side_effect = client_error("500", 500, "HeadObject", "Internal Error")

        with pytest.raises(TransportError):
            S3Blobstore(s3, static_settings).exists("k")

    @pytest.mark.parametrize("operation", ["put", "delete"])
    def test_anonymous_mode_rejects_writes_without_requests(
        self, fake_s3, anonymous_settings, operation
    ):
        blobstore = S3Blobstore(fake_s3, anonymous_settings)

        with pytest.raises(ReadOnlyModeError, match="read only mode"):
            if operation == "put":
                blobstore.put(io.BytesIO(b"x"), "k")
            else:
                blobstore.delete("k")

        assert fake_s3.calls == []

    def test_anonymous_mode_allows_reads(self, fake_s3, anonymous_settings):
        fake_s3.objects[("b", "k")] = {"body": b"public"}
        blobstore = S3Blobstore(fake_s3, anonymous_settings)
        out = io.BytesIO()

        blobstore.get("k", out)

        assert out.getvalue() == b"public"
        assert blobstore.exists("k") is True

    def test_transport_error_is_distinguishable(self, static_settings):
        s3 = MagicMock()
        s3.get_object.side_effect = EndpointConnectionError(endpoint_url="https://h")

        with pytest.raises(TransportError) as excinfo:
            S3Blobstore(s3, static_settings).get("k", io.BytesIO())

        assert not isinstance(excinfo.value, NotFoundError)

    def test_missing_credentials_is_auth_error(self, static_settings):
        s3 = MagicMock()
        s3.head_object.side_effect = NoCredentialsError()

        with pytest.raises(AuthError):
            S3Blobstore(s3, static_settings).exists("k")

    def test_from_settings_builds_client(self, static_settings, monkeypatch):
        sentinel = MagicMock()
        monkeypatch.setattr("s3cli.client.make_s3_client", lambda settings: sentinel)

        blobstore = S3Blobstore.from_settings(static_settings)

        assert blobstore._s3 is sentinel
        assert blobstore.bucket == "b"
