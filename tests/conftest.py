"""Shared fixtures."""

from __future__ import annotations

import json
from typing import Any

import pytest

from s3cli.config import Settings

from .fake_s3 import FakeS3Client


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def static_settings():
    return Settings.from_document(
        {
            "bucket_name": "b",
            "credentials_source": "static",
            "access_key_id": "A",
            "secret_access_key": "S",
            "region": "us-east-1",
        }
    )


@pytest.fixture
def anonymous_settings():
    return Settings.from_document({"bucket_name": "b", "credentials_source": "none"})


@pytest.fixture
def write_config(tmp_path):
    """Write a JSON config document to a temp file and return its path."""

    def _write(document: dict[str, Any]):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write
