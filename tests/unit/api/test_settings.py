"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from api.settings import Settings
from halaqah.clock import DEFAULT_TIMEZONE


def test_storage_backend_is_normalized():
    assert Settings(storage_backend="MEMORY").storage_backend == "memory"


def test_unknown_storage_backend_rejected():
    with pytest.raises(ValidationError):
        Settings(storage_backend="sqlite")


def test_unknown_timezone_falls_back():
    assert Settings(tz="Mars/Olympus").tz == DEFAULT_TIMEZONE
    assert Settings(tz="Asia/Makassar").tz == "Asia/Makassar"


def test_allowed_origins_are_split(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test,,")

    assert Settings().allowed_origins == ["http://a.test", "http://b.test"]
