"""Tests for environment-driven settings."""

import pytest

from siteaccess.core.config import Settings


@pytest.mark.unit
def test_storage_buckets_from_comma_pairs(monkeypatch):
    monkeypatch.setenv("STORAGE_BUCKETS", "site-photos=Member, floor-plans=token,broken")

    settings = Settings(_env_file=None)

    assert settings.STORAGE_BUCKETS == {"site-photos": "member", "floor-plans": "token"}


@pytest.mark.unit
def test_storage_buckets_from_json_object(monkeypatch):
    monkeypatch.setenv("STORAGE_BUCKETS", '{"site-photos": "MEMBER"}')

    settings = Settings(_env_file=None)

    assert settings.STORAGE_BUCKETS == {"site-photos": "member"}


@pytest.mark.unit
def test_storage_buckets_blank_is_empty(monkeypatch):
    monkeypatch.setenv("STORAGE_BUCKETS", "  ")

    assert Settings(_env_file=None).STORAGE_BUCKETS == {}


@pytest.mark.unit
def test_app_database_url_is_optional(monkeypatch):
    monkeypatch.delenv("DATABASE_URL_APP", raising=False)

    settings = Settings(_env_file=None)

    assert settings.DATABASE_URL_APP is None
    assert settings.DATABASE_APP_ROLE == "app_user"
