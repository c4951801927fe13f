"""Tests for principal resolution from request headers."""

from datetime import timedelta

import pytest

from siteaccess.core.config import settings
from siteaccess.core.security import create_access_token
from siteaccess.models.access_token import AccessTokenKind
from siteaccess.services.principals import (
    Anonymous,
    AuthenticatedUser,
    ServiceRole,
    principal_user_id,
    resolve_principal,
)


@pytest.mark.unit
def test_missing_credentials_resolve_to_anonymous():
    principal = resolve_principal({})

    assert isinstance(principal, Anonymous)
    assert principal.tokens == {}
    assert principal.is_authenticated is False
    assert principal_user_id(principal) is None


@pytest.mark.unit
def test_valid_jwt_resolves_to_authenticated_user():
    token = create_access_token(subject=42)

    principal = resolve_principal({"authorization": f"Bearer {token}"})

    assert principal == AuthenticatedUser(user_id=42)
    assert principal_user_id(principal) == 42


@pytest.mark.unit
def test_expired_jwt_fails_closed():
    token = create_access_token(subject=42, expires_delta=timedelta(minutes=-5))

    principal = resolve_principal({"authorization": f"Bearer {token}"})

    assert isinstance(principal, Anonymous)


@pytest.mark.unit
@pytest.mark.parametrize(
    "authorization",
    ["Bearer not-a-jwt", "Basic dXNlcjpwYXNz", "Bearer ", "Bearer"],
)
def test_unusable_authorization_header_fails_closed(authorization):
    assert isinstance(resolve_principal({"authorization": authorization}), Anonymous)


@pytest.mark.unit
def test_non_numeric_subject_fails_closed():
    token = create_access_token(subject="someone@example.com")

    assert isinstance(resolve_principal({"authorization": f"Bearer {token}"}), Anonymous)


@pytest.mark.unit
def test_service_key_resolves_to_service_role(monkeypatch):
    monkeypatch.setattr(settings, "SERVICE_ROLE_KEY", "service-secret")

    principal = resolve_principal({"authorization": "Bearer service-secret"})

    assert isinstance(principal, ServiceRole)
    assert principal_user_id(principal) is None


@pytest.mark.unit
def test_service_key_unset_never_matches(monkeypatch):
    monkeypatch.setattr(settings, "SERVICE_ROLE_KEY", None)

    assert isinstance(resolve_principal({"authorization": "Bearer anything"}), Anonymous)


@pytest.mark.unit
def test_anonymous_carries_presented_portal_tokens():
    principal = resolve_principal(
        {
            "x-portal-token": "client-abc",
            "x-contractor-token": " contractor-xyz ",
            "x-contributor-email": "Client@Example.COM",
        }
    )

    assert isinstance(principal, Anonymous)
    assert principal.token_for(AccessTokenKind.client_portal) == "client-abc"
    assert principal.token_for(AccessTokenKind.contractor_portal) == "contractor-xyz"
    assert principal.token_for(AccessTokenKind.roadmap_share) is None
    assert principal.contributor_email == "client@example.com"


@pytest.mark.unit
def test_bad_jwt_still_keeps_portal_tokens():
    principal = resolve_principal(
        {"authorization": "Bearer garbage", "x-roadmap-token": "share-1"}
    )

    assert isinstance(principal, Anonymous)
    assert principal.token_for(AccessTokenKind.roadmap_share) == "share-1"
