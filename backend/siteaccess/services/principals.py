"""Principal resolution: who is making this request.

Every request resolves to exactly one of three principals:

  * ``AuthenticatedUser``: a valid signed JWT with a numeric subject.
  * ``ServiceRole``:       the configured service key; bypasses policies.
  * ``Anonymous``:         everything else, possibly carrying portal tokens.

Resolution never raises: a bad, expired or missing credential degrades to
``Anonymous`` and the policy layer decides what that may see.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Union

from siteaccess.core.security import decode_access_token, is_service_key
from siteaccess.models.access_token import AccessTokenKind

logger = logging.getLogger(__name__)

# Header carrying each kind of bearer token presented by external callers.
TOKEN_HEADERS: dict[AccessTokenKind, str] = {
    AccessTokenKind.client_portal: "x-portal-token",
    AccessTokenKind.contractor_portal: "x-contractor-token",
    AccessTokenKind.roadmap_share: "x-roadmap-token",
}
CONTRIBUTOR_HEADER = "x-contributor-email"


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: int

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class Anonymous:
    tokens: Mapping[AccessTokenKind, str] = field(default_factory=dict)
    contributor_email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return False

    def token_for(self, kind: AccessTokenKind) -> str | None:
        return self.tokens.get(kind)


@dataclass(frozen=True)
class ServiceRole:
    @property
    def is_authenticated(self) -> bool:
        return True


Principal = Union[AuthenticatedUser, Anonymous, ServiceRole]


def principal_user_id(principal: Principal) -> int | None:
    if isinstance(principal, AuthenticatedUser):
        return principal.user_id
    return None


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def _anonymous(headers: Mapping[str, str]) -> Anonymous:
    tokens: dict[AccessTokenKind, str] = {}
    for kind, header in TOKEN_HEADERS.items():
        value = (headers.get(header) or "").strip()
        if value:
            tokens[kind] = value
    email = (headers.get(CONTRIBUTOR_HEADER) or "").strip().lower() or None
    return Anonymous(tokens=tokens, contributor_email=email)


def resolve_principal(headers: Mapping[str, str]) -> Principal:
    """Resolve the calling principal from request headers.

    ``headers`` must use lower-case keys (Starlette ``Headers`` already do).
    """
    token = _bearer(headers.get("authorization"))
    if token is None:
        return _anonymous(headers)

    if is_service_key(token):
        return ServiceRole()

    claims = decode_access_token(token)
    if not claims:
        logger.debug("Unusable bearer credential; treating caller as anonymous")
        return _anonymous(headers)

    subject = claims.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        logger.debug("Bearer credential without a numeric subject; treating caller as anonymous")
        return _anonymous(headers)
    return AuthenticatedUser(user_id=user_id)
