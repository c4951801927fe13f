"""Object store access tiers.

Each bucket has one tier:

- ``public``: anyone, including anonymous callers
- ``authenticated``: any signed-in user
- ``member``: members of the project named by the first path segment
- ``token``: as ``member``, plus anonymous holders of a valid client or
  contractor portal token for that project

Only the access decision lives here; object contents are handled elsewhere.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from siteaccess.core.config import settings
from siteaccess.models.access_token import AccessTokenKind
from siteaccess.services import relationships
from siteaccess.services.principals import Anonymous

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


class BucketTier(str, Enum):
    public = "public"
    authenticated = "authenticated"
    member = "member"
    token = "token"


DEFAULT_BUCKETS: dict[str, BucketTier] = {
    "project-logos": BucketTier.public,
    "floor-plans": BucketTier.member,
    "invoice-pdfs": BucketTier.member,
    "tenant-documents": BucketTier.member,
    "portal-documents": BucketTier.token,
    "boq-uploads": BucketTier.authenticated,
}


def bucket_tiers() -> dict[str, BucketTier]:
    buckets = dict(DEFAULT_BUCKETS)
    for name, tier in settings.STORAGE_BUCKETS.items():
        try:
            buckets[name] = BucketTier(tier)
        except ValueError:
            logger.warning("Ignoring bucket %s with unknown tier %r", name, tier)
    return buckets


def bucket_tier(bucket: str) -> BucketTier | None:
    return bucket_tiers().get(bucket)


def project_id_from_path(path: str) -> int | None:
    head = path.lstrip("/").split("/", 1)[0]
    if not head.isdigit():
        return None
    return int(head)


async def can_access_object(evaluator: PolicyEvaluator, bucket: str, path: str) -> bool:
    """Decide whether the caller may read ``bucket/path``. Unknown buckets deny."""
    tier = bucket_tier(bucket)
    if tier is None:
        return False
    if tier is BucketTier.public or evaluator.is_service_role:
        return True
    if tier is BucketTier.authenticated:
        return evaluator.principal.is_authenticated

    if await evaluator.is_admin():
        return True
    project_id = project_id_from_path(path)
    if project_id is None:
        return False
    if await relationships.is_project_member(evaluator.session, evaluator.user_id, project_id):
        return True
    principal = evaluator.principal
    if tier is BucketTier.token and isinstance(principal, Anonymous):
        for kind in (AccessTokenKind.client_portal, AccessTokenKind.contractor_portal):
            if await relationships.has_valid_access_token(
                evaluator.session, project_id, principal.token_for(kind), kind=kind
            ):
                return True
    logger.debug("Denied %s/%s", bucket, path)
    return False
