"""Issuing and revoking portal / share tokens.

Token rows are member-gated: only members of the project (or admins) can
issue, list or revoke them. Holders of a token never read these tables
through the policy layer; they are matched by ``relationships``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Sequence

from siteaccess.core.config import settings
from siteaccess.core.errors import ConstraintViolation
from siteaccess.core.messages import TokenMessages
from siteaccess.core.security import generate_portal_token, generate_short_code
from siteaccess.models.access_token import (
    AccessTokenKind,
    ClientPortalToken,
    ContractorPortalToken,
    ContractorType,
    RoadmapShareToken,
    ShareTokenStatus,
)
from siteaccess.services.guarded import get_visible, insert_row, select_visible, update_row
from siteaccess.services.relationships import AccessTokenRow, token_model

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


def parse_kind(value: AccessTokenKind | str) -> AccessTokenKind:
    if isinstance(value, AccessTokenKind):
        return value
    try:
        return AccessTokenKind(value)
    except ValueError as exc:
        raise ConstraintViolation(TokenMessages.INVALID_KIND, field="kind", value=value) from exc


def _default_expiry(days: int | None) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days or settings.PORTAL_TOKEN_EXPIRE_DAYS)


async def issue_token(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    kind: AccessTokenKind | str,
    expires_in_days: int | None = None,
    email: str | None = None,
    contractor_name: str | None = None,
    contractor_type: ContractorType | str = ContractorType.main_contractor,
    company_name: str | None = None,
    document_categories: Sequence[str] = (),
    reviewer_name: str | None = None,
) -> AccessTokenRow:
    kind_value = parse_kind(kind)
    common: dict[str, Any] = {
        "project_id": project_id,
        "token": generate_portal_token(),
        "expires_at": _default_expiry(expires_in_days),
        "created_by": evaluator.user_id,
    }
    if kind_value is AccessTokenKind.client_portal:
        row: AccessTokenRow = ClientPortalToken(email=email, **common)
    elif kind_value is AccessTokenKind.contractor_portal:
        try:
            contractor_type_value = ContractorType(contractor_type)
        except ValueError as exc:
            raise ConstraintViolation(
                TokenMessages.INVALID_CONTRACTOR_TYPE, field="contractor_type", value=contractor_type
            ) from exc
        row = ContractorPortalToken(
            short_code=generate_short_code(),
            contractor_type=contractor_type_value,
            contractor_name=contractor_name or email or "",
            contractor_email=email or "",
            company_name=company_name,
            document_categories=list(document_categories),
            **common,
        )
    else:
        row = RoadmapShareToken(reviewer_name=reviewer_name, reviewer_email=email, **common)

    await insert_row(evaluator, row)
    logger.info("Issued %s token %s for project %s", kind_value.value, row.id, project_id)
    return row


async def list_tokens(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    kind: AccessTokenKind | str,
) -> list[AccessTokenRow]:
    model = token_model(parse_kind(kind))
    return await select_visible(evaluator, model, model.project_id == project_id, order_by=model.id)


async def revoke_token(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    kind: AccessTokenKind | str,
    token_id: int,
) -> bool:
    """Revoke a token. It stays on record but no longer validates."""
    kind_value = parse_kind(kind)
    model = token_model(kind_value)
    row = await get_visible(evaluator, model, token_id)
    if row is None or row.project_id != project_id:
        return False
    if kind_value is AccessTokenKind.roadmap_share:
        values: dict[str, Any] = {"status": ShareTokenStatus.revoked}
    else:
        values = {"is_active": False}
    updated = await update_row(evaluator, row, values)
    if updated:
        logger.info("Revoked %s token %s", kind_value.value, token_id)
    return bool(updated)
