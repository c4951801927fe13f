"""Relationship predicates used by table policies.

Every function here reads its table straight through the session, never
through ``PolicyEvaluator``. That is what lets the ``project_members``
policy ask "is the caller a member of this project?" without evaluating the
``project_members`` policy again. The database migrations mirror these as
``SECURITY DEFINER`` functions for the same reason.

All predicates are read-only. ``record_token_use`` is the one write, and it
is called by request handlers after access was granted, never from inside a
predicate.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Union

from sqlalchemy import or_, text, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.db.session import is_postgres
from siteaccess.models.access_token import (
    AccessTokenKind,
    ClientPortalToken,
    ContractorPortalToken,
    RoadmapShareToken,
    ShareTokenStatus,
)
from siteaccess.models.project import Project, ProjectMember

logger = logging.getLogger(__name__)

AccessTokenRow = Union[ClientPortalToken, ContractorPortalToken, RoadmapShareToken]

TOKEN_MODELS: dict[AccessTokenKind, type] = {
    AccessTokenKind.client_portal: ClientPortalToken,
    AccessTokenKind.contractor_portal: ContractorPortalToken,
    AccessTokenKind.roadmap_share: RoadmapShareToken,
}


def token_model(kind: AccessTokenKind | str) -> type:
    return TOKEN_MODELS[AccessTokenKind(kind)]


async def is_project_member(session: AsyncSession, user_id: int | None, project_id: int | None) -> bool:
    """True iff a membership row exists for (user, project)."""
    if user_id is None or project_id is None:
        return False
    stmt = (
        select(ProjectMember.user_id)
        .where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .limit(1)
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def is_project_owner(session: AsyncSession, user_id: int | None, project_id: int | None) -> bool:
    if user_id is None or project_id is None:
        return False
    stmt = (
        select(Project.id)
        .where(Project.id == project_id, Project.created_by == user_id)
        .limit(1)
    )
    result = await session.exec(stmt)
    return result.first() is not None


def _validity_conditions(model: type, now: datetime) -> list[Any]:
    conditions: list[Any] = [model.expires_at.is_not(None), model.expires_at > now]
    if model is RoadmapShareToken:
        conditions.append(model.status == ShareTokenStatus.active)
    else:
        conditions.append(model.is_active.is_(True))
    return conditions


async def resolve_access_token(
    session: AsyncSession,
    token: str | None,
    kind: AccessTokenKind | str,
    *,
    now: datetime | None = None,
) -> AccessTokenRow | None:
    """Return the token row if ``token`` is currently valid, else ``None``.

    Validity is re-checked on every call: existing, non-empty, unexpired and
    not revoked. Contractor tokens may also be presented by short code.
    """
    if not token:
        return None
    model = token_model(kind)
    now = now or datetime.now(timezone.utc)
    if model is ContractorPortalToken:
        match = or_(model.token == token, model.short_code == token)
    else:
        match = model.token == token
    stmt = select(model).where(match, *_validity_conditions(model, now)).limit(1)
    result = await session.exec(stmt)
    return result.first()


async def has_valid_access_token(
    session: AsyncSession,
    resource_id: int | None,
    token: str | None,
    *,
    kind: AccessTokenKind | str = AccessTokenKind.client_portal,
) -> bool:
    """True iff ``token`` is a valid token of ``kind`` for project ``resource_id``."""
    if resource_id is None:
        return False
    row = await resolve_access_token(session, token, kind)
    return row is not None and row.project_id == resource_id


async def record_token_use(session: AsyncSession, token_row: AccessTokenRow) -> None:
    """Bump the access counter and last-used timestamp of a token."""
    model = type(token_row)
    if is_postgres(session):
        # Visitors cannot update token rows directly; the definer function
        # only touches the row matching the presented token.
        kind = next(kind for kind, candidate in TOKEN_MODELS.items() if candidate is model)
        await session.exec(
            text("SELECT record_access_token_use(:kind, :token_id)"),
            params={"kind": kind.value, "token_id": token_row.id},
        )
    else:
        stmt = (
            update(model)
            .where(model.id == token_row.id)
            .values(
                access_count=model.access_count + 1,
                last_accessed_at=datetime.now(timezone.utc),
            )
        )
        await session.exec(stmt)
    logger.debug("Recorded use of %s token %s", model.__tablename__, token_row.id)
