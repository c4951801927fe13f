"""
Test data factories for creating database models.

This module provides factory functions for creating test instances of database models
with sensible defaults. Each factory function can accept overrides for any field.

Factories write straight through the session. They do not go through the
policy layer, so tests can arrange any state before exercising a policy.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.security import create_access_token, generate_portal_token, generate_short_code
from siteaccess.models.access_token import (
    AccessTokenKind,
    ClientPortalToken,
    ContractorPortalToken,
    RoadmapShareToken,
)
from siteaccess.models.project import MemberPosition, Project, ProjectMember
from siteaccess.models.task import Task
from siteaccess.models.template import CoverPageTemplate
from siteaccess.models.user import AppRole, User, UserRole


async def _save(session: AsyncSession, instance: Any, commit: bool) -> Any:
    session.add(instance)
    if commit:
        await session.commit()
        await session.refresh(instance)
    else:
        await session.flush()
    return instance


async def create_user(
    session: AsyncSession,
    commit: bool = True,
    **overrides: Any,
) -> User:
    """
    Create a test user with sensible defaults.

    Example:
        user = await create_user(session, email="site.manager@example.com")
    """
    defaults = {
        "email": f"user-{uuid4().hex[:12]}@example.com",
        "full_name": "Test User",
        "is_active": True,
    }
    return await _save(session, User(**{**defaults, **overrides}), commit)


async def grant_role(
    session: AsyncSession,
    user: User,
    role: AppRole = AppRole.admin,
    commit: bool = True,
) -> UserRole:
    """Give ``user`` a role without going through the admin-only policy."""
    return await _save(session, UserRole(user_id=user.id, role=role), commit)


async def create_admin(session: AsyncSession, commit: bool = True, **overrides: Any) -> User:
    user = await create_user(session, commit=commit, **overrides)
    await grant_role(session, user, AppRole.admin, commit=commit)
    return user


async def create_project(
    session: AsyncSession,
    owner: User | None = None,
    commit: bool = True,
    add_owner_as_member: bool = True,
    **overrides: Any,
) -> Project:
    """
    Create a test project.

    The owner is enrolled as ``primary`` member unless
    ``add_owner_as_member`` is False.
    """
    if owner is None:
        owner = await create_user(session, commit=commit)

    defaults = {
        "name": f"Test Project {uuid4().hex[:6]}",
        "project_number": "P-001",
        "client_name": "Test Client",
        "created_by": owner.id,
    }
    project = await _save(session, Project(**{**defaults, **overrides}), commit)
    if add_owner_as_member:
        await add_project_member(session, project, owner, MemberPosition.primary, commit=commit)
    return project


async def add_project_member(
    session: AsyncSession,
    project: Project,
    user: User,
    position: MemberPosition = MemberPosition.secondary,
    commit: bool = True,
) -> ProjectMember:
    membership = ProjectMember(project_id=project.id, user_id=user.id, position=position)
    return await _save(session, membership, commit)


async def create_access_token_row(
    session: AsyncSession,
    project: Project,
    kind: AccessTokenKind = AccessTokenKind.client_portal,
    expires_in: timedelta = timedelta(days=7),
    commit: bool = True,
    **overrides: Any,
) -> ClientPortalToken | ContractorPortalToken | RoadmapShareToken:
    """
    Create a portal or share token for ``project``.

    Pass a negative ``expires_in`` for an already-expired token.
    """
    defaults: dict[str, Any] = {
        "project_id": project.id,
        "token": generate_portal_token(),
        "expires_at": datetime.now(timezone.utc) + expires_in,
        "created_by": project.created_by,
    }
    if kind is AccessTokenKind.client_portal:
        model: type = ClientPortalToken
        defaults["email"] = "client@example.com"
    elif kind is AccessTokenKind.contractor_portal:
        model = ContractorPortalToken
        defaults.update(
            short_code=generate_short_code(),
            contractor_name="Test Contractor",
            contractor_email="contractor@example.com",
        )
    else:
        model = RoadmapShareToken
        defaults["reviewer_email"] = "reviewer@example.com"
    return await _save(session, model(**{**defaults, **overrides}), commit)


async def create_task(
    session: AsyncSession,
    project: Project,
    commit: bool = True,
    **overrides: Any,
) -> Task:
    defaults = {
        "project_id": project.id,
        "title": "Test Task",
        "created_by": project.created_by,
    }
    return await _save(session, Task(**{**defaults, **overrides}), commit)


async def create_template(
    session: AsyncSession,
    owner: User | None = None,
    commit: bool = True,
    **overrides: Any,
) -> CoverPageTemplate:
    defaults = {
        "name": f"Cover {uuid4().hex[:6]}",
        "template_type": "general",
        "created_by": owner.id if owner else None,
    }
    return await _save(session, CoverPageTemplate(**{**defaults, **overrides}), commit)


def get_auth_token(user: User) -> str:
    """
    Generate a valid JWT access token for a user.

    Example:
        token = get_auth_token(test_user)
        headers = {"Authorization": f"Bearer {token}"}
    """
    return create_access_token(subject=str(user.id))


def get_auth_headers(user: User) -> dict[str, str]:
    """Get authorization headers for API requests."""
    return {"Authorization": f"Bearer {get_auth_token(user)}"}


def get_portal_headers(
    token: ClientPortalToken | ContractorPortalToken | RoadmapShareToken,
    contributor_email: str | None = None,
) -> dict[str, str]:
    """Headers an anonymous portal visitor sends for ``token``."""
    if isinstance(token, ContractorPortalToken):
        headers = {"X-Contractor-Token": token.token}
    elif isinstance(token, RoadmapShareToken):
        headers = {"X-Roadmap-Token": token.token}
    else:
        headers = {"X-Portal-Token": token.token}
    if contributor_email:
        headers["X-Contributor-Email"] = contributor_email
    return headers
