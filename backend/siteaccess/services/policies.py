"""Row-level access policies, evaluated in the application.

This module is the single source of truth for who may read or write which
rows. Every table is registered once in ``POLICIES`` with one predicate per
operation, mirroring the PostgreSQL policies installed by the migrations.

Policy tiers, strongest to weakest:
  1. Admin-or-owner:     admins, or the row's creator.
  2. Member-gated:       members of the row's project. Inserts also
                       require ``created_by`` to be the caller.
  3. Token-gated:        anonymous callers holding a valid client-portal,
                       contractor-portal or roadmap-share token for the
                       row's project (any one suffices).
  4. Token contributor:  anonymous callers may write only rows tagged
                       with their own token, and delete only rows they
                       authored under it.
  5. Open/internal:      any authenticated caller. Never used for data
                       scoped to a user or project.

Rules that hold for every table:
  * The service role bypasses policies.
  * Admin override is ORed into every predicate. A narrower rule never
    locks an admin out.
  * A table or operation without a predicate denies.
  * Denial is silent for reads, updates and deletes (fewer rows). Inserts
    and failed update WITH CHECKs raise a generic ``AccessDenied``.
  * Predicates never evaluate another policy. Cross-table questions go
    through ``relationships`` / ``roles`` lookups, which read tables
    directly. Re-entering the policy of a table that is already being
    evaluated raises ``RecursiveEvaluationError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Sequence

from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.errors import AccessDenied, RecursiveEvaluationError
from siteaccess.models.access_token import AccessTokenKind, ContractorPortalToken
from siteaccess.models.user import AppRole
from siteaccess.services import relationships, roles
from siteaccess.services.principals import (
    Anonymous,
    AuthenticatedUser,
    Principal,
    ServiceRole,
    principal_user_id,
)

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    select = "select"
    insert = "insert"
    update = "update"
    delete = "delete"


Predicate = Callable[["PolicyEvaluator", Any], Awaitable[bool]]
ProjectIdOf = Callable[[Any], "int | None"]


def _attr(name: str) -> ProjectIdOf:
    return lambda row: getattr(row, name, None)


# ---------------------------------------------------------------------------
# Predicate building blocks
# ---------------------------------------------------------------------------

def authenticated() -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        return evaluator.principal.is_authenticated

    return predicate


def owner(field: str = "created_by") -> Predicate:
    """Row column ``field`` equals the calling user."""

    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        user_id = evaluator.user_id
        return user_id is not None and getattr(row, field, None) == user_id

    return predicate


def is_admin() -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        return await evaluator.is_admin()

    return predicate


def project_member(project_id_of: ProjectIdOf = _attr("project_id")) -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        return await relationships.is_project_member(
            evaluator.session, evaluator.user_id, project_id_of(row)
        )

    return predicate


def project_owner(project_id_of: ProjectIdOf = _attr("project_id")) -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        return await relationships.is_project_owner(
            evaluator.session, evaluator.user_id, project_id_of(row)
        )

    return predicate


def portal_token(
    *kinds: AccessTokenKind,
    project_id_of: ProjectIdOf = _attr("project_id"),
) -> Predicate:
    """Anonymous caller presents a valid token of any of ``kinds`` for the row's project."""

    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        principal = evaluator.principal
        if not isinstance(principal, Anonymous):
            return False
        project_id = project_id_of(row)
        for kind in kinds:
            if await relationships.has_valid_access_token(
                evaluator.session, project_id, principal.token_for(kind), kind=kind
            ):
                return True
        return False

    return predicate


def contractor_document_token() -> Predicate:
    """Contractor token for the document's project, limited to its categories.

    An empty category list on the token grants every category.
    """

    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        principal = evaluator.principal
        if not isinstance(principal, Anonymous):
            return False
        token_row = await relationships.resolve_access_token(
            evaluator.session,
            principal.token_for(AccessTokenKind.contractor_portal),
            AccessTokenKind.contractor_portal,
        )
        if not isinstance(token_row, ContractorPortalToken):
            return False
        if token_row.project_id != getattr(row, "project_id", None):
            return False
        categories = token_row.document_categories or []
        return not categories or getattr(row, "category", None) in categories

    return predicate


def token_origin(kind: AccessTokenKind, field: str = "access_token_id") -> Predicate:
    """Row is tagged with the caller's (valid) token and belongs to its project."""

    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        principal = evaluator.principal
        if not isinstance(principal, Anonymous):
            return False
        token_row = await relationships.resolve_access_token(
            evaluator.session, principal.token_for(kind), kind
        )
        if token_row is None:
            return False
        return (
            getattr(row, field, None) == token_row.id
            and getattr(row, "project_id", None) == token_row.project_id
        )

    return predicate


def token_author(
    kind: AccessTokenKind,
    field: str = "access_token_id",
    email_field: str = "author_email",
) -> Predicate:
    """Like ``token_origin``, and the caller's contributor email wrote the row."""
    origin = token_origin(kind, field)

    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        principal = evaluator.principal
        if not isinstance(principal, Anonymous) or not principal.contributor_email:
            return False
        author = (getattr(row, email_field, None) or "").strip().lower()
        if author != principal.contributor_email:
            return False
        return await origin(evaluator, row)

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        for candidate in predicates:
            if await candidate(evaluator, row):
                return True
        return False

    return predicate


def all_of(*predicates: Predicate) -> Predicate:
    async def predicate(evaluator: PolicyEvaluator, row: Any) -> bool:
        for candidate in predicates:
            if not await candidate(evaluator, row):
                return False
        return True

    return predicate


# ---------------------------------------------------------------------------
# Table policies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TablePolicy:
    select: Predicate | None = None
    insert: Predicate | None = None
    update: Predicate | None = None
    # WITH CHECK for the new row of an update; defaults to ``update``.
    update_check: Predicate | None = None
    delete: Predicate | None = None

    def predicate_for(self, operation: Operation, *, check: bool = False) -> Predicate | None:
        if operation is Operation.update and check:
            return self.update_check or self.update
        return getattr(self, operation.value)


def admin_or_owner(field: str = "created_by", *, select: Predicate | None = None) -> TablePolicy:
    own = owner(field)
    return TablePolicy(select=select or own, insert=own, update=own, delete=own)


def member_gated(
    project_id_of: ProjectIdOf = _attr("project_id"),
    *,
    owner_field: str = "created_by",
    select: Predicate | None = None,
) -> TablePolicy:
    member = project_member(project_id_of)
    return TablePolicy(
        select=select or member,
        insert=all_of(owner(owner_field), member),
        update=member,
        delete=member,
    )


def open_internal() -> TablePolicy:
    """Any authenticated caller may do anything. Internal catalogs only."""
    signed_in = authenticated()
    return TablePolicy(select=signed_in, insert=signed_in, update=signed_in, delete=signed_in)


_PORTAL_KINDS = (
    AccessTokenKind.client_portal,
    AccessTokenKind.contractor_portal,
    AccessTokenKind.roadmap_share,
)

POLICIES: dict[str, TablePolicy] = {
    "users": TablePolicy(
        select=authenticated(),
        update=owner("id"),
    ),
    # Only the admin override can write role assignments.
    "user_roles": TablePolicy(select=owner("user_id")),
    "projects": TablePolicy(
        select=any_of(
            owner("created_by"),
            project_member(_attr("id")),
            portal_token(*_PORTAL_KINDS, project_id_of=_attr("id")),
        ),
        insert=owner("created_by"),
        update=owner("created_by"),
        delete=owner("created_by"),
    ),
    # The select predicate reads project_members itself; it must stay an
    # elevated lookup.
    "project_members": TablePolicy(
        select=any_of(owner("user_id"), project_member()),
        insert=project_owner(),
        update=project_owner(),
        delete=any_of(project_owner(), owner("user_id")),
    ),
    "client_portal_tokens": member_gated(),
    "contractor_portal_tokens": member_gated(),
    "roadmap_share_tokens": member_gated(),
    "tasks": member_gated(),
    "project_documents": member_gated(
        select=any_of(project_member(), contractor_document_token()),
    ),
    "client_comments": TablePolicy(
        select=any_of(project_member(), portal_token(AccessTokenKind.client_portal)),
        insert=any_of(
            all_of(owner("user_id"), project_member()),
            token_origin(AccessTokenKind.client_portal),
        ),
        update=any_of(owner("user_id"), token_origin(AccessTokenKind.client_portal)),
        delete=any_of(owner("user_id"), token_author(AccessTokenKind.client_portal)),
    ),
    # Written by the assignment hook outside the policy layer.
    "notifications": TablePolicy(
        select=owner("user_id"),
        update=owner("user_id"),
        delete=owner("user_id"),
    ),
    "cover_page_templates": admin_or_owner(select=authenticated()),
    "material_categories": open_internal(),
}


def table_name(model_or_row: Any) -> str:
    return getattr(model_or_row, "__tablename__")


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class PolicyEvaluator:
    """Evaluates ``POLICIES`` for one principal over one session.

    Create one per request. It holds no cached decisions: role, membership
    and token checks are re-read on every evaluation.
    """

    def __init__(
        self,
        session: AsyncSession,
        principal: Principal,
        policies: dict[str, TablePolicy] | None = None,
    ) -> None:
        self.session = session
        self.principal = principal
        self.policies = POLICIES if policies is None else policies
        self._active: list[str] = []

    @property
    def user_id(self) -> int | None:
        return principal_user_id(self.principal)

    @property
    def is_service_role(self) -> bool:
        return isinstance(self.principal, ServiceRole)

    async def is_admin(self) -> bool:
        if not isinstance(self.principal, AuthenticatedUser):
            return False
        return await roles.has_role(self.session, self.principal.user_id, AppRole.admin)

    async def allows(
        self,
        table: str,
        operation: Operation | str,
        row: Any,
        *,
        check: bool = False,
    ) -> bool:
        """Decide one (table, operation, row). Never raises for a plain denial."""
        operation = Operation(operation)
        if self.is_service_role:
            return True

        if table in self._active:
            logger.error("Policy for %s re-entered while evaluating %s", table, self._active)
            raise RecursiveEvaluationError(table)

        policy = self.policies.get(table)
        predicate = policy.predicate_for(operation, check=check) if policy else None

        self._active.append(table)
        try:
            if await self.is_admin():
                return True
            if predicate is None:
                return False
            allowed = await predicate(self, row)
        finally:
            self._active.pop()

        if not allowed:
            logger.debug("Denied %s on %s for %r", operation.value, table, self.principal)
        return allowed

    async def visible(self, table: str, rows: Iterable[Any]) -> list[Any]:
        return [row for row in rows if await self.allows(table, Operation.select, row)]

    async def authorize_insert(self, table: str, row: Any) -> None:
        if not await self.allows(table, Operation.insert, row):
            raise AccessDenied()

    async def authorize_update_check(self, table: str, row: Any) -> None:
        if not await self.allows(table, Operation.update, row, check=True):
            raise AccessDenied()


def registered_tables() -> Sequence[str]:
    return sorted(POLICIES)
