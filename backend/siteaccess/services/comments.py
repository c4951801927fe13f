"""Client comments, written by project members or through a client portal token."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from siteaccess.models.access_token import AccessTokenKind
from siteaccess.models.comment import ClientComment
from siteaccess.models.user import User
from siteaccess.services import relationships
from siteaccess.services.guarded import delete_row, get_visible, insert_row, select_visible, update_row
from siteaccess.services.principals import Anonymous

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


async def portal_project_id(evaluator: PolicyEvaluator) -> int | None:
    """Project the caller's client portal token belongs to, if the token is valid."""
    principal = evaluator.principal
    if not isinstance(principal, Anonymous):
        return None
    token_row = await relationships.resolve_access_token(
        evaluator.session,
        principal.token_for(AccessTokenKind.client_portal),
        AccessTokenKind.client_portal,
    )
    return token_row.project_id if token_row else None


async def list_comments(evaluator: PolicyEvaluator, project_id: int) -> list[ClientComment]:
    return await select_visible(
        evaluator,
        ClientComment,
        ClientComment.project_id == project_id,
        order_by=ClientComment.id,
    )


async def get_comment(evaluator: PolicyEvaluator, comment_id: int) -> ClientComment | None:
    return await get_visible(evaluator, ClientComment, comment_id)


async def create_comment(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    body: str,
    author_name: str | None = None,
    author_email: str | None = None,
    report_type: str = "general",
) -> ClientComment:
    """Create a comment as the caller.

    Anonymous callers are tagged with their client portal token; the insert
    policy rejects the row if that token is missing, invalid or for another
    project.
    """
    comment = ClientComment(
        project_id=project_id,
        body=body,
        report_type=report_type,
        author_name=author_name or "",
        author_email=author_email,
    )
    principal = evaluator.principal
    token_row = None
    if isinstance(principal, Anonymous):
        token_row = await relationships.resolve_access_token(
            evaluator.session,
            principal.token_for(AccessTokenKind.client_portal),
            AccessTokenKind.client_portal,
        )
        comment.access_token_id = token_row.id if token_row else None
        comment.author_email = principal.contributor_email or author_email
        comment.author_name = author_name or comment.author_email or "Client"
    elif evaluator.user_id is not None:
        comment.user_id = evaluator.user_id
        user = await evaluator.session.get(User, evaluator.user_id)
        if user is not None:
            comment.author_name = author_name or user.full_name or user.email
            comment.author_email = author_email or user.email

    await insert_row(evaluator, comment)
    if token_row is not None:
        await relationships.record_token_use(evaluator.session, token_row)
    return comment


async def update_comment(evaluator: PolicyEvaluator, comment: ClientComment, body: str) -> bool:
    values = {"body": body, "updated_at": datetime.now(timezone.utc)}
    return bool(await update_row(evaluator, comment, values))


async def delete_comment(evaluator: PolicyEvaluator, comment: ClientComment) -> bool:
    removed = await delete_row(evaluator, comment)
    if removed:
        logger.info("Deleted client comment %s", comment.id)
    return bool(removed)
