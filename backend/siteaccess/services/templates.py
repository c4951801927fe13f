"""Cover page templates and the one-default-per-type invariant.

``enforce_single_default`` plays the part of the database trigger: whenever
a template becomes the default, every other template of the same
``template_type`` loses the flag in the same transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import select

from siteaccess.db.session import is_postgres
from siteaccess.models.template import CoverPageTemplate
from siteaccess.services.guarded import get_visible, insert_row, select_visible, update_row

if TYPE_CHECKING:  # pragma: no cover
    from sqlmodel.ext.asyncio.session import AsyncSession

    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


async def enforce_single_default(session: AsyncSession, template: CoverPageTemplate) -> int:
    """Clear ``is_default`` on the other templates of ``template``'s type."""
    if not template.is_default:
        return 0
    others = (
        CoverPageTemplate.template_type == template.template_type,
        CoverPageTemplate.id != template.id,
        CoverPageTemplate.is_default.is_(True),
    )
    if is_postgres(session):
        await session.exec(select(CoverPageTemplate.id).where(*others).with_for_update())
    result = await session.exec(
        update(CoverPageTemplate)
        .where(*others)
        .values(is_default=False, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    cleared = result.rowcount or 0
    if cleared:
        logger.debug("Cleared %s default %s template(s)", cleared, template.template_type)
    return cleared


async def list_templates(
    evaluator: PolicyEvaluator,
    *,
    template_type: str | None = None,
) -> list[CoverPageTemplate]:
    conditions = []
    if template_type is not None:
        conditions.append(CoverPageTemplate.template_type == template_type)
    return await select_visible(evaluator, CoverPageTemplate, *conditions, order_by=CoverPageTemplate.id)


async def get_template(evaluator: PolicyEvaluator, template_id: int) -> CoverPageTemplate | None:
    return await get_visible(evaluator, CoverPageTemplate, template_id)


async def create_template(
    evaluator: PolicyEvaluator,
    *,
    name: str,
    template_type: str = "general",
    file_path: str | None = None,
    is_default: bool = False,
) -> CoverPageTemplate:
    template = CoverPageTemplate(
        name=name,
        template_type=template_type,
        file_path=file_path,
        is_default=is_default,
        created_by=evaluator.user_id,
    )
    await insert_row(evaluator, template)
    await enforce_single_default(evaluator.session, template)
    return template


async def set_default(evaluator: PolicyEvaluator, template: CoverPageTemplate) -> bool:
    """Make ``template`` the default of its type. Repeating the call is a no-op."""
    if template.is_default:
        if not await evaluator.allows(CoverPageTemplate.__tablename__, "update", template):
            return False
    else:
        values = {"is_default": True, "updated_at": datetime.now(timezone.utc)}
        if not await update_row(evaluator, template, values):
            return False
    await enforce_single_default(evaluator.session, template)
    return True
