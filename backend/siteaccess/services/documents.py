from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from siteaccess.models.document import ProjectDocument
from siteaccess.services.guarded import delete_row, get_visible, insert_row, select_visible

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


async def list_documents(
    evaluator: PolicyEvaluator,
    project_id: int,
    *,
    category: str | None = None,
) -> list[ProjectDocument]:
    conditions = [ProjectDocument.project_id == project_id]
    if category is not None:
        conditions.append(ProjectDocument.category == category)
    return await select_visible(evaluator, ProjectDocument, *conditions, order_by=ProjectDocument.id)


async def get_document(
    evaluator: PolicyEvaluator, project_id: int, document_id: int
) -> ProjectDocument | None:
    document = await get_visible(evaluator, ProjectDocument, document_id)
    if document is None or document.project_id != project_id:
        return None
    return document


async def create_document(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    name: str,
    file_path: str,
    category: str = "general",
    bucket: str = "tenant-documents",
) -> ProjectDocument:
    document = ProjectDocument(
        project_id=project_id,
        name=name,
        category=category,
        bucket=bucket,
        file_path=file_path,
        created_by=evaluator.user_id,
    )
    return await insert_row(evaluator, document)


async def delete_document(evaluator: PolicyEvaluator, document: ProjectDocument) -> bool:
    removed = await delete_row(evaluator, document)
    if removed:
        logger.info("Deleted document %s from project %s", document.id, document.project_id)
    return bool(removed)
