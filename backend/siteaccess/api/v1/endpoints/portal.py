"""Endpoints for anonymous portal visitors.

Callers identify with ``X-Portal-Token`` (client), ``X-Contractor-Token``
or ``X-Roadmap-Token`` headers instead of a bearer JWT. Every lookup below
goes through the same policies as signed-in traffic.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query, Response, status

from siteaccess.api.deps import EvaluatorDep, SessionDep
from siteaccess.core.messages import CommentMessages, ProjectMessages
from siteaccess.models.access_token import AccessTokenKind
from siteaccess.models.project import Project
from siteaccess.schemas.comment import ClientCommentCreate, ClientCommentRead, ClientCommentUpdate
from siteaccess.schemas.document import ProjectDocumentRead
from siteaccess.schemas.project import PortalProjectRead
from siteaccess.services import comments as comments_service
from siteaccess.services import documents as documents_service
from siteaccess.services import relationships
from siteaccess.services.guarded import get_visible
from siteaccess.services.policies import PolicyEvaluator
from siteaccess.services.principals import Anonymous

router = APIRouter()


async def _portal_token(evaluator: PolicyEvaluator, *kinds: AccessTokenKind):
    principal = evaluator.principal
    if not isinstance(principal, Anonymous):
        return None
    for kind in kinds:
        token_row = await relationships.resolve_access_token(
            evaluator.session, principal.token_for(kind), kind
        )
        if token_row is not None:
            return token_row
    return None


@router.get("/project", response_model=PortalProjectRead)
async def read_portal_project(session: SessionDep, evaluator: EvaluatorDep) -> Project:
    token_row = await _portal_token(
        evaluator,
        AccessTokenKind.client_portal,
        AccessTokenKind.contractor_portal,
        AccessTokenKind.roadmap_share,
    )
    project = None
    if token_row is not None:
        project = await get_visible(evaluator, Project, token_row.project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.NOT_FOUND)
    await relationships.record_token_use(session, token_row)
    await session.commit()
    return project


@router.get("/documents", response_model=List[ProjectDocumentRead])
async def list_portal_documents(session: SessionDep, evaluator: EvaluatorDep):
    token_row = await _portal_token(evaluator, AccessTokenKind.contractor_portal)
    if token_row is None:
        return []
    documents = await documents_service.list_documents(evaluator, token_row.project_id)
    await relationships.record_token_use(session, token_row)
    await session.commit()
    return documents


@router.get("/comments", response_model=List[ClientCommentRead])
async def list_portal_comments(session: SessionDep, evaluator: EvaluatorDep):
    token_row = await _portal_token(evaluator, AccessTokenKind.client_portal)
    if token_row is None:
        return []
    comments = await comments_service.list_comments(evaluator, token_row.project_id)
    await relationships.record_token_use(session, token_row)
    await session.commit()
    return comments


@router.post("/comments", response_model=ClientCommentRead, status_code=status.HTTP_201_CREATED)
async def create_portal_comment(
    comment_in: ClientCommentCreate,
    session: SessionDep,
    evaluator: EvaluatorDep,
    project_id: int | None = Query(default=None),
):
    target_project = project_id or await comments_service.portal_project_id(evaluator)
    if target_project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.NOT_FOUND)
    comment = await comments_service.create_comment(
        evaluator,
        project_id=target_project,
        **comment_in.model_dump(),
    )
    await session.commit()
    return comment


@router.patch("/comments/{comment_id}", response_model=ClientCommentRead)
async def update_portal_comment(
    comment_id: int,
    comment_in: ClientCommentUpdate,
    session: SessionDep,
    evaluator: EvaluatorDep,
):
    comment = await comments_service.get_comment(evaluator, comment_id)
    if comment is None or not await comments_service.update_comment(evaluator, comment, comment_in.body):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CommentMessages.NOT_FOUND)
    await session.commit()
    return comment


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portal_comment(
    comment_id: int,
    session: SessionDep,
    evaluator: EvaluatorDep,
) -> Response:
    comment = await comments_service.get_comment(evaluator, comment_id)
    if comment is None or not await comments_service.delete_comment(evaluator, comment):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CommentMessages.NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
