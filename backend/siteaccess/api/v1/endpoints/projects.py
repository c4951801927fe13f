from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from siteaccess.api.deps import AuthenticatedEvaluatorDep, SessionDep
from siteaccess.core.messages import DocumentMessages, ProjectMessages, TokenMessages
from siteaccess.models.access_token import AccessTokenKind
from siteaccess.models.project import Project
from siteaccess.schemas.access_token import AccessTokenCreate, AccessTokenRead, serialize_token
from siteaccess.schemas.document import ProjectDocumentCreate, ProjectDocumentRead
from siteaccess.schemas.project import (
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberList,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)
from siteaccess.schemas.task import TaskCreate, TaskRead
from siteaccess.services import access_tokens as access_tokens_service
from siteaccess.services import documents as documents_service
from siteaccess.services import memberships as memberships_service
from siteaccess.services import projects as projects_service
from siteaccess.services import tasks as tasks_service
from siteaccess.services.policies import PolicyEvaluator

router = APIRouter()


async def _get_project_or_404(evaluator: PolicyEvaluator, project_id: int) -> Project:
    project = await projects_service.get_project(evaluator, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.NOT_FOUND)
    return project


@router.get("/", response_model=List[ProjectRead])
async def list_projects(evaluator: AuthenticatedEvaluatorDep) -> List[Project]:
    return await projects_service.list_projects(evaluator)


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Project:
    project = await projects_service.create_project(evaluator, **project_in.model_dump())
    await session.commit()
    return project


@router.get("/{project_id}", response_model=ProjectRead)
async def read_project(project_id: int, evaluator: AuthenticatedEvaluatorDep) -> Project:
    return await _get_project_or_404(evaluator, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Project:
    project = await _get_project_or_404(evaluator, project_id)
    updated = await projects_service.update_project(
        evaluator, project, project_in.model_dump(exclude_unset=True)
    )
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.NOT_FOUND)
    await session.commit()
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Response:
    project = await _get_project_or_404(evaluator, project_id)
    if not await projects_service.delete_project(evaluator, project):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/members", response_model=ProjectMemberList)
async def list_members(project_id: int, evaluator: AuthenticatedEvaluatorDep) -> ProjectMemberList:
    await _get_project_or_404(evaluator, project_id)
    members = await memberships_service.list_members(evaluator, project_id)
    return ProjectMemberList(members=members)


@router.post("/{project_id}/members", response_model=ProjectMemberRead, status_code=status.HTTP_201_CREATED)
async def add_member(
    project_id: int,
    member_in: ProjectMemberCreate,
    response: Response,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    await _get_project_or_404(evaluator, project_id)
    membership, created = await memberships_service.add_member(
        evaluator,
        project_id=project_id,
        user_id=member_in.user_id,
        position=member_in.position,
    )
    await session.commit()
    if not created:
        response.status_code = status.HTTP_200_OK
    return membership


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: int,
    user_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Response:
    removed = await memberships_service.remove_member(evaluator, project_id=project_id, user_id=user_id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ProjectMessages.MEMBER_NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/portal-tokens", response_model=List[AccessTokenRead])
async def list_portal_tokens(
    project_id: int,
    evaluator: AuthenticatedEvaluatorDep,
    kind: AccessTokenKind = Query(default=AccessTokenKind.client_portal),
) -> List[AccessTokenRead]:
    await _get_project_or_404(evaluator, project_id)
    rows = await access_tokens_service.list_tokens(evaluator, project_id=project_id, kind=kind)
    return [serialize_token(row, kind) for row in rows]


@router.post("/{project_id}/portal-tokens", response_model=AccessTokenRead, status_code=status.HTTP_201_CREATED)
async def issue_portal_token(
    project_id: int,
    token_in: AccessTokenCreate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> AccessTokenRead:
    await _get_project_or_404(evaluator, project_id)
    row = await access_tokens_service.issue_token(
        evaluator,
        project_id=project_id,
        **token_in.model_dump(),
    )
    await session.commit()
    return serialize_token(row, token_in.kind)


@router.delete("/{project_id}/portal-tokens/{kind}/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_portal_token(
    project_id: int,
    kind: str,
    token_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Response:
    revoked = await access_tokens_service.revoke_token(
        evaluator, project_id=project_id, kind=kind, token_id=token_id
    )
    if not revoked:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TokenMessages.NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/tasks", response_model=List[TaskRead])
async def list_tasks(project_id: int, evaluator: AuthenticatedEvaluatorDep):
    await _get_project_or_404(evaluator, project_id)
    return await tasks_service.list_tasks(evaluator, project_id)


@router.post("/{project_id}/tasks", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: int,
    task_in: TaskCreate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    await _get_project_or_404(evaluator, project_id)
    task = await tasks_service.create_task(evaluator, project_id=project_id, **task_in.model_dump())
    await session.commit()
    return task


@router.get("/{project_id}/documents", response_model=List[ProjectDocumentRead])
async def list_documents(
    project_id: int,
    evaluator: AuthenticatedEvaluatorDep,
    category: Optional[str] = Query(default=None),
):
    await _get_project_or_404(evaluator, project_id)
    return await documents_service.list_documents(evaluator, project_id, category=category)


@router.post("/{project_id}/documents", response_model=ProjectDocumentRead, status_code=status.HTTP_201_CREATED)
async def create_document(
    project_id: int,
    document_in: ProjectDocumentCreate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    await _get_project_or_404(evaluator, project_id)
    document = await documents_service.create_document(
        evaluator, project_id=project_id, **document_in.model_dump()
    )
    await session.commit()
    return document


@router.delete("/{project_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    project_id: int,
    document_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> Response:
    document = await documents_service.get_document(evaluator, project_id, document_id)
    if document is None or not await documents_service.delete_document(evaluator, document):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=DocumentMessages.NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
