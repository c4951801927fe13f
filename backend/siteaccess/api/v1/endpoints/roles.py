from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from siteaccess.api.deps import AuthenticatedEvaluatorDep, SessionDep
from siteaccess.core.messages import RoleMessages
from siteaccess.schemas.role import RoleAssignment, RoleAssignmentRead
from siteaccess.services import roles as roles_service

router = APIRouter()


@router.get("/", response_model=List[RoleAssignmentRead])
async def list_roles(
    evaluator: AuthenticatedEvaluatorDep,
    user_id: Optional[int] = Query(default=None),
):
    return await roles_service.list_roles(evaluator, user_id=user_id)


@router.post("/", response_model=RoleAssignmentRead, status_code=status.HTTP_201_CREATED)
async def grant_role(
    assignment_in: RoleAssignment,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    assignment = await roles_service.grant_role(
        evaluator, user_id=assignment_in.user_id, role=assignment_in.role
    )
    await session.commit()
    return assignment


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role(
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
    user_id: int = Query(...),
    role: str = Query(...),
) -> Response:
    if not await roles_service.revoke_role(evaluator, user_id=user_id, role=role):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=RoleMessages.NOT_FOUND)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
