from fastapi import APIRouter, HTTPException, status

from siteaccess.api.deps import AuthenticatedEvaluatorDep, SessionDep
from siteaccess.core.messages import TaskMessages
from siteaccess.schemas.task import TaskRead, TaskUpdate
from siteaccess.services import tasks as tasks_service

router = APIRouter()


@router.get("/{task_id}", response_model=TaskRead)
async def read_task(task_id: int, evaluator: AuthenticatedEvaluatorDep):
    task = await tasks_service.get_task(evaluator, task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    return task


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    task = await tasks_service.get_task(evaluator, task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    updated = await tasks_service.update_task(evaluator, task, task_in.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    await session.commit()
    return task
