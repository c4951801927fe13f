from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from siteaccess.api.deps import AuthenticatedEvaluatorDep, SessionDep
from siteaccess.core.messages import TemplateMessages
from siteaccess.schemas.template import TemplateCreate, TemplateRead
from siteaccess.services import templates as templates_service

router = APIRouter()


@router.get("/", response_model=List[TemplateRead])
async def list_templates(
    evaluator: AuthenticatedEvaluatorDep,
    template_type: Optional[str] = Query(default=None),
):
    return await templates_service.list_templates(evaluator, template_type=template_type)


@router.post("/", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_in: TemplateCreate,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    template = await templates_service.create_template(evaluator, **template_in.model_dump())
    await session.commit()
    return template


@router.post("/{template_id}/default", response_model=TemplateRead)
async def set_default_template(
    template_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
):
    template = await templates_service.get_template(evaluator, template_id)
    if template is None or not await templates_service.set_default(evaluator, template):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TemplateMessages.NOT_FOUND)
    await session.commit()
    return template
