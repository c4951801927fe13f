from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.messages import AccessMessages
from siteaccess.db.session import get_session, set_rls_context
from siteaccess.services.policies import PolicyEvaluator
from siteaccess.services.principals import Anonymous, Principal, principal_user_id, resolve_principal

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_principal(request: Request) -> Principal:
    return resolve_principal(request.headers)


PrincipalDep = Annotated[Principal, Depends(get_principal)]


async def get_evaluator(session: SessionDep, principal: PrincipalDep) -> PolicyEvaluator:
    evaluator = PolicyEvaluator(session, principal)
    tokens: dict[str, str] = {}
    contributor_email = None
    if isinstance(principal, Anonymous):
        tokens = {kind.value: token for kind, token in principal.tokens.items()}
        contributor_email = principal.contributor_email
    await set_rls_context(
        session,
        user_id=principal_user_id(principal),
        is_service_role=evaluator.is_service_role,
        tokens=tokens,
        contributor_email=contributor_email,
    )
    return evaluator


EvaluatorDep = Annotated[PolicyEvaluator, Depends(get_evaluator)]


async def require_authenticated(evaluator: EvaluatorDep) -> PolicyEvaluator:
    if not evaluator.principal.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AccessMessages.NOT_AUTHENTICATED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return evaluator


AuthenticatedEvaluatorDep = Annotated[PolicyEvaluator, Depends(require_authenticated)]
