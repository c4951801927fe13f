from fastapi import APIRouter

from siteaccess.api.v1.endpoints import notifications, portal, projects, roles, storage, tasks, templates

api_router = APIRouter()
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(portal.router, prefix="/portal", tags=["portal"])
api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
