"""Import all models for Alembic or metadata creation."""

from siteaccess.models.access_token import ClientPortalToken, ContractorPortalToken, RoadmapShareToken
from siteaccess.models.catalog import MaterialCategory
from siteaccess.models.comment import ClientComment
from siteaccess.models.document import ProjectDocument
from siteaccess.models.notification import Notification
from siteaccess.models.project import Project, ProjectMember
from siteaccess.models.task import Task
from siteaccess.models.template import CoverPageTemplate
from siteaccess.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Project",
    "ProjectMember",
    "ClientPortalToken",
    "ContractorPortalToken",
    "RoadmapShareToken",
    "Task",
    "Notification",
    "CoverPageTemplate",
    "ProjectDocument",
    "ClientComment",
    "MaterialCategory",
]
