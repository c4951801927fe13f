"""
Shared test utilities and factories.

Re-exports all factory functions for convenient imports:
    from siteaccess.testing import create_user, create_project, get_auth_headers
"""

from siteaccess.testing.factories import (
    add_project_member,
    create_access_token_row,
    create_admin,
    create_project,
    create_task,
    create_template,
    create_user,
    get_auth_headers,
    get_auth_token,
    get_portal_headers,
    grant_role,
)

__all__ = [
    "add_project_member",
    "create_access_token_row",
    "create_admin",
    "create_project",
    "create_task",
    "create_template",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
    "get_portal_headers",
    "grant_role",
]
