"""Add SECURITY DEFINER policy helper functions

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18

Policies on user_roles and project_members need to ask questions about
those same tables. Reading them from inside their own policy would recurse,
so every such lookup goes through a SECURITY DEFINER function that reads
the table with the owner's privileges.

The request identity is published per transaction by
``siteaccess.db.session.set_rls_context``.
"""

import os
from urllib.parse import urlparse

from alembic import op
from sqlalchemy import text

from siteaccess.core.config import settings


revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None

APP_ROLE = settings.DATABASE_APP_ROLE

# name(signature) -> body
FUNCTIONS: dict[str, str] = {
    "app_current_user_id()": """
        RETURNS int
        LANGUAGE sql
        STABLE
        AS $$
            SELECT NULLIF(current_setting('app.current_user_id', true), '')::int
        $$
    """,
    "app_is_service_role()": """
        RETURNS boolean
        LANGUAGE sql
        STABLE
        AS $$
            SELECT coalesce(current_setting('app.is_service_role', true), '') = 'true'
        $$
    """,
    "app_request_token(text)": """
        RETURNS text
        LANGUAGE sql
        STABLE
        AS $$
            SELECT NULLIF(current_setting('app.' || $1 || '_token', true), '')
        $$
    """,
    "has_role(int, app_role)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM user_roles
                WHERE user_id = $1
                AND role = $2
            )
        $$
    """,
    "is_project_member(int, int)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM project_members
                WHERE project_id = $1
                AND user_id = $2
            )
        $$
    """,
    "is_project_owner(int, int)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM projects
                WHERE id = $1
                AND created_by = $2
            )
        $$
    """,
    "has_valid_client_portal_token(int, text)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM client_portal_tokens
                WHERE project_id = $1
                AND token = $2
                AND is_active
                AND expires_at IS NOT NULL
                AND expires_at > now()
            )
        $$
    """,
    "has_valid_contractor_portal_token(int, text)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM contractor_portal_tokens
                WHERE project_id = $1
                AND (token = $2 OR short_code = $2)
                AND is_active
                AND expires_at IS NOT NULL
                AND expires_at > now()
            )
        $$
    """,
    "has_valid_roadmap_token(int, text)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM roadmap_share_tokens
                WHERE project_id = $1
                AND token = $2
                AND status = 'active'
                AND expires_at IS NOT NULL
                AND expires_at > now()
            )
        $$
    """,
    "client_portal_token_id(text)": """
        RETURNS int
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT id FROM client_portal_tokens
            WHERE token = $1
            AND is_active
            AND expires_at IS NOT NULL
            AND expires_at > now()
            LIMIT 1
        $$
    """,
    "contractor_token_allows_document(int, text, text)": """
        RETURNS boolean
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM contractor_portal_tokens
                WHERE project_id = $1
                AND (token = $3 OR short_code = $3)
                AND is_active
                AND expires_at IS NOT NULL
                AND expires_at > now()
                AND (
                    json_array_length(document_categories) = 0
                    OR document_categories::jsonb ? $2
                )
            )
        $$
    """,
}


def _role_exists(connection, name: str) -> bool:
    row = connection.execute(
        text("SELECT 1 FROM pg_roles WHERE rolname = :name"), {"name": name}
    ).fetchone()
    return row is not None


def _app_password() -> str | None:
    """Password of the restricted login, taken from DATABASE_URL_APP if set."""
    url = os.environ.get("DATABASE_URL_APP") or settings.DATABASE_URL_APP
    if not url:
        return None
    return urlparse(url).password


def _role_ddl(connection, statement: str, password: str | None) -> None:
    # Role DDL takes no bind parameters; route the password through a
    # transaction-local setting and quote it with format('%L').
    if password is None:
        connection.execute(text(statement))
        return
    connection.execute(
        text("SELECT set_config('app.migration_password', :pw, true)"), {"pw": password}
    )
    connection.execute(text(
        "DO $$ BEGIN "
        f"EXECUTE format('{statement} PASSWORD %L', current_setting('app.migration_password')); "
        "END $$"
    ))
    connection.execute(text("SELECT set_config('app.migration_password', '', true)"))


def _ensure_app_role(connection) -> None:
    password = _app_password()
    if _role_exists(connection, APP_ROLE):
        _role_ddl(connection, f"ALTER ROLE {APP_ROLE} WITH LOGIN NOINHERIT", password)
    else:
        _role_ddl(connection, f"CREATE ROLE {APP_ROLE} WITH LOGIN NOINHERIT", password)
    # The owner switches to the role with SET LOCAL ROLE when DATABASE_URL_APP is unset.
    connection.execute(text(f"GRANT {APP_ROLE} TO CURRENT_USER"))


def upgrade() -> None:
    _ensure_app_role(op.get_bind())

    for signature, body in FUNCTIONS.items():
        op.execute(f"CREATE OR REPLACE FUNCTION {signature} {body}")
        # Harden: revoke default public execute, grant only to the app role
        op.execute(f"REVOKE EXECUTE ON FUNCTION {signature} FROM PUBLIC")
        op.execute(f"GRANT EXECUTE ON FUNCTION {signature} TO {APP_ROLE}")


def downgrade() -> None:
    for signature in reversed(list(FUNCTIONS)):
        op.execute(f"DROP FUNCTION IF EXISTS {signature}")
