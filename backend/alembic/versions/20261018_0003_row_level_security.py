"""Enable row-level security on every protected table

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18

One PERMISSIVE policy per table and command, mirroring
``siteaccess.services.policies.POLICIES``. Admins (has_role) and the service
role are ORed into every policy. A command with no rule below is open to
them only.
"""

from alembic import op

from siteaccess.core.config import settings


revision = "20261018_0003"
down_revision = "20261018_0002"
branch_labels = None
depends_on = None

APP_ROLE = settings.DATABASE_APP_ROLE

UID = "app_current_user_id()"
BYPASS = f"has_role({UID}, 'admin') OR app_is_service_role()"
SIGNED_IN = f"{UID} IS NOT NULL"
CONTRIBUTOR_EMAIL = "NULLIF(current_setting('app.contributor_email', true), '')"


def _token(kind: str) -> str:
    return f"app_request_token('{kind}')"


def _member(project_col: str = "project_id") -> str:
    return f"is_project_member({project_col}, {UID})"


def _owner(column: str = "created_by") -> str:
    return f"{column} = {UID}"


def _member_gated() -> dict[str, str | None]:
    return {
        "select": _member(),
        "insert": f"{_owner()} AND {_member()}",
        "update": _member(),
        "delete": _member(),
    }


CLIENT_TOKEN_ORIGIN = (
    f"access_token_id = client_portal_token_id({_token('client_portal')}) "
    f"AND has_valid_client_portal_token(project_id, {_token('client_portal')})"
)

POLICIES: dict[str, dict[str, str | None]] = {
    "users": {
        "select": SIGNED_IN,
        "update": _owner("id"),
    },
    "user_roles": {
        "select": _owner("user_id"),
    },
    "projects": {
        "select": (
            f"{_owner()}"
            f" OR {_member('id')}"
            f" OR has_valid_client_portal_token(id, {_token('client_portal')})"
            f" OR has_valid_contractor_portal_token(id, {_token('contractor_portal')})"
            f" OR has_valid_roadmap_token(id, {_token('roadmap_share')})"
        ),
        "insert": _owner(),
        "update": _owner(),
        "delete": _owner(),
    },
    # is_project_member() is SECURITY DEFINER, so this does not recurse.
    "project_members": {
        "select": f"{_owner('user_id')} OR {_member()}",
        "insert": f"is_project_owner(project_id, {UID})",
        "update": f"is_project_owner(project_id, {UID})",
        "delete": f"is_project_owner(project_id, {UID}) OR {_owner('user_id')}",
    },
    "client_portal_tokens": _member_gated(),
    "contractor_portal_tokens": _member_gated(),
    "roadmap_share_tokens": _member_gated(),
    "tasks": _member_gated(),
    "project_documents": {
        **_member_gated(),
        "select": (
            f"{_member()} OR contractor_token_allows_document("
            f"project_id, category, {_token('contractor_portal')})"
        ),
    },
    "client_comments": {
        "select": f"{_member()} OR has_valid_client_portal_token(project_id, {_token('client_portal')})",
        "insert": f"({_owner('user_id')} AND {_member()}) OR ({CLIENT_TOKEN_ORIGIN})",
        "update": f"{_owner('user_id')} OR ({CLIENT_TOKEN_ORIGIN})",
        "delete": (
            f"{_owner('user_id')} OR ({CLIENT_TOKEN_ORIGIN} "
            f"AND lower(author_email) = {CONTRIBUTOR_EMAIL})"
        ),
    },
    "notifications": {
        "select": _owner("user_id"),
        "update": _owner("user_id"),
        "delete": _owner("user_id"),
    },
    # Permissive read kept on purpose: templates are shared across tenants.
    "cover_page_templates": {
        "select": SIGNED_IN,
        "insert": _owner(),
        "update": _owner(),
        "delete": _owner(),
    },
    "material_categories": {
        "select": SIGNED_IN,
        "insert": SIGNED_IN,
        "update": SIGNED_IN,
        "delete": SIGNED_IN,
    },
}

COMMANDS = ("select", "insert", "update", "delete")


def _predicate(rules: dict[str, str | None], command: str) -> str:
    rule = rules.get(command)
    if not rule:
        return f"({BYPASS})"
    return f"(({rule}) OR {BYPASS})"


def _create_policies(table: str, rules: dict[str, str | None]) -> None:
    for command in COMMANDS:
        predicate = _predicate(rules, command)
        name = f"{table}_{command}"
        if command == "insert":
            clause = f"WITH CHECK {predicate}"
        elif command == "update":
            clause = f"USING {predicate} WITH CHECK {predicate}"
        else:
            clause = f"USING {predicate}"
        op.execute(f"""
            CREATE POLICY {name} ON {table}
            FOR {command.upper()}
            {clause}
        """)


def upgrade() -> None:
    for table, rules in POLICIES.items():
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        _create_policies(table, rules)
        op.execute(f"GRANT SELECT, INSERT, UPDATE, DELETE ON {table} TO {APP_ROLE}")
    op.execute(f"GRANT USAGE ON ALL SEQUENCES IN SCHEMA public TO {APP_ROLE}")


def downgrade() -> None:
    for table in reversed(list(POLICIES)):
        for command in COMMANDS:
            op.execute(f"DROP POLICY IF EXISTS {table}_{command} ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
