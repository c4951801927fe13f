"""Let portal visitors read and count the token they present

Revision ID: 20261018_0006
Revises: 20261018_0005
Create Date: 2026-10-18

Token tables are member-gated, so an anonymous visitor could not see the
row behind its own header once requests run as the restricted role. Adds a
second SELECT policy matching the presented token, and a SECURITY DEFINER
function that bumps the access counter of that row only.
"""

from alembic import op

from siteaccess.core.config import settings


revision = "20261018_0006"
down_revision = "20261018_0005"
branch_labels = None
depends_on = None

APP_ROLE = settings.DATABASE_APP_ROLE

# token kind -> columns a visitor may present
TOKEN_COLUMNS = {
    "client_portal": ("token",),
    "contractor_portal": ("token", "short_code"),
    "roadmap_share": ("token",),
}


def _matches_presented(kind: str) -> str:
    presented = f"app_request_token('{kind}')"
    return " OR ".join(f"{column} = {presented}" for column in TOKEN_COLUMNS[kind])


def upgrade() -> None:
    for kind in TOKEN_COLUMNS:
        op.execute(f"""
            CREATE POLICY {kind}_tokens_holder_select ON {kind}_tokens
            FOR SELECT
            USING ({_matches_presented(kind)})
        """)

    op.execute("""
        CREATE OR REPLACE FUNCTION record_access_token_use(kind text, token_id int)
        RETURNS void
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        DECLARE
            presented text := app_request_token(kind);
            short_code_match text := '';
        BEGIN
            IF kind NOT IN ('client_portal', 'contractor_portal', 'roadmap_share') THEN
                RAISE EXCEPTION 'unknown token kind %', kind;
            END IF;
            IF kind = 'contractor_portal' THEN
                short_code_match := ' OR short_code = $2';
            END IF;
            EXECUTE format(
                'UPDATE %I SET access_count = access_count + 1, last_accessed_at = now() '
                'WHERE id = $1 AND (app_is_service_role() OR token = $2%s)',
                kind || '_tokens',
                short_code_match
            ) USING token_id, presented;
        END;
        $$
    """)
    op.execute("REVOKE EXECUTE ON FUNCTION record_access_token_use(text, int) FROM PUBLIC")
    op.execute(f"GRANT EXECUTE ON FUNCTION record_access_token_use(text, int) TO {APP_ROLE}")


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS record_access_token_use(text, int)")
    for kind in reversed(list(TOKEN_COLUMNS)):
        op.execute(f"DROP POLICY IF EXISTS {kind}_tokens_holder_select ON {kind}_tokens")
