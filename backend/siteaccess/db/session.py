import asyncio
from pathlib import Path
from typing import Mapping

from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.config import settings
from siteaccess.db import base  # noqa: F401  # ensure models are imported for metadata

BACKEND_DIR = Path(__file__).resolve().parents[2]

# Portal token kinds published as app.<kind>_token.
TOKEN_SETTINGS = ("client_portal", "contractor_portal", "roadmap_share")


def app_database_url() -> str:
    """URL for request-time connections; the RLS-restricted login when configured."""
    return settings.DATABASE_URL_APP or settings.DATABASE_URL


engine = create_async_engine(app_database_url(), echo=False, future=True)
# Table owner connection for migrations and bootstrap writes the policies reject.
admin_engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)

AdminSessionLocal = sessionmaker(
    bind=admin_engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def _get_alembic_config() -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    return config


async def run_migrations() -> None:
    await asyncio.to_thread(command.upgrade, _get_alembic_config(), "head")


def is_postgres(session: AsyncSession) -> bool:
    bind = session.get_bind()
    return bind.dialect.name == "postgresql"


async def set_rls_context(
    session: AsyncSession,
    *,
    user_id: int | None,
    is_service_role: bool = False,
    tokens: Mapping[str, str] | None = None,
    contributor_email: str | None = None,
) -> None:
    """Publish the caller identity to the database-side policies.

    The values are read back by ``app_current_user_id()``,
    ``app_is_service_role()`` and ``app_request_token()`` in the RLS
    migrations. Settings are transaction-local, so they must be re-applied
    after every commit (see ``reapply_rls_context``). The transaction also
    switches to ``DATABASE_APP_ROLE`` so the policies apply even when the
    connection logged in as the table owner.
    """
    session.info["rls_user_id"] = user_id
    session.info["rls_service_role"] = is_service_role
    session.info["rls_tokens"] = dict(tokens or {})
    session.info["rls_contributor_email"] = contributor_email
    if not is_postgres(session):
        return

    # Owner connections bypass RLS; drop to the policy-bound role for this transaction.
    role = session.get_bind().dialect.identifier_preparer.quote(settings.DATABASE_APP_ROLE)
    await session.exec(text(f"SET LOCAL ROLE {role}"))

    values = {
        "app.current_user_id": "" if user_id is None else str(user_id),
        "app.is_service_role": "true" if is_service_role else "false",
        "app.contributor_email": contributor_email or "",
    }
    for kind in TOKEN_SETTINGS:
        values[f"app.{kind}_token"] = (tokens or {}).get(kind, "")
    for name, value in values.items():
        await session.exec(
            text("SELECT set_config(:name, :value, true)"),
            params={"name": name, "value": value},
        )


async def reapply_rls_context(session: AsyncSession) -> None:
    if "rls_user_id" not in session.info:
        return
    await set_rls_context(
        session,
        user_id=session.info["rls_user_id"],
        is_service_role=session.info.get("rls_service_role", False),
        tokens=session.info.get("rls_tokens"),
        contributor_email=session.info.get("rls_contributor_email"),
    )
