import asyncio
import logging

from sqlmodel import select

from siteaccess.core.config import settings
from siteaccess.db.session import AdminSessionLocal, run_migrations
from siteaccess.models.user import AppRole, User, UserRole

logger = logging.getLogger(__name__)


async def init_first_admin() -> None:
    """Create the bootstrap admin.

    The ``user_roles`` policy only lets admins grant roles, so the first one
    has to be written outside the policy layer, over the owner connection.
    """
    if not settings.FIRST_ADMIN_EMAIL:
        return

    async with AdminSessionLocal() as session:
        result = await session.exec(select(User).where(User.email == settings.FIRST_ADMIN_EMAIL))
        user = result.one_or_none()
        if user is None:
            user = User(
                email=settings.FIRST_ADMIN_EMAIL,
                full_name=settings.FIRST_ADMIN_FULL_NAME,
            )
            session.add(user)
            await session.flush()
        existing = await session.exec(
            select(UserRole).where(UserRole.user_id == user.id, UserRole.role == AppRole.admin)
        )
        if existing.one_or_none() is None:
            session.add(UserRole(user_id=user.id, role=AppRole.admin))
            logger.info("Bootstrapped admin role for %s", user.email)
        await session.commit()


async def init() -> None:
    await run_migrations()
    await init_first_admin()


if __name__ == "__main__":  # pragma: no cover
    asyncio.run(init())
