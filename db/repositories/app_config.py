"""App config repository: bilingual dropdown options."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import AppConfig

logger = logging.getLogger(__name__)


async def list_options(
    session: AsyncSession, type_: Optional[str] = None, include_inactive: bool = False
) -> list[AppConfig]:
    """Return options ordered by type then sort_order."""
    stmt = select(AppConfig)
    if type_:
        stmt = stmt.where(AppConfig.type == type_)
    if not include_inactive:
        stmt = stmt.where(AppConfig.active == True)
    result = await session.execute(
        stmt.order_by(AppConfig.type, AppConfig.sort_order, AppConfig.value)
    )
    return list(result.scalars().all())


async def create_option(session: AsyncSession, data: dict) -> AppConfig:
    """Insert an option. data dict keys: type, value, label_vi, sort_order, active"""
    option = AppConfig(**data)
    session.add(option)
    await session.flush()
    return option


async def update_option(
    session: AsyncSession, option_id: UUID, values: dict
) -> Optional[AppConfig]:
    result = await session.execute(
        update(AppConfig).where(AppConfig.id == option_id).values(**values).returning(AppConfig)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def delete_option(session: AsyncSession, option_id: UUID) -> bool:
    result = await session.execute(delete(AppConfig).where(AppConfig.id == option_id))
    await session.flush()
    return result.rowcount > 0
