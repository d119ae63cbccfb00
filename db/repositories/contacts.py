"""Contact repository: scoped listing, duplicate checks, and bulk import."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Contact, ContactHistory

logger = logging.getLogger(__name__)

PAGE_SIZE = 10


def _scoped(stmt, scope_ids: Optional[list[UUID]]):
    # None means unrestricted (admin)
    if scope_ids is None:
        return stmt
    return stmt.where(Contact.assigned_to.in_(scope_ids))


def _search(stmt, search: Optional[str]):
    if not search:
        return stmt
    pattern = f"%{search.strip()}%"
    return stmt.where(
        or_(
            Contact.name.ilike(pattern),
            Contact.email.ilike(pattern),
            Contact.phone.ilike(pattern),
            Contact.company.ilike(pattern),
        )
    )


async def get(session: AsyncSession, contact_id: UUID) -> Optional[Contact]:
    """Return the Contact with this id, or None."""
    result = await session.execute(select(Contact).where(Contact.id == contact_id))
    return result.scalar_one_or_none()


async def list_scoped(
    session: AsyncSession,
    scope_ids: Optional[list[UUID]],
    search: Optional[str] = None,
    life_stage: Optional[str] = None,
    page: int = 1,
    per_page: int = PAGE_SIZE,
) -> tuple[list[Contact], int]:
    """Return one page of contacts visible to the caller, plus the total count.

    scope_ids is the list of assignees whose contacts are visible; None
    means every contact.
    """
    base = _search(_scoped(select(Contact), scope_ids), search)
    if life_stage:
        base = base.where(func.lower(Contact.life_stage) == life_stage.lower())

    total = await session.scalar(select(func.count()).select_from(base.subquery()))
    result = await session.execute(
        base.order_by(Contact.created_at.desc())
        .offset((max(page, 1) - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total or 0


async def list_for_pipeline(
    session: AsyncSession, scope_ids: Optional[list[UUID]]
) -> list[Contact]:
    """Return every visible contact, newest first, for the kanban board."""
    result = await session.execute(
        _scoped(select(Contact), scope_ids).order_by(Contact.updated_at.desc())
    )
    return list(result.scalars().all())


async def find_duplicate(
    session: AsyncSession,
    email: Optional[str],
    phone: Optional[str],
    exclude_id: Optional[UUID] = None,
) -> Optional[Contact]:
    """Return a contact already using this email or phone, or None.

    exclude_id skips the contact being edited so it does not match itself.
    """
    clauses = []
    if email:
        clauses.append(func.lower(Contact.email) == email.lower().strip())
    if phone:
        clauses.append(Contact.phone == phone.strip())
    if not clauses:
        return None
    stmt = select(Contact).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(Contact.id != exclude_id)
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none()


async def create(session: AsyncSession, data: dict) -> Contact:
    """Insert one contact.

    data dict keys: name, email, phone, zalo, company, company_size,
    industry, data_source, life_stage, assigned_to, created_by, notes,
    tags, address, position, next_appointment_at
    """
    contact = Contact(**data)
    session.add(contact)
    await session.flush()
    return contact


async def update_fields(
    session: AsyncSession, contact_id: UUID, values: dict
) -> Optional[Contact]:
    """Update the given columns and return the contact, or None if unknown."""
    result = await session.execute(
        update(Contact)
        .where(Contact.id == contact_id)
        .values(**values, updated_at=func.now())
        .returning(Contact)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def set_life_stage(
    session: AsyncSession, contact_id: UUID, stage: str, user_id: Optional[UUID] = None
) -> Optional[Contact]:
    """Move a contact to a new life stage."""
    values = {"life_stage": stage}
    if user_id is not None:
        values["last_updated_by"] = user_id
    return await update_fields(session, contact_id, values)


async def touch_last_updated_by(
    session: AsyncSession, contact_id: UUID, user_id: UUID
) -> None:
    await session.execute(
        update(Contact).where(Contact.id == contact_id).values(last_updated_by=user_id)
    )
    await session.flush()


async def count_history(session: AsyncSession, contact_id: UUID) -> int:
    """Number of history entries that would be removed with the contact."""
    count = await session.scalar(
        select(func.count())
        .select_from(ContactHistory)
        .where(ContactHistory.contact_id == contact_id)
    )
    return count or 0


async def delete_with_history(session: AsyncSession, contact_id: UUID) -> bool:
    """Delete a contact and its history. Returns False when no contact matched."""
    await session.execute(
        delete(ContactHistory).where(ContactHistory.contact_id == contact_id)
    )
    result = await session.execute(delete(Contact).where(Contact.id == contact_id))
    await session.flush()
    return result.rowcount > 0


async def existing_emails_phones(
    session: AsyncSession, emails: list[str], phones: list[str]
) -> tuple[set[str], set[str]]:
    """Return the subset of emails (lowercased) and phones already stored."""
    if not emails and not phones:
        return set(), set()
    clauses = []
    if emails:
        clauses.append(func.lower(Contact.email).in_([e.lower() for e in emails]))
    if phones:
        clauses.append(Contact.phone.in_(phones))
    result = await session.execute(select(Contact.email, Contact.phone).where(or_(*clauses)))
    found_emails, found_phones = set(), set()
    for email, phone in result.all():
        if email:
            found_emails.add(email.lower())
        if phone:
            found_phones.add(phone)
    return found_emails, found_phones


async def bulk_insert(session: AsyncSession, rows: list[dict]) -> int:
    """Insert many contacts in one statement. Returns the number inserted."""
    if not rows:
        return 0
    await session.execute(insert(Contact), rows)
    await session.flush()
    return len(rows)


async def list_for_export(
    session: AsyncSession,
    stages: Optional[list[str]] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list[Contact]:
    """Contacts filtered by life stage and creation date, oldest first."""
    stmt = select(Contact)
    if stages:
        stmt = stmt.where(func.lower(Contact.life_stage).in_([s.lower() for s in stages]))
    if date_from is not None:
        stmt = stmt.where(Contact.created_at >= date_from)
    if date_to is not None:
        stmt = stmt.where(Contact.created_at <= date_to)
    result = await session.execute(stmt.order_by(Contact.created_at))
    return list(result.scalars().all())


async def dashboard_rows(
    session: AsyncSession,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list:
    """Lightweight rows (created_at, life_stage, data_source, assigned_to) for stats."""
    stmt = select(
        Contact.created_at, Contact.life_stage, Contact.data_source, Contact.assigned_to
    )
    if date_from is not None:
        stmt = stmt.where(Contact.created_at >= date_from)
    if date_to is not None:
        stmt = stmt.where(Contact.created_at <= date_to)
    result = await session.execute(stmt)
    return list(result.all())
