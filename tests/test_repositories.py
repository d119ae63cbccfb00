"""Integration tests for core repository methods.

These run against a real database and are skipped unless DATABASE_URL is
set in the environment before the test run (schema from `alembic upgrade head`).
Example: export DATABASE_URL="postgresql+asyncpg://crm:<password>@localhost:5432/crm_test"
"""
import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

pytestmark = pytest.mark.skipif(
    os.environ.get("CRM_LIVE_DB") != "1",
    reason="needs a live PostgreSQL DATABASE_URL",
)

from db import dispose_engine, get_db
from db.repositories import appointments as appointments_repo
from db.repositories import contacts as contacts_repo
from db.repositories import history as history_repo
from db.repositories import notifications as notifications_repo
from db.repositories import profiles as profiles_repo


@pytest_asyncio.fixture(autouse=True)
async def _fresh_pool():
    # Each test runs on its own event loop; pooled connections must not leak across
    yield
    await dispose_engine()


async def _profile(session, role="sales"):
    tag = uuid.uuid4().hex[:8]
    return await profiles_repo.create(session, {
        "id": uuid.uuid4(),
        "full_name": f"Test {tag}",
        "email": f"{tag}@example.com",
        "role": role,
        "status": "active",
    })


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_contact_duplicate_lookup_ignores_self():
    """find_duplicate matches on email case-insensitively but skips exclude_id."""
    email = f"Dup-{uuid.uuid4().hex[:8]}@Example.com"
    async with get_db() as session:
        owner = await _profile(session)
        contact = await contacts_repo.create(session, {
            "name": "Dup Test", "email": email.lower(), "assigned_to": owner.id,
        })

    async with get_db() as session:
        found = await contacts_repo.find_duplicate(session, email, None)
        assert found is not None and found.id == contact.id
        assert await contacts_repo.find_duplicate(session, email, None, exclude_id=contact.id) is None


@pytest.mark.asyncio
async def test_scoped_listing_and_search():
    """list_scoped only returns contacts assigned inside the scope."""
    tag = uuid.uuid4().hex[:8]
    async with get_db() as session:
        mine, other = await _profile(session), await _profile(session)
        await contacts_repo.create(session, {"name": f"Mine {tag}", "phone": tag, "assigned_to": mine.id})
        await contacts_repo.create(session, {"name": f"Other {tag}", "phone": tag + "1", "assigned_to": other.id})

    async with get_db() as session:
        rows, total = await contacts_repo.list_scoped(session, [mine.id], search=tag)
    assert total == 1
    assert rows[0].name == f"Mine {tag}"


@pytest.mark.asyncio
async def test_delete_contact_removes_history():
    """delete_with_history removes the contact's history rows too."""
    async with get_db() as session:
        owner = await _profile(session)
        contact = await contacts_repo.create(session, {"name": "Gone", "phone": uuid.uuid4().hex[:10]})
        await history_repo.add(session, {
            "contact_id": contact.id, "type": "call", "content": "hi", "created_by": owner.id,
        })
        assert await contacts_repo.count_history(session, contact.id) == 1

    async with get_db() as session:
        assert await contacts_repo.delete_with_history(session, contact.id) is True
        assert await contacts_repo.count_history(session, contact.id) == 0
        assert await contacts_repo.get(session, contact.id) is None


@pytest.mark.asyncio
async def test_reminder_window_queries():
    """in_window returns scheduled appointments only; cancelled ones are ignored."""
    now = datetime.now(timezone.utc)
    async with get_db() as session:
        owner = await _profile(session)
        due = await appointments_repo.create(session, {
            "title": "Due", "scheduled_at": now + timedelta(minutes=10), "created_by": owner.id,
        })
        cancelled = await appointments_repo.create(session, {
            "title": "Cancelled", "scheduled_at": now + timedelta(minutes=10),
            "status": "cancelled", "created_by": owner.id,
        })

    async with get_db() as session:
        rows = await appointments_repo.in_window(
            session, now + timedelta(minutes=9), now + timedelta(minutes=11)
        )
    ids = {a.id for a in rows}
    assert due.id in ids
    assert cancelled.id not in ids


@pytest.mark.asyncio
async def test_record_once_is_idempotent():
    """A second notification for the same (user, type, reference) is dropped."""
    reference = str(uuid.uuid4())
    async with get_db() as session:
        owner = await _profile(session)
        data = {
            "user_id": owner.id, "type": "appointment_t10", "title": "t",
            "message": "m", "reference_id": reference, "priority": "high",
        }
        assert await notifications_repo.record_once(session, data) is True
        assert await notifications_repo.record_once(session, dict(data)) is False
        assert await notifications_repo.already_sent(session, owner.id, "appointment_t10", reference)


@pytest.mark.asyncio
async def test_clear_fcm_token_only_when_unchanged():
    """clear_fcm_token leaves a refreshed token alone."""
    async with get_db() as session:
        owner = await _profile(session)
        await profiles_repo.set_fcm_token(session, owner.id, "fresh")
        await profiles_repo.clear_fcm_token(session, owner.id, "stale")
        still = await profiles_repo.get(session, owner.id)
        await session.refresh(still)
        assert still.fcm_token == "fresh"

        await profiles_repo.clear_fcm_token(session, owner.id, "fresh")
        await session.refresh(still)
        assert still.fcm_token is None


@pytest.mark.asyncio
async def test_overlap_candidates_include_multi_day_appointments():
    """An appointment lasting two days still blocks a slot on its second day."""
    start = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=30)
    async with get_db() as session:
        owner = await _profile(session)
        long_one = await appointments_repo.create(session, {
            "title": "Workshop", "scheduled_at": start, "duration_minutes": 2880, "created_by": owner.id,
        })
        ended = await appointments_repo.create(session, {
            "title": "Short", "scheduled_at": start, "duration_minutes": 30, "created_by": owner.id,
        })

    slot_start = start + timedelta(days=1, hours=1)
    async with get_db() as session:
        rows = await appointments_repo.owner_candidates(
            session, owner.id, slot_start, slot_start + timedelta(minutes=30)
        )
    ids = {a.id for a in rows}
    assert long_one.id in ids
    assert ended.id not in ids
