"""Dashboard and analytics aggregates."""
import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter

import db.repositories.appointments as appointments_repo
import db.repositories.contacts as contacts_repo
import db.repositories.profiles as profiles_repo
from api.dependencies import CurrentProfile, SessionDep
from schemas.dashboard import DashboardResponse
from services.analytics import build_report
from services.dashboard import build_dashboard
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(session: SessionDep, profile: CurrentProfile):
    contacts = await contacts_repo.dashboard_rows(session)
    appointments = await appointments_repo.dashboard_rows(session)
    return build_dashboard(contacts, appointments, datetime.now(crm_timezone()))


@router.get("/analytics")
async def analytics(
    session: SessionDep,
    profile: CurrentProfile,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    """Key metrics, monthly conversion, lead sources and per-rep performance."""
    tz = crm_timezone()
    start = datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None
    end = datetime.combine(date_to, time.max, tzinfo=tz) if date_to else None
    contacts = await contacts_repo.dashboard_rows(session, start, end)
    appointments = await appointments_repo.dashboard_rows(session, start, end)
    names = await profiles_repo.names_by_id(
        session, list({c.assigned_to for c in contacts if c.assigned_to})
    )
    return build_report(contacts, appointments, names, datetime.now(tz))
