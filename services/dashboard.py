"""Dashboard statistics: life-stage breakdown, stat cards, 12-month trend.

All functions are pure and work on rows already fetched from the
database, so month boundaries are computed in the CRM timezone.
"""
from datetime import datetime
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

STAGE_LABELS = ("Subscriber", "Lead", "Opportunity", "Customer")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TREND_MONTHS = 12


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_label(moment: datetime) -> str:
    """'MMM YYYY', e.g. 'Mar 2025'."""
    return f"{MONTH_ABBR[moment.month - 1]} {moment.year}"


def same_month(moment: Optional[datetime], start: datetime) -> bool:
    if moment is None:
        return False
    local = moment.astimezone(start.tzinfo)
    return local.year == start.year and local.month == start.month


def calc_change(current: int, previous: int) -> str:
    """Signed month-over-month change; '+100%' when there is no previous value."""
    if previous == 0:
        return "+100%"
    diff = current - previous
    percent = diff / previous * 100
    return f"{'+' if diff >= 0 else ''}{percent:.1f}%"


def _stage_of(row) -> str:
    return (row.life_stage or "").lower()


def life_stage_breakdown(contacts: Iterable) -> list[dict]:
    """[{name, value}] for each stage, matched case-insensitively."""
    rows = list(contacts)
    return [
        {"name": label, "value": sum(1 for c in rows if _stage_of(c) == label.lower())}
        for label in STAGE_LABELS
    ]


def stat_cards(contacts: Iterable, now: datetime) -> list[dict]:
    """The four bilingual summary cards shown on the dashboard."""
    rows = list(contacts)
    this_month = month_start(now)
    last_month = this_month - relativedelta(months=1)

    total = len(rows)
    customers = sum(1 for c in rows if _stage_of(c) == "customer")
    leads = sum(1 for c in rows if _stage_of(c) == "lead")
    conversion = customers / total * 100 if total else 0.0
    new_this_month = sum(
        1 for c in rows if c.created_at is not None and c.created_at >= this_month
    )
    new_last_month = sum(1 for c in rows if same_month(c.created_at, last_month))
    change = calc_change(new_this_month, new_last_month)
    change_type = "negative" if change.startswith("-") else "positive"

    return [
        {
            "title": "Total Contacts",
            "vietnamese": "Tổng số liên hệ",
            "value": total,
            "change": change,
            "changeType": change_type,
            "icon": "Users",
        },
        {
            "title": "Conversion Rate",
            "vietnamese": "Tỷ lệ chuyển đổi",
            "value": f"{conversion:.1f}%",
            "change": "+0% from last month",
            "changeType": "positive",
            "icon": "TrendingUp",
        },
        {
            "title": "Active Leads",
            "vietnamese": "Khách hàng tiềm năng",
            "value": leads,
            "change": "+0% from last month",
            "changeType": "positive",
            "icon": "Target",
        },
        {
            "title": "New Contacts",
            "vietnamese": "Liên hệ mới",
            "value": new_this_month,
            "change": change,
            "changeType": change_type,
            "icon": "UserPlus",
        },
    ]


def activity_trend(
    contacts: Iterable, appointments: Iterable, now: datetime, months: int = TREND_MONTHS
) -> list[dict]:
    """Contacts created and appointments scheduled per month, oldest month first."""
    contact_rows = list(contacts)
    appointment_rows = list(appointments)
    current = month_start(now)
    trend = []
    for offset in range(months - 1, -1, -1):
        start = current - relativedelta(months=offset)
        trend.append({
            "month": month_label(start),
            "contacts": sum(1 for c in contact_rows if same_month(c.created_at, start)),
            "appointments": sum(
                1 for a in appointment_rows if same_month(a.scheduled_at, start)
            ),
        })
    return trend


def build_dashboard(contacts: Iterable, appointments: Iterable, now: datetime) -> dict:
    """Response body for GET /api/dashboard."""
    contact_rows = list(contacts)
    return {
        "stats": stat_cards(contact_rows, now),
        "lifeStageData": life_stage_breakdown(contact_rows),
        "activityData": activity_trend(contact_rows, appointments, now),
    }
