"""Analytics report: key metrics, stage conversion by month, sources, rep performance."""
from collections import Counter, defaultdict
from datetime import datetime
from typing import Iterable

from dateutil.relativedelta import relativedelta

from db.models import LIFE_STAGES
from services.dashboard import MONTH_ABBR, same_month, month_start

CONVERSION_MONTHS = 6


def _stage(row) -> str:
    return (row.life_stage or "subscriber").lower()


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def key_metrics(contacts: list, appointments: list) -> dict:
    total = len(contacts)
    customers = sum(1 for c in contacts if _stage(c) == "customer")
    return {
        "totalContacts": total,
        "customers": customers,
        "conversionRate": _rate(customers, total),
        "activeContacts": sum(1 for c in contacts if _stage(c) in ("lead", "opportunity")),
        "appointments": len(appointments),
        "completedAppointments": sum(1 for a in appointments if a.status == "completed"),
    }


def conversion_by_month(contacts: list, now: datetime, months: int = CONVERSION_MONTHS) -> list[dict]:
    """Contacts created per month split by their current life stage."""
    current = month_start(now)
    data = []
    for offset in range(months - 1, -1, -1):
        start = current - relativedelta(months=offset)
        in_month = [c for c in contacts if same_month(c.created_at, start)]
        counts = Counter(_stage(c) for c in in_month)
        data.append({"month": MONTH_ABBR[start.month - 1], **{s: counts[s] for s in LIFE_STAGES}})
    return data


def source_breakdown(contacts: list) -> list[dict]:
    """Share of contacts per data_source, largest first; missing sources count as 'Other'."""
    counts = Counter((c.data_source or "Other") for c in contacts)
    total = len(contacts)
    return [
        {"name": name, "count": count, "value": _rate(count, total)}
        for name, count in counts.most_common()
    ]


def rep_performance(contacts: list, names: dict) -> list[dict]:
    """Per-assignee contacts, customers and conversion rate, best rate first."""
    assigned = defaultdict(list)
    for c in contacts:
        if c.assigned_to is not None:
            assigned[c.assigned_to].append(c)
    rows = []
    for user_id, owned in assigned.items():
        converted = sum(1 for c in owned if _stage(c) == "customer")
        rows.append({
            "userId": str(user_id),
            "name": names.get(user_id, ""),
            "contacts": len(owned),
            "converted": converted,
            "rate": _rate(converted, len(owned)),
        })
    rows.sort(key=lambda r: (r["rate"], r["contacts"]), reverse=True)
    return rows


def build_report(
    contacts: Iterable, appointments: Iterable, names: dict, now: datetime
) -> dict:
    """Response body for GET /api/analytics."""
    contact_rows = list(contacts)
    appointment_rows = list(appointments)
    return {
        "metrics": key_metrics(contact_rows, appointment_rows),
        "conversionData": conversion_by_month(contact_rows, now),
        "sourceData": source_breakdown(contact_rows),
        "performanceData": rep_performance(contact_rows, names),
    }
