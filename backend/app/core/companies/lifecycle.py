"""Company lifecycle rules.

Everything here is a pure function over a company's stored ``status`` and its
``plans`` JSON array, so the rules can be checked without a database. Plan
entries are kept in their stored shape::

    {"planName": "PREMIUM", "period": "yearly", "isAddOn": false, "endDate": "2026-01-01"}

and any extra keys on an entry survive every update.
"""
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Iterable

from app.core.errors import ConflictError, ValidationError

PlanEntry = dict[str, Any]


class CompanyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"


class PlanName(str, Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"


DEFAULT_PLAN = PlanName.FREE.value
EXTENDED_PLAN_PERIOD = "yearly"


def _to_instant(text: str) -> datetime:
    """``YYYY-MM-DD`` is midnight UTC; other ISO timestamps keep their time, naive ones read as UTC."""
    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_plan_end(value: Any) -> datetime | None:
    """Read a stored ``endDate`` as an instant; unreadable values mean no expiry."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        return _to_instant(value)
    except ValueError:
        return None


def current_plan_index(plans: Iterable[PlanEntry] | None) -> int | None:
    for index, entry in enumerate(plans or []):
        if not entry.get("isAddOn", False):
            return index
    return None


def current_plan(plans: list[PlanEntry] | None) -> PlanEntry | None:
    """The primary plan: first entry that is not an add-on."""
    index = current_plan_index(plans)
    return None if index is None else plans[index]


def plan_name(plans: list[PlanEntry] | None) -> str:
    entry = current_plan(plans)
    if entry is None:
        return DEFAULT_PLAN
    return entry.get("planName") or DEFAULT_PLAN


def expires_at(plans: list[PlanEntry] | None) -> datetime | None:
    entry = current_plan(plans)
    if entry is None:
        return None
    return parse_plan_end(entry.get("endDate"))


def is_expired(plans: list[PlanEntry] | None, now: datetime) -> bool:
    end = expires_at(plans)
    return end is not None and end < now


def display_status(status: str, plans: list[PlanEntry] | None, now: datetime) -> str:
    """Status shown to operators. EXPIRED is derived from the primary plan, never stored."""
    if is_expired(plans, now):
        return CompanyStatus.EXPIRED.value
    return status


def ensure_can_suspend(status: str) -> None:
    if status == CompanyStatus.SUSPENDED:
        raise ConflictError("Company is already suspended")


def ensure_can_activate(status: str) -> None:
    if status == CompanyStatus.ACTIVE:
        raise ConflictError("Company is already active")
    if status != CompanyStatus.SUSPENDED:
        raise ConflictError("Only suspended companies can be activated")


def clean_reason(reason: str | None) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("Suspension reason is required")
    return cleaned


def parse_expiry(raw: str | None, now: datetime) -> datetime:
    """Parse a requested expiry. Date-only input means midnight UTC; naive timestamps are UTC."""
    text = (raw or "").strip()
    if not text:
        raise ValidationError("New expiry date is required")
    try:
        parsed = _to_instant(text)
    except ValueError:
        raise ValidationError("Invalid date format") from None
    if parsed <= now:
        raise ValidationError("Expiry date must be in the future")
    return parsed


def extend_plans(plans: list[PlanEntry] | None, new_end: date, plan_type: str | None = None) -> list[PlanEntry]:
    """Return a new plan list with the expiry extended.

    With ``plan_type`` a fresh yearly primary entry is appended and earlier
    entries are left as they are. Without it, only the ``endDate`` of the first
    non-add-on entry changes; when there is none the list comes back unchanged.
    """
    updated = [dict(entry) for entry in plans or []]
    end = new_end.isoformat()

    if plan_type:
        updated.append({
            "planName": plan_type,
            "period": EXTENDED_PLAN_PERIOD,
            "isAddOn": False,
            "endDate": end,
        })
        return updated

    index = current_plan_index(updated)
    if index is not None:
        updated[index]["endDate"] = end
    return updated
