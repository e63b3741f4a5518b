import logging
import math
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.selectable import ScalarSelect

from app.core.companies import lifecycle
from app.core.companies.hooks import LifecycleHooks
from app.core.companies.lifecycle import CompanyStatus, PlanName
from app.core.companies.models import Campaign, Company, Contact
from app.core.companies.schemas import (
    ActivateResponse, ActivatedCompany, CompanyListQuery, CompanyPage, CompanyRead,
    ExtendPlanResponse, ExtendedCompany, Pagination, SuspendResponse, SuspendedCompany,
)
from app.core.errors import NotFoundError
from app.db.base import utcnow

logger = logging.getLogger(__name__)


def _count_of(model: type[Campaign] | type[Contact]) -> ScalarSelect[int]:
    return (
        select(func.count(model.id))
        .where(model.company_id == Company.id)
        .correlate(Company)
        .scalar_subquery()
    )


def _filter_conditions(search: str | None, status: str | None) -> list:
    conditions = [Company.is_deleted == False]
    if search:
        conditions.append(or_(
            Company.name.icontains(search, autoescape=True),
            Company.email.icontains(search, autoescape=True),
            Company.industry.icontains(search, autoescape=True),
        ))
    # EXPIRED is derived from plans, so it never filters the stored column
    if status and status != CompanyStatus.EXPIRED.value:
        conditions.append(Company.status == status)
    return conditions


def build_company_query(search: str | None = None, status: str | None = None) -> Select:
    return (
        select(
            Company,
            _count_of(Campaign).label("campaign_count"),
            _count_of(Contact).label("contact_count"),
        )
        .where(*_filter_conditions(search, status))
        .order_by(Company.created_at.desc(), Company.id.desc())
    )


def build_count_query(search: str | None = None, status: str | None = None) -> Select:
    return select(func.count(Company.id)).where(*_filter_conditions(search, status))


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def filter_expired(rows: Sequence[Sequence[Any]], now: datetime) -> list:
    """Keep rows whose company's primary plan ended before ``now``, whatever the stored status."""
    return [row for row in rows if lifecycle.is_expired(row[0].plans, now)]


def to_company_read(company: Company, campaign_count: int, contact_count: int, now: datetime) -> CompanyRead:
    return CompanyRead(
        id=company.id,
        name=company.name,
        email=company.email,
        plan=lifecycle.plan_name(company.plans),
        status=lifecycle.display_status(company.status, company.plans, now),
        expires_at=lifecycle.expires_at(company.plans),
        campaign_count=campaign_count or 0,
        contact_count=contact_count or 0,
        created_at=company.created_at,
        last_login_at=company.updated_at,
        billing_email=company.email,
        phone_number=company.phone,
        industry=company.industry,
    )


async def get_company(db: AsyncSession, company_id: str, include_deleted: bool = False) -> Company | None:
    stmt = select(Company).where(Company.id == company_id)
    if not include_deleted:
        stmt = stmt.where(Company.is_deleted == False)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_company_view(db: AsyncSession, company_id: str, now: datetime | None = None) -> CompanyRead:
    now = now or utcnow()
    result = await db.execute(build_company_query().where(Company.id == company_id))
    row = result.first()
    if row is None:
        raise NotFoundError("Company not found")
    company, campaign_count, contact_count = row
    return to_company_read(company, campaign_count, contact_count, now)


async def list_companies(db: AsyncSession, query: CompanyListQuery, now: datetime | None = None) -> CompanyPage:
    now = now or utcnow()
    status = query.status.value if query.status else None
    offset = (query.page - 1) * query.limit

    if query.plan:
        # TODO: apply the plan filter once product decides between primary-plan and any-plan matching
        logger.debug("plan filter %s accepted but not applied", query.plan.value)

    stmt = build_company_query(query.search, status)
    if status == CompanyStatus.EXPIRED.value:
        rows = filter_expired((await db.execute(stmt)).all(), now)
        total = len(rows)
        rows = rows[offset:offset + query.limit]
    else:
        total = (await db.execute(build_count_query(query.search, status))).scalar_one()
        rows = (await db.execute(stmt.offset(offset).limit(query.limit))).all()

    return CompanyPage(
        companies=[to_company_read(company, campaigns, contacts, now) for company, campaigns, contacts in rows],
        pagination=build_pagination(query.page, query.limit, total),
    )


async def _require_company(db: AsyncSession, company_id: str) -> Company:
    company = await get_company(db, company_id, include_deleted=True)
    if not company:
        raise NotFoundError("Company not found")
    return company


async def suspend_company(
    db: AsyncSession,
    company_id: str,
    reason: str | None,
    hooks: LifecycleHooks,
    now: datetime | None = None,
) -> SuspendResponse:
    reason = lifecycle.clean_reason(reason)
    company = await _require_company(db, company_id)
    lifecycle.ensure_can_suspend(company.status)

    now = now or utcnow()
    company.status = CompanyStatus.SUSPENDED.value
    company.updated_at = now
    # collaborators only hear about changes that are committed
    await db.commit()
    logger.info("Suspended company %s: %s", company.id, reason)

    detail = {"reason": reason}
    await hooks.pause_subscription(company)
    await hooks.notify_company(company, "company.suspended", detail)
    await hooks.record_audit(company, "company.suspend", detail)
    await hooks.revoke_access(company)

    return SuspendResponse(company=SuspendedCompany(
        id=company.id,
        name=company.name,
        email=company.email,
        status=company.status,
        suspension_reason=reason,
        suspended_at=now,
    ))


async def activate_company(
    db: AsyncSession,
    company_id: str,
    hooks: LifecycleHooks,
    now: datetime | None = None,
) -> ActivateResponse:
    company = await _require_company(db, company_id)
    lifecycle.ensure_can_activate(company.status)

    now = now or utcnow()
    company.status = CompanyStatus.ACTIVE.value
    company.updated_at = now
    await db.commit()
    logger.info("Activated company %s", company.id)

    await hooks.resume_subscription(company)
    await hooks.notify_company(company, "company.activated", {})
    await hooks.record_audit(company, "company.activate", {})
    await hooks.restore_access(company)

    return ActivateResponse(company=ActivatedCompany(
        id=company.id,
        name=company.name,
        email=company.email,
        status=company.status,
        activated_at=now,
    ))


async def extend_plan(
    db: AsyncSession,
    company_id: str,
    new_expiry_date: str | None,
    plan_type: PlanName | str | None,
    hooks: LifecycleHooks,
    now: datetime | None = None,
) -> ExtendPlanResponse:
    now = now or utcnow()
    expires_at = lifecycle.parse_expiry(new_expiry_date, now)
    company = await _require_company(db, company_id)

    plan_value = plan_type.value if isinstance(plan_type, PlanName) else plan_type
    new_end = expires_at.astimezone(timezone.utc).date()
    company.plans = lifecycle.extend_plans(company.plans, new_end, plan_value)
    company.updated_at = now
    await db.commit()

    resolved_plan = plan_value or lifecycle.plan_name(company.plans)
    logger.info("Extended company %s plan %s until %s", company.id, resolved_plan, new_end.isoformat())

    detail = {"plan": resolved_plan, "expiresOn": new_end.isoformat()}
    await hooks.update_subscription(company, resolved_plan, new_end)
    await hooks.notify_company(company, "company.plan_extended", detail)
    await hooks.record_audit(company, "company.extend_plan", detail)

    return ExtendPlanResponse(company=ExtendedCompany(
        id=company.id,
        name=company.name,
        email=company.email,
        expires_at=expires_at,
        plan=resolved_plan,
    ))
