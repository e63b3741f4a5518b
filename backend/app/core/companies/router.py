import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth.models import AdminUser
from app.core.companies import service
from app.core.companies.hooks import LifecycleHooks
from app.core.companies.lifecycle import CompanyStatus, PlanName
from app.core.companies.schemas import (
    ActivateResponse, CompanyListQuery, CompanyPage, CompanyRead,
    ExtendPlanRequest, ExtendPlanResponse, SuspendRequest, SuspendResponse,
)
from app.core.errors import InternalError
from app.dependencies import get_current_admin, get_db, get_lifecycle_hooks
from app.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("", response_model=CompanyPage)
async def list_companies(
    search: str | None = None,
    status: CompanyStatus | None = None,
    plan: PlanName | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    _: AdminUser = Depends(get_current_admin),
):
    query = CompanyListQuery(search=search or None, status=status, plan=plan, page=page, limit=limit)
    try:
        return await service.list_companies(db, query)
    except SQLAlchemyError:
        logger.exception("Error fetching companies")
        raise InternalError("Failed to fetch companies")


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    _: AdminUser = Depends(get_current_admin),
):
    try:
        return await service.get_company_view(db, company_id)
    except SQLAlchemyError:
        logger.exception("Error fetching company %s", company_id)
        raise InternalError("Failed to fetch company")


@router.post("/{company_id}/suspend", response_model=SuspendResponse)
async def suspend_company(
    company_id: str,
    body: SuspendRequest,
    db: AsyncSession = Depends(get_db),
    hooks: LifecycleHooks = Depends(get_lifecycle_hooks),
    admin: AdminUser = Depends(get_current_admin),
):
    try:
        result = await service.suspend_company(db, company_id, body.reason, hooks)
    except SQLAlchemyError:
        logger.exception("Error suspending company %s", company_id)
        raise InternalError("Failed to suspend company")
    logger.info("%s suspended company %s", admin.email, company_id)
    return result


@router.post("/{company_id}/activate", response_model=ActivateResponse)
async def activate_company(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    hooks: LifecycleHooks = Depends(get_lifecycle_hooks),
    admin: AdminUser = Depends(get_current_admin),
):
    try:
        result = await service.activate_company(db, company_id, hooks)
    except SQLAlchemyError:
        logger.exception("Error activating company %s", company_id)
        raise InternalError("Failed to activate company")
    logger.info("%s activated company %s", admin.email, company_id)
    return result


@router.post("/{company_id}/extend-plan", response_model=ExtendPlanResponse)
async def extend_plan(
    company_id: str,
    body: ExtendPlanRequest,
    db: AsyncSession = Depends(get_db),
    hooks: LifecycleHooks = Depends(get_lifecycle_hooks),
    admin: AdminUser = Depends(get_current_admin),
):
    try:
        result = await service.extend_plan(db, company_id, body.new_expiry_date, body.plan_type, hooks)
    except SQLAlchemyError:
        logger.exception("Error extending plan for company %s", company_id)
        raise InternalError("Failed to extend plan")
    logger.info("%s extended plan for company %s", admin.email, company_id)
    return result
