from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.companies.lifecycle import CompanyStatus, PlanName


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class CompanyRead(CamelModel):
    id: str
    name: str
    email: str
    plan: str
    status: str
    expires_at: datetime | None
    user_count: int = 1
    campaign_count: int = 0
    contact_count: int = 0
    created_at: datetime
    last_login_at: datetime
    billing_email: str
    phone_number: str | None = None
    industry: str | None = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class CompanyPage(CamelModel):
    companies: list[CompanyRead]
    pagination: Pagination


class CompanyListQuery(CamelModel):
    search: str | None = None
    status: CompanyStatus | None = None
    plan: PlanName | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)


class SuspendRequest(CamelModel):
    reason: str | None = None


class ExtendPlanRequest(CamelModel):
    new_expiry_date: str | None = None
    plan_type: PlanName | None = None

    @field_validator("plan_type", mode="before")
    @classmethod
    def blank_plan_type_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SuspendedCompany(CamelModel):
    id: str
    name: str
    email: str
    status: str
    suspension_reason: str
    suspended_at: datetime


class ActivatedCompany(CamelModel):
    id: str
    name: str
    email: str
    status: str
    activated_at: datetime


class ExtendedCompany(CamelModel):
    id: str
    name: str
    email: str
    expires_at: datetime
    plan: str


class SuspendResponse(CamelModel):
    success: bool = True
    message: str = "Company suspended successfully"
    company: SuspendedCompany


class ActivateResponse(CamelModel):
    success: bool = True
    message: str = "Company activated successfully"
    company: ActivatedCompany


class ExtendPlanResponse(CamelModel):
    success: bool = True
    message: str = "Plan extended successfully"
    company: ExtendedCompany
