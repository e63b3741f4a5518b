"""Follow-up obligations of lifecycle actions.

Suspending, activating or extending a company has consequences outside this
service (billing subscription, customer notification, audit trail, platform
access). They belong to external collaborators; the service only calls the
``LifecycleHooks`` interface. ``LoggingLifecycleHooks`` is the default wiring
and records each obligation in the log until real integrations exist.
"""
import logging
from datetime import date
from typing import Protocol

from app.core.companies.models import Company

logger = logging.getLogger(__name__)


class LifecycleHooks(Protocol):
    async def pause_subscription(self, company: Company) -> None: ...

    async def resume_subscription(self, company: Company) -> None: ...

    async def update_subscription(self, company: Company, plan: str, expires_on: date) -> None: ...

    async def notify_company(self, company: Company, event: str, detail: dict) -> None: ...

    async def record_audit(self, company: Company, action: str, detail: dict) -> None: ...

    async def revoke_access(self, company: Company) -> None: ...

    async def restore_access(self, company: Company) -> None: ...


class LoggingLifecycleHooks:
    async def pause_subscription(self, company: Company) -> None:
        logger.info("billing: pause subscription for company %s", company.id)

    async def resume_subscription(self, company: Company) -> None:
        logger.info("billing: resume subscription for company %s", company.id)

    async def update_subscription(self, company: Company, plan: str, expires_on: date) -> None:
        logger.info("billing: set company %s to %s until %s", company.id, plan, expires_on.isoformat())

    async def notify_company(self, company: Company, event: str, detail: dict) -> None:
        logger.info("notify: %s <%s> about %s", company.id, company.email, event)

    async def record_audit(self, company: Company, action: str, detail: dict) -> None:
        logger.info("audit: %s on company %s %s", action, company.id, detail)

    async def revoke_access(self, company: Company) -> None:
        logger.info("access: revoke platform access for company %s", company.id)

    async def restore_access(self, company: Company) -> None:
        logger.info("access: restore platform access for company %s", company.id)
