import asyncio
import os
from datetime import date, timedelta

from sqlalchemy import select

from app.core.auth.security import hash_password
from app.core.auth.models import AdminUser
from app.core.companies.models import Company
from app.db.session import get_session

DEMO_COMPANIES = [
    ("Acme Logistics", "ops@acme.example", "Logistics", "ACTIVE", "PREMIUM", 180),
    ("Blue Harbor Cafe", "hello@blueharbor.example", "Hospitality", "ACTIVE", "BASIC", -10),
    ("Northwind Retail", "admin@northwind.example", "Retail", "SUSPENDED", "ENTERPRISE", 365),
]


async def seed() -> None:
    admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@avenping.local")
    admin_password = os.getenv("SEED_ADMIN_PASSWORD", "changeme123!")
    with_demo = os.getenv("SEED_DEMO_COMPANIES", "true").lower() == "true"

    async with get_session() as db:
        existing = await db.execute(select(AdminUser).where(AdminUser.email == admin_email.lower()))
        admin = existing.scalar_one_or_none()

        if not admin:
            admin = AdminUser(
                email=admin_email.lower(),
                hashed_password=hash_password(admin_password),
                full_name="Admin User",
                role="admin",
            )
            db.add(admin)
            await db.flush()
            print(f"✅  Admin: {admin.email}")
        else:
            print(f"⏭️   Admin exists: {admin.email}")

        if not with_demo:
            return

        for name, email, industry, status, plan, days in DEMO_COMPANIES:
            found = await db.execute(select(Company).where(Company.email == email))
            if found.scalar_one_or_none():
                print(f"⏭️   Company exists: {name}")
                continue
            end = date.today() + timedelta(days=days)
            db.add(Company(
                name=name,
                email=email,
                industry=industry,
                status=status,
                plans=[{"planName": plan, "period": "yearly", "isAddOn": False, "endDate": end.isoformat()}],
            ))
            print(f"✅  Company: {name}")
        await db.flush()

    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
