import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.core.auth import service as auth_service
from app.core.auth.models import AdminUser
from app.core.auth.security import create_session_token, hash_password
from app.core.companies import service
from app.dependencies import get_current_admin, get_db
from app.main import create_app
from app.settings import get_settings

from fakes import FakeSession, RecordingHooks, make_company

settings = get_settings()


def _admin(password="changeme123!"):
    return AdminUser(
        id=uuid.uuid4(),
        email="admin@avenping.local",
        hashed_password=hash_password(password),
        full_name="Admin User",
        role="admin",
        status="active",
    )


ADMIN = _admin()


@pytest.fixture
def hooks():
    return RecordingHooks()


@pytest.fixture
def app(hooks):
    app = create_app(lifecycle_hooks=hooks)
    app.dependency_overrides[get_db] = lambda: FakeSession()
    app.dependency_overrides[get_current_admin] = lambda: ADMIN
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def companies(monkeypatch):
    store = {}

    async def fake_get_company(db, company_id, include_deleted=False):
        return store.get(company_id)

    monkeypatch.setattr(service, "get_company", fake_get_company)
    return store


def test_suspend_endpoint(client, companies, hooks):
    companies["c-1"] = make_company(status="ACTIVE")
    resp = client.post("/api/companies/c-1/suspend", json={"reason": "Chargeback"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Company suspended successfully"
    assert body["company"]["status"] == "SUSPENDED"
    assert body["company"]["suspensionReason"] == "Chargeback"
    assert "suspendedAt" in body["company"]
    assert "revoke_access" in hooks.names()


def test_suspend_endpoint_errors(client, companies):
    companies["c-1"] = make_company(status="SUSPENDED")

    resp = client.post("/api/companies/c-1/suspend", json={"reason": "   "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Suspension reason is required"}

    resp = client.post("/api/companies/c-1/suspend", json={"reason": "again"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Company is already suspended"}

    resp = client.post("/api/companies/zzz/suspend", json={"reason": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Company not found"}


def test_activate_endpoint(client, companies):
    companies["c-1"] = make_company(status="SUSPENDED")
    companies["c-2"] = make_company("c-2", status="PENDING")

    resp = client.post("/api/companies/c-1/activate")
    assert resp.status_code == 200
    assert resp.json()["company"]["status"] == "ACTIVE"
    assert "activatedAt" in resp.json()["company"]

    resp = client.post("/api/companies/c-1/activate")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Company is already active"}

    resp = client.post("/api/companies/c-2/activate")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Only suspended companies can be activated"}


def test_extend_plan_endpoint(client, companies):
    companies["c-1"] = make_company()
    resp = client.post("/api/companies/c-1/extend-plan", json={"newExpiryDate": "2099-01-01", "planType": "ENTERPRISE"})
    assert resp.status_code == 200
    company = resp.json()["company"]
    assert company["plan"] == "ENTERPRISE"
    assert company["expiresAt"].startswith("2099-01-01T00:00:00")
    assert companies["c-1"].plans[-1]["planName"] == "ENTERPRISE"


def test_extend_plan_blank_plan_type_extends_current(client, companies):
    companies["c-1"] = make_company()
    resp = client.post("/api/companies/c-1/extend-plan", json={"newExpiryDate": "2099-01-01", "planType": ""})
    assert resp.status_code == 200
    assert resp.json()["company"]["plan"] == "BASIC"
    assert len(companies["c-1"].plans) == 1


@pytest.mark.parametrize("payload,error", [
    ({}, "New expiry date is required"),
    ({"newExpiryDate": "tomorrow"}, "Invalid date format"),
    ({"newExpiryDate": "2000-01-01"}, "Expiry date must be in the future"),
])
def test_extend_plan_validation(client, companies, payload, error):
    companies["c-1"] = make_company()
    resp = client.post("/api/companies/c-1/extend-plan", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": error}


def test_extend_plan_rejects_unknown_plan_type(client, companies):
    companies["c-1"] = make_company()
    resp = client.post("/api/companies/c-1/extend-plan", json={"newExpiryDate": "2099-01-01", "planType": "GOLD"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_list_endpoint_passes_query(client, monkeypatch):
    seen = {}

    async def fake_list(db, query, now=None):
        seen["query"] = query
        return service.CompanyPage(companies=[], pagination=service.build_pagination(query.page, query.limit, 0))

    monkeypatch.setattr(service, "list_companies", fake_list)
    resp = client.get("/api/companies", params={"search": "acme", "status": "EXPIRED", "plan": "BASIC", "page": 2, "limit": 5})

    assert resp.status_code == 200
    assert resp.json()["pagination"] == {
        "page": 2, "limit": 5, "total": 0, "totalPages": 0, "hasNext": False, "hasPrev": True,
    }
    assert seen["query"].search == "acme"
    assert seen["query"].status.value == "EXPIRED"


def test_list_endpoint_rejects_bad_paging(client):
    assert client.get("/api/companies", params={"page": 0}).status_code == 400
    assert client.get("/api/companies", params={"limit": settings.MAX_PAGE_SIZE + 1}).status_code == 400


def test_storage_failure_is_generic_500(client, monkeypatch):
    async def broken(db, query, now=None):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(service, "list_companies", broken)
    resp = client.get("/api/companies")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch companies"}


def test_failed_commit_is_500_without_side_effects(app, client, companies, hooks):
    companies["c-1"] = make_company(status="ACTIVE")
    broken = OperationalError("COMMIT", {}, Exception("connection lost"))
    app.dependency_overrides[get_db] = lambda: FakeSession(commit_error=broken)

    resp = client.post("/api/companies/c-1/suspend", json={"reason": "Chargeback"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to suspend company"}
    assert hooks.calls == []


def test_company_routes_require_session(hooks):
    app = create_app(lifecycle_hooks=hooks)
    app.dependency_overrides[get_db] = lambda: FakeSession()
    resp = TestClient(app).post("/api/companies/c-1/activate")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Not authenticated"}


def test_signin_sets_cookie(client, monkeypatch):
    admin = _admin("s3cret!")

    async def fake_lookup(db, email):
        return admin if email == admin.email else None

    monkeypatch.setattr(auth_service, "get_admin_by_email", fake_lookup)

    resp = client.post("/api/auth/signin", json={"email": admin.email, "password": "s3cret!"})
    assert resp.status_code == 200
    assert resp.json()["user"] == {"email": admin.email, "role": "admin", "name": "Admin User"}
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in cookie
    assert "Max-Age=86400" in cookie
    assert "SameSite=strict" in cookie

    resp = client.post("/api/auth/signin", json={"email": admin.email, "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_signin_requires_both_fields(client):
    resp = client.post("/api/auth/signin", json={"email": "admin@avenping.local"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email and password are required"}


def test_signout_clears_cookie(client):
    resp = client.post("/api/auth/signout")
    assert resp.status_code == 200
    assert resp.headers["set-cookie"].startswith(f'{settings.SESSION_COOKIE_NAME}=""')


def test_gate_redirects_without_session(client):
    resp = client.get("/docs", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "/"

    resp = client.get("/docs", follow_redirects=False, headers={"cookie": f"{settings.SESSION_COOKIE_NAME}=garbage"})
    assert resp.status_code == 307


def test_gate_lets_root_and_valid_sessions_through(client):
    assert client.get("/").json() == {"status": "ok"}
    token = create_session_token(uuid.uuid4(), "admin@avenping.local", "admin")
    resp = client.get("/docs", follow_redirects=False, headers={"cookie": f"{settings.SESSION_COOKIE_NAME}={token}"})
    assert resp.status_code == 200
