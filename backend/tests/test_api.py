import pytest
from fastapi.testclient import TestClient

from itam.api.v1.deps import get_asset_service, get_session_factory, get_ticket_service
from itam.core.database import get_db
from itam.core.exceptions import StoreTimeout
from itam.main import create_app
from itam.services.ticket_sequencer import TicketSequencer
from itam.services.ticket_service import TicketService

API = "/api/v1"


def headers_for(user):
    return {
        "X-Tenant-ID": user.tenant_id,
        "X-User-ID": user.id,
        "X-User-Email": user.email,
        "X-User-Role": user.role,
    }


@pytest.fixture
def app(session_factory):
    app = create_app(run_startup=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def headers_a(admin_a):
    return headers_for(admin_a)


@pytest.fixture
def headers_b(admin_b):
    return headers_for(admin_b)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_missing_identity_is_unauthorized(client, headers_a):
    assert client.get(f"{API}/assets/").status_code == 401

    bad_role = dict(headers_a, **{"X-User-Role": "overlord"})
    assert client.get(f"{API}/assets/", headers=bad_role).status_code == 401


def test_foreign_and_missing_assets_look_identical(client, headers_a, headers_b):
    created = client.post(f"{API}/assets/", json={"name": "Laptop", "type": "Hardware"}, headers=headers_a)
    assert created.status_code == 201
    asset_id = created.json()["id"]

    foreign = client.get(f"{API}/assets/{asset_id}", headers=headers_b)
    missing = client.get(f"{API}/assets/not-a-real-id", headers=headers_b)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"detail": "Asset not found", "code": "not_found"}
    assert client.get(f"{API}/assets/{asset_id}", headers=headers_a).json()["name"] == "Laptop"
    assert client.get(f"{API}/assets/", headers=headers_b).json() == []


def test_role_is_enforced(client, make_user, tenant_a):
    technician = headers_for(make_user(tenant_a, "tech@acme.test"))

    response = client.post(f"{API}/assets/", json={"name": "Laptop", "type": "Hardware"}, headers=technician)

    assert response.status_code == 403
    assert response.json()["code"] == "permission_denied"


def test_legacy_role_header_is_normalised(client, admin_a):
    headers = dict(headers_for(admin_a), **{"X-User-Role": "manager"})

    response = client.post(f"{API}/assets/", json={"name": "Dock", "type": "Peripherals"}, headers=headers)

    assert response.status_code == 201


def test_validation_errors_carry_issues(client, headers_a):
    response = client.get(f"{API}/assets/distinct/password", headers=headers_a)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_failed"
    assert body["issues"][0]["field"] == "field"


def test_csv_import_partial(client, headers_a):
    content = (
        "name,type,status\n"
        "Laptop 1,Hardware,in-stock\n"
        "Laptop 2,Hardware,in-stock\n"
        ",Hardware,in-stock\n"
        "Laptop 4,Hardware,deployed\n"
        "Laptop 5,Hardware,deployed\n"
    )

    response = client.post(
        f"{API}/assets/import?mode=partial",
        files={"file": ("assets.csv", content, "text/csv")},
        headers=headers_a,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total": 5, "valid": 4, "invalid": 1, "inserted": 4}
    assert [row["rowNumber"] for row in body["rows"] if row["status"] == "invalid"] == [4]
    assert len(client.get(f"{API}/assets/", headers=headers_a).json()) == 4


def test_import_template_download(client, headers_a):
    response = client.get(f"{API}/assets/import/template", headers=headers_a)

    assert response.status_code == 200
    assert response.text.splitlines()[0].startswith("name,type,status")


def test_signup_twice_returns_already_exists(client):
    payload = {"organization_name": "Pied Piper", "email": "richard@piedpiper.test", "password": "middle-out"}

    first = client.post(f"{API}/auth/signup", json=payload)
    second = client.post(f"{API}/auth/signup", json=dict(payload, email="erlich@piedpiper.test"))

    assert first.status_code == 201
    assert first.json()["user"]["role"] == "super-admin"
    assert second.status_code == 409
    assert second.json()["alreadyExists"] is True


def test_ticket_flow_and_cross_tenant_assignment(client, headers_a, admin_b):
    created = client.post(
        f"{API}/tickets/",
        json={"title": "Wifi", "description": "Drops hourly", "category": "network"},
        headers=headers_a,
    )
    assert created.status_code == 201
    ticket = created.json()
    assert ticket["ticket_number"].startswith("TKT-")

    assign = client.post(f"{API}/tickets/{ticket['id']}/assign", json={"assignee_id": admin_b.id}, headers=headers_a)
    assert assign.status_code == 404
    assert assign.json()["detail"] == "User not found"

    comment = client.post(
        f"{API}/tickets/{ticket['id']}/comments",
        json={"content": "Rebooted the AP", "tenant_id": admin_b.tenant_id},
        headers=headers_a,
    )
    assert comment.status_code == 201
    assert comment.json()["tenant_id"] == headers_a["X-Tenant-ID"]

    activities = client.get(f"{API}/tickets/{ticket['id']}/activities", headers=headers_a).json()
    assert [a["activity_type"] for a in activities] == ["created", "commented"]


def test_exhausted_ticket_numbers_return_500(app, client, headers_a, session_factory, audit):
    def collide():
        return "TKT-000000-AAA"

    def service():
        db = session_factory()
        try:
            yield TicketService(db, audit, sequencer=TicketSequencer(generator=collide))
        finally:
            db.close()

    app.dependency_overrides[get_ticket_service] = service
    payload = {"title": "One", "description": "First", "category": "general"}
    assert client.post(f"{API}/tickets/", json=payload, headers=headers_a).status_code == 201

    response = client.post(f"{API}/tickets/", json=payload, headers=headers_a)

    assert response.status_code == 500
    assert response.json()["code"] == "ticket_creation_failed"


def test_store_timeout_returns_503(app, client, headers_a):
    class TimingOut:
        def list_assets(self, *args, **kwargs):
            raise StoreTimeout("Database statement timed out")

    app.dependency_overrides[get_asset_service] = lambda: TimingOut()

    response = client.get(f"{API}/assets/", headers=headers_a)

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["retryable"] is True


def test_audit_trail_endpoints(client, headers_a):
    client.post(f"{API}/assets/", json={"name": "Laptop", "type": "Hardware"}, headers=headers_a)

    page = client.get(f"{API}/audit-logs/", headers=headers_a).json()
    verify = client.get(f"{API}/audit-logs/verify", headers=headers_a).json()

    assert [item["action"] for item in page["items"]] == ["asset_create"]
    assert verify["ok"] is True
    assert verify["entries"] == 1


def test_dashboard_snapshot(client, headers_a):
    response = client.get(f"{API}/dashboard/", headers=headers_a)

    assert response.status_code == 200
    body = response.json()
    assert body["errors"] == {}
    assert body["asset_counts"]["total"] == 0


def test_preferences_default_then_saved(client, headers_a):
    assert client.get(f"{API}/settings/preferences", headers=headers_a).status_code == 200

    saved = client.patch(f"{API}/settings/preferences", json={"items_per_page": 50}, headers=headers_a)

    assert saved.status_code == 200
    assert saved.json()["items_per_page"] == 50


def test_login_after_signup(client):
    signup = {"organization_name": "Pied Piper", "email": "richard@piedpiper.test", "password": "middle-out"}
    client.post(f"{API}/auth/signup", json=signup)

    ok = client.post(
        f"{API}/auth/login",
        json={"organization": "pied-piper", "email": "Richard@piedpiper.test", "password": "middle-out"},
    )
    wrong = client.post(
        f"{API}/auth/login",
        json={"organization": "pied-piper", "email": "richard@piedpiper.test", "password": "hooli"},
    )
    unknown = client.post(
        f"{API}/auth/login",
        json={"organization": "hooli", "email": "richard@piedpiper.test", "password": "middle-out"},
    )

    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "richard@piedpiper.test"
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Invalid credentials", "code": "invalid_credentials"}
