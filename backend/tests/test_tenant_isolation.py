import pytest

from itam.core.exceptions import NotFoundOrForbidden, TenantIsolationViolation
from itam.models.asset import Asset
from itam.repositories.asset_repository import AssetRepository, LicenseRepository
from itam.repositories.ticket_repository import TicketRepository
from itam.repositories.user_repository import UserRepository
from itam.schemas.asset import AssetCreate, AssetUpdate, LicenseCreate
from itam.schemas.ticket import TicketCreate
from itam.services.asset_service import AssetService, LicenseService
from itam.services.ticket_service import TicketService
from itam.services.user_service import UserService


@pytest.fixture
def laptop(db, tenant_a):
    return AssetRepository(db).create(tenant_a.id, name="ThinkPad X1", type="Hardware", status="deployed")


def test_get_by_foreign_tenant_returns_none(db, tenant_a, tenant_b, laptop):
    assets = AssetRepository(db)

    assert assets.get(tenant_a.id, laptop.id) is not None
    assert assets.get(tenant_b.id, laptop.id) is None
    assert assets.get(tenant_b.id, "does-not-exist") is None


def test_foreign_and_missing_rows_raise_the_same_error(db, tenant_b, laptop):
    assets = AssetRepository(db)

    with pytest.raises(NotFoundOrForbidden) as foreign:
        assets.get_or_raise(tenant_b.id, laptop.id)
    with pytest.raises(NotFoundOrForbidden) as missing:
        assets.get_or_raise(tenant_b.id, "does-not-exist")

    assert str(foreign.value) == str(missing.value) == "Asset not found"


def test_list_and_count_only_see_own_tenant(db, tenant_a, tenant_b, laptop):
    assets = AssetRepository(db)
    assets.create(tenant_b.id, name="Globex Monitor", type="Peripherals", status="in-stock")

    assert [a.name for a in assets.list(tenant_a.id)] == ["ThinkPad X1"]
    assert [a.name for a in assets.list(tenant_b.id)] == ["Globex Monitor"]
    assert assets.count(tenant_a.id) == 1


def test_foreign_update_and_delete_are_noops(db, tenant_a, tenant_b, laptop):
    assets = AssetRepository(db)

    assert assets.update(tenant_b.id, laptop.id, name="Hijacked") is None
    assert assets.delete(tenant_b.id, laptop.id) is False

    db.expire_all()
    stored = db.query(Asset).filter(Asset.id == laptop.id).one()
    assert stored.name == "ThinkPad X1"


def test_update_cannot_move_row_to_another_tenant(db, tenant_a, tenant_b, laptop):
    updated = AssetRepository(db).update(tenant_a.id, laptop.id, tenant_id=tenant_b.id, name="Renamed")

    assert updated.tenant_id == tenant_a.id
    assert updated.name == "Renamed"


def test_create_ignores_tenant_in_payload(db, tenant_a, tenant_b):
    asset = AssetRepository(db).create(tenant_a.id, tenant_id=tenant_b.id, name="Dock", type="Peripherals")

    assert asset.tenant_id == tenant_a.id


def test_distinct_values_are_tenant_scoped(db, tenant_a, tenant_b):
    assets = AssetRepository(db)
    assets.create(tenant_a.id, name="A", type="Hardware", category="Laptop")
    assets.create(tenant_b.id, name="B", type="Hardware", category="Server")

    assert assets.distinct_values(tenant_a.id, "category") == ["Laptop"]


def test_license_isolation(db, tenant_a, tenant_b):
    licenses = LicenseRepository(db)
    office = licenses.create(tenant_a.id, name="Office 365", total_licenses=10, used_licenses=3)

    assert licenses.get(tenant_b.id, office.id) is None
    assert licenses.list(tenant_b.id) == []


def test_user_lookup_by_email_is_tenant_scoped(db, tenant_a, tenant_b, make_user):
    make_user(tenant_a, "shared@example.com")
    users = UserRepository(db)

    assert users.get_by_email(tenant_a.id, "Shared@Example.com") is not None
    assert users.get_by_email(tenant_b.id, "shared@example.com") is None


def test_same_email_may_exist_in_two_tenants(tenant_a, tenant_b, make_user):
    first = make_user(tenant_a, "ops@example.com")
    second = make_user(tenant_b, "ops@example.com")

    assert first.id != second.id
    # Employee ids are sequential per tenant
    assert first.employee_id == second.employee_id == 1001


def test_ticket_isolation(db, tenant_a, tenant_b, actor_a):
    tickets = TicketRepository(db)
    ticket = tickets.create(tenant_a.id, actor_a, title="VPN down", description="No tunnel", category="network")

    assert tickets.get(tenant_b.id, ticket.id) is None
    with pytest.raises(NotFoundOrForbidden):
        tickets.list_comments(tenant_b.id, ticket.id)
    with pytest.raises(NotFoundOrForbidden):
        tickets.list_activities(tenant_b.id, ticket.id)


def test_ticket_cannot_reference_foreign_asset(db, tenant_b, laptop, actor_b, audit):
    service = TicketService(db, audit)
    payload = TicketCreate(title="Broken", description="Screen", category="hardware", asset_id=laptop.id)

    with pytest.raises(TenantIsolationViolation):
        service.create_ticket(actor_b, payload)


def test_services_hide_foreign_rows(db, audit, laptop, actor_b):
    assets = AssetService(db, audit)

    with pytest.raises(NotFoundOrForbidden):
        assets.get_asset(actor_b, laptop.id)
    with pytest.raises(NotFoundOrForbidden):
        assets.update_asset(actor_b, laptop.id, AssetUpdate(name="Mine now"))
    with pytest.raises(NotFoundOrForbidden):
        assets.delete_asset(actor_b, laptop.id)


def test_asset_cannot_be_assigned_to_foreign_user(db, audit, admin_b, actor_a):
    service = AssetService(db, audit)
    payload = AssetCreate(name="Phone", type="Hardware", assigned_user_id=admin_b.id)

    with pytest.raises(TenantIsolationViolation):
        service.create_asset(actor_a, payload)


def test_user_service_hides_foreign_users(db, audit, admin_b, actor_a):
    with pytest.raises(NotFoundOrForbidden):
        UserService(db, audit).get_user(actor_a, admin_b.id)


def test_license_service_scoped(db, audit, actor_a, actor_b):
    service = LicenseService(db, audit)
    created = service.create_license(actor_a, LicenseCreate(name="Zoom", total_licenses=5))

    with pytest.raises(NotFoundOrForbidden):
        service.get_license(actor_b, created.id)
    assert service.list_licenses(actor_b) == []
