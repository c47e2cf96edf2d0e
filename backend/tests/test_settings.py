import pytest

from itam.core.context import ActorContext
from itam.core.exceptions import NotFoundOrForbidden, PermissionDenied
from itam.schemas.settings import MasterDataCreate, OrgSettingsUpdate, PreferencesUpdate
from itam.services.settings_service import SettingsService


@pytest.fixture
def service(db, audit):
    return SettingsService(db, audit)


@pytest.fixture
def technician(make_user, tenant_a):
    return ActorContext.for_user(make_user(tenant_a, "tech@acme.test"))


def test_org_settings_update_requires_admin(service, actor_a, technician):
    updated = service.update_org_settings(actor_a, OrgSettingsUpdate(currency="EUR", data_retention_days=90))

    assert updated.currency == "EUR"
    assert updated.data_retention_days == 90
    assert updated.slug == "acme-corp"
    with pytest.raises(PermissionDenied):
        service.update_org_settings(technician, OrgSettingsUpdate(currency="GBP"))


def test_preferences_default_until_saved(service, actor_a, technician):
    assert service.get_preferences(actor_a).items_per_page == 25

    service.update_preferences(actor_a, PreferencesUpdate(theme="dark", items_per_page=50))
    service.update_preferences(actor_a, PreferencesUpdate(items_per_page=100))

    saved = service.get_preferences(actor_a)
    assert (saved.theme, saved.items_per_page) == ("dark", 100)
    # Preferences belong to one user
    assert service.get_preferences(technician).theme == "light"


def test_master_data_is_tenant_scoped(service, actor_a, actor_b, technician):
    service.add_master_data(actor_a, MasterDataCreate(type="location", value=" HQ "))

    assert [entry.value for entry in service.list_master_data(actor_a, "location")] == ["HQ"]
    assert service.list_master_data(actor_b) == []
    with pytest.raises(PermissionDenied):
        service.add_master_data(technician, MasterDataCreate(type="vendor", value="Dell"))


def test_org_settings_update_of_vanished_tenant_is_not_found(service, actor_a, monkeypatch):
    monkeypatch.setattr(service.tenants, "update_settings", lambda tenant_id, **fields: None)

    with pytest.raises(NotFoundOrForbidden):
        service.update_org_settings(actor_a, OrgSettingsUpdate(currency="EUR"))
