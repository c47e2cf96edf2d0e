import threading

from itam.models.admin_lock import TenantAdminLock
from itam.models.tenant import Tenant
from itam.models.user import User
from itam.services.first_admin_lock import FirstAdminLock
from itam.services.onboarding import ALREADY_EXISTS_MESSAGE, OnboardingService


def _super_admins(db, tenant_id):
    return db.query(User).filter(User.tenant_id == tenant_id, User.role == "super-admin").all()


def test_first_claim_creates_super_admin(db, tenant_a, clock):
    result = FirstAdminLock(db, clock=clock).create_first_admin(tenant_a.id, " Owner@Acme.test ", first_name="Olive")

    assert result.success is True
    assert result.already_exists is False
    assert result.user.role == "super-admin"
    assert result.user.email == "owner@acme.test"
    assert result.user.employee_id == 1001
    assert db.query(TenantAdminLock).filter(TenantAdminLock.tenant_id == tenant_a.id).count() == 1


def test_second_claim_reports_already_exists(db, tenant_a):
    lock = FirstAdminLock(db)
    lock.create_first_admin(tenant_a.id, "first@acme.test")

    result = lock.create_first_admin(tenant_a.id, "second@acme.test")

    assert result.success is False
    assert result.already_exists is True
    assert result.user is None
    assert [u.email for u in _super_admins(db, tenant_a.id)] == ["first@acme.test"]
    # The losing claim left no user behind
    assert db.query(User).filter(User.email == "second@acme.test").count() == 0


def test_role_in_profile_is_ignored(db, tenant_a):
    result = FirstAdminLock(db).create_first_admin(tenant_a.id, "boss@acme.test", role="technician")

    assert result.user.role == "super-admin"


def test_locks_are_per_tenant(db, tenant_a, tenant_b):
    lock = FirstAdminLock(db)

    assert lock.create_first_admin(tenant_a.id, "a@acme.test").success
    assert lock.create_first_admin(tenant_b.id, "b@globex.test").success


def test_concurrent_claims_yield_exactly_one_super_admin(session_factory, tenant_a):
    contenders = 6
    barrier = threading.Barrier(contenders)
    results = []
    errors = []
    guard = threading.Lock()

    def claim(index):
        session = session_factory()
        try:
            barrier.wait()
            result = FirstAdminLock(session).create_first_admin(tenant_a.id, f"admin{index}@acme.test")
            with guard:
                results.append(result)
        except Exception as exc:
            with guard:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=claim, args=(i,)) for i in range(contenders)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sum(1 for r in results if r.success) == 1
    assert sum(1 for r in results if r.already_exists) == contenders - 1

    with session_factory() as db:
        assert len(_super_admins(db, tenant_a.id)) == 1
        assert db.query(User).filter(User.tenant_id == tenant_a.id).count() == 1


def test_backfill_locks_existing_tenants_and_is_idempotent(db, tenant_a, tenant_b, make_tenant, make_user):
    make_user(tenant_a, "legacy@acme.test", role="admin")
    make_user(tenant_b, "legacy@globex.test", role="admin")
    make_tenant("Empty Org")
    lock = FirstAdminLock(db)

    first = lock.backfill()
    second = lock.backfill()

    assert first.to_dict() == {"created": 2, "already_locked": 0, "failed": 0, "failed_tenants": []}
    assert second.to_dict() == {"created": 0, "already_locked": 2, "failed": 0, "failed_tenants": []}
    assert db.query(TenantAdminLock).count() == 2


def test_backfilled_tenant_rejects_new_first_admin(db, tenant_a, make_user):
    make_user(tenant_a, "legacy@acme.test", role="admin")
    lock = FirstAdminLock(db)
    lock.backfill()

    result = lock.create_first_admin(tenant_a.id, "intruder@acme.test")

    assert result.already_exists is True


def test_signup_twice_for_same_organization(db, audit, clock):
    onboarding = OnboardingService(db, audit, clock=clock)

    first = onboarding.register("Initech", "bill@initech.test", "hash-1", first_name="Bill")
    second = onboarding.register("  initech ", "peter@initech.test", "hash-2")

    assert first.success is True
    assert first.user.role == "super-admin"
    assert second.success is False
    assert second.already_exists is True
    assert second.message == ALREADY_EXISTS_MESSAGE
    assert second.tenant.id == first.tenant.id
    assert db.query(Tenant).filter(Tenant.slug == "initech").count() == 1
    assert len(_super_admins(db, first.tenant.id)) == 1


def test_signup_writes_audit_entries(db, audit, clock):
    result = OnboardingService(db, audit, clock=clock).register("Hooli", "gavin@hooli.test", "hash")

    actions = [entry.action for entry in audit.query(result.tenant.id).items]
    assert actions == ["signup", "tenant_create"]
