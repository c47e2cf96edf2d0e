import os
from datetime import datetime, timedelta

# Settings refuse to load without a store URL; tests bind their own engines below
os.environ.setdefault("DATABASE_URL", "sqlite:///./itam-test.db")

import pytest

import itam.models  # noqa: F401  (registers every table on Base.metadata)
from itam.core.context import ActorContext
from itam.core.database import Base, create_db_engine, create_session_factory, transaction
from itam.models.tenant import Tenant
from itam.repositories.user_repository import UserRepository
from itam.services.audit_log import AuditLogger
from itam.services.onboarding import slugify


class FixedClock:
    """Deterministic stand-in for utcnow"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'itam.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 6, 1, 12, 0, 0))


@pytest.fixture
def audit(session_factory, clock):
    return AuditLogger(session_factory, clock=clock)


@pytest.fixture
def make_tenant(db):
    def _make(name: str) -> Tenant:
        with transaction(db):
            tenant = Tenant(name=name, slug=slugify(name))
            db.add(tenant)
        return tenant
    return _make


@pytest.fixture
def tenant_a(make_tenant):
    return make_tenant("Acme Corp")


@pytest.fixture
def tenant_b(make_tenant):
    return make_tenant("Globex")


@pytest.fixture
def make_user(db):
    def _make(tenant: Tenant, email: str, role: str = "technician", **fields):
        fields.setdefault("first_name", email.split("@")[0].title())
        return UserRepository(db).create_user(tenant.id, email=email, role=role, **fields)
    return _make


@pytest.fixture
def admin_a(make_user, tenant_a):
    return make_user(tenant_a, "admin@acme.test", role="admin")


@pytest.fixture
def admin_b(make_user, tenant_b):
    return make_user(tenant_b, "admin@globex.test", role="admin")


@pytest.fixture
def actor_a(admin_a) -> ActorContext:
    return ActorContext.for_user(admin_a)


@pytest.fixture
def actor_b(admin_b) -> ActorContext:
    return ActorContext.for_user(admin_b)
