"""
Identity of the caller, threaded through repositories, services and the audit trail
"""
from dataclasses import dataclass
from typing import Optional

SYSTEM_USER_ID = "system"
SYSTEM_EMAIL = "system@internal"
SYSTEM_ROLE = "system"
AUTH_ATTEMPT_USER_ID = "auth_attempt"
AUTH_ATTEMPT_ROLE = "unauthenticated"
UNKNOWN_TENANT = "unknown"


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, for which tenant, and from where."""
    tenant_id: str
    user_id: str
    email: str
    role: str
    name: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @classmethod
    def system(cls, tenant_id: str) -> "ActorContext":
        """Actor for background and maintenance jobs"""
        return cls(
            tenant_id=tenant_id,
            user_id=SYSTEM_USER_ID,
            email=SYSTEM_EMAIL,
            role=SYSTEM_ROLE,
            name="System",
            user_agent="system",
        )

    @classmethod
    def auth_attempt(
        cls,
        email: str,
        tenant_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> "ActorContext":
        """Actor for login attempts made before the caller is authenticated"""
        return cls(
            tenant_id=tenant_id or UNKNOWN_TENANT,
            user_id=AUTH_ATTEMPT_USER_ID,
            email=(email or "").strip().lower(),
            role=AUTH_ATTEMPT_ROLE,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @classmethod
    def for_user(cls, user, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> "ActorContext":
        return cls(
            tenant_id=user.tenant_id,
            user_id=user.id,
            email=user.email,
            role=user.role,
            name=user.full_name,
            ip_address=ip_address,
            user_agent=user_agent,
        )
