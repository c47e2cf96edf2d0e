"""
Role hierarchy, legacy role normalization and assignment rules.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from itam.core.exceptions import ValidationFailed


class Role(str, Enum):
    TECHNICIAN = "technician"
    IT_MANAGER = "it-manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __str__(self) -> str:
        return self.value


_RANK = {
    Role.TECHNICIAN: 1,
    Role.IT_MANAGER: 2,
    Role.ADMIN: 3,
    Role.SUPER_ADMIN: 4,
}

# Names still present in older rows and clients
_LEGACY_ALIASES = {
    "read-only": Role.TECHNICIAN,
    "employee": Role.TECHNICIAN,
    "manager": Role.IT_MANAGER,
}

_ASSIGNABLE = {
    Role.SUPER_ADMIN: (Role.ADMIN, Role.IT_MANAGER, Role.TECHNICIAN),
    Role.ADMIN: (Role.IT_MANAGER, Role.TECHNICIAN),
}


def normalize_role(value: Optional[str]) -> Role:
    """Map a stored or submitted role name onto the canonical hierarchy."""
    if isinstance(value, Role):
        return value
    key = (value or "").strip().lower()
    if key in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[key]
    try:
        return Role(key)
    except ValueError:
        raise ValidationFailed.single("role", "invalid_choice", f"Unknown role: {value!r}")


def check_permission(user_role: str, required_role: str) -> bool:
    """Whether user_role meets or exceeds required_role."""
    return normalize_role(user_role).rank >= normalize_role(required_role).rank


def assignable_roles(actor_role: str) -> List[Role]:
    return list(_ASSIGNABLE.get(normalize_role(actor_role), ()))


def can_assign_role(actor_role: str, target_role: str) -> bool:
    """super-admin grants admin and below, admin grants it-manager and below, others grant nothing.

    super-admin itself is never grantable; it is only claimed through the first-admin lock.
    """
    return normalize_role(target_role) in assignable_roles(actor_role)
