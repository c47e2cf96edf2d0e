"""
Error taxonomy shared by repositories, services and the HTTP layer
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class FieldIssue:
    """A single structured validation problem."""
    field: str
    code: str
    message: str
    row: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.row is None:
            data.pop("row")
        return data


class ITAMError(Exception):
    """Base class for all registry errors"""

    code = "error"
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class NotFoundOrForbidden(ITAMError):
    """The row does not exist or belongs to another tenant."""

    code = "not_found"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")
        self.resource = resource


class TenantIsolationViolation(NotFoundOrForbidden):
    """A referenced row resolved outside the caller's tenant.

    Presented to callers exactly like a plain not-found.
    """


class UniqueConstraintConflict(ITAMError):
    """A write hit a uniqueness constraint."""

    code = "conflict"

    def __init__(
        self,
        constraint: Optional[str] = None,
        columns: Sequence[str] = (),
        detail: str = "",
    ):
        super().__init__(detail or f"Unique constraint violated: {constraint or ', '.join(columns)}")
        self.constraint = constraint
        self.columns: Tuple[str, ...] = tuple(columns)

    def involves(self, constraint: Optional[str] = None, column: Optional[str] = None) -> bool:
        """Whether this conflict came from the named constraint or qualified column."""
        if constraint and self.constraint == constraint:
            return True
        if column and column in self.columns:
            return True
        return False


class RetryExhausted(ITAMError):
    """A bounded retry loop ran out of attempts."""

    def __init__(self, code: str, attempts: int, message: Optional[str] = None):
        super().__init__(message or f"Gave up after {attempts} attempts")
        self.code = code
        self.attempts = attempts


class ValidationFailed(ITAMError):
    """Input was rejected; always carries the full list of issues."""

    code = "validation_failed"

    def __init__(self, issues: List[FieldIssue], message: str = "Validation failed"):
        super().__init__(message)
        self.issues = list(issues)

    @classmethod
    def single(cls, field: str, code: str, message: str) -> "ValidationFailed":
        return cls([FieldIssue(field=field, code=code, message=message)], message)


class AuthenticationFailed(ITAMError):
    """Credentials were rejected; the reason is never disclosed."""

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class PermissionDenied(ITAMError):
    """The actor's role does not allow the operation."""

    code = "permission_denied"


class DependencyUnavailable(ITAMError):
    """The store is unreachable or the connection pool is exhausted."""

    code = "dependency_unavailable"
    retryable = True


class StoreTimeout(DependencyUnavailable):
    """A statement exceeded the store's configured timeout."""

    code = "store_timeout"
