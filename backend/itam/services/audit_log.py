"""
Append-only audit trail with redacted snapshots and per-tenant hash chaining.

Writes go through a dedicated session after the business transaction has
committed, so a failing audit write can never undo the change it describes.
``AuditLogger.record`` never raises.
"""
from __future__ import annotations

import enum
import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.config import settings
from itam.core.context import ActorContext
from itam.core.database import transaction
from itam.core.exceptions import UniqueConstraintConflict
from itam.core.logging import get_logger
from itam.core.metrics import record_audit, record_audit_failure
from itam.models.audit import AuditLog
from itam.repositories.audit_repository import AuditRepository
from itam.schemas.audit import AuditEntry, AuditPage, AuditQuery, ChainVerification

logger = get_logger(__name__)

SENSITIVE_KEYS = ("password", "token", "secret", "key", "authorization")
REDACTED = "[REDACTED]"
CHAIN_CONSTRAINT = "uq_audit_logs_tenant_sequence"
CHAIN_COLUMN = "audit_logs.sequence"


class AuditActions:
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    SIGNUP = "signup"
    TENANT_CREATE = "tenant_create"
    ORG_SETTINGS_UPDATE = "org_settings_update"
    USER_CREATE = "user_create"
    USER_ROLE_UPDATE = "user_role_update"
    USER_DEACTIVATE = "user_deactivate"
    USER_ACTIVATE = "user_activate"
    USER_INVITE = "user_invite"
    USER_INVITE_ACCEPT = "user_invite_accept"
    USER_PREFERENCES_UPDATE = "user_preferences_update"
    ASSET_CREATE = "asset_create"
    ASSET_UPDATE = "asset_update"
    ASSET_DELETE = "asset_delete"
    ASSET_BULK_IMPORT = "asset_bulk_import"
    LICENSE_CREATE = "license_create"
    LICENSE_UPDATE = "license_update"
    LICENSE_DELETE = "license_delete"
    TICKET_CREATE = "ticket_create"
    TICKET_UPDATE = "ticket_update"
    TICKET_DELETE = "ticket_delete"
    TICKET_ASSIGN = "ticket_assign"
    TICKET_STATUS_CHANGE = "ticket_status_change"
    TICKET_COMMENT_ADD = "ticket_comment_add"
    MASTER_DATA_CREATE = "master_data_create"
    ADMIN_LOCK_BACKFILL = "admin_lock_backfill"


class ResourceTypes:
    USER = "user"
    ASSET = "asset"
    LICENSE = "software_license"
    TICKET = "ticket"
    COMMENT = "comment"
    INVITATION = "invitation"
    TENANT = "tenant"
    PREFERENCES = "preferences"
    SETTINGS = "settings"
    MASTER_DATA = "master_data"
    SYSTEM = "system"


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def redact(value: Any) -> Any:
    """Replace values under sensitive keys, at any depth, with a marker."""
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_sensitive(key) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


def to_json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def snapshot(instance: Any) -> Optional[Dict[str, Any]]:
    """Column values of an ORM row (or a plain mapping) as JSON-safe data."""
    if instance is None:
        return None
    if isinstance(instance, dict):
        return to_json_safe(instance)
    mapper = inspect(instance).mapper
    return to_json_safe({attr.key: getattr(instance, attr.key) for attr in mapper.column_attrs})


def compute_hash(prev_hash: str, body: str) -> str:
    sha = hashlib.sha256()
    sha.update(prev_hash.encode())
    sha.update(body.encode())
    return sha.hexdigest()


def canonical_body(entry: Any) -> str:
    """Serialized fields covered by an entry's hash"""
    get = entry.get if isinstance(entry, dict) else lambda name: getattr(entry, name)
    created_at = get("created_at")
    body = {
        "tenant_id": get("tenant_id"),
        "sequence": get("sequence"),
        "action": get("action"),
        "resource_type": get("resource_type"),
        "resource_id": get("resource_id"),
        "user_id": get("user_id"),
        "user_email": get("user_email"),
        "user_role": get("user_role"),
        "ip_address": get("ip_address"),
        "user_agent": get("user_agent"),
        "before_state": get("before_state"),
        "after_state": get("after_state"),
        "description": get("description"),
        "created_at": created_at.isoformat() if created_at else None,
    }
    return json.dumps(body, sort_keys=True, separators=(",", ":"), default=str)


class AuditLogger:
    """Best-effort writer and reader of the audit trail."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock = utcnow,
        max_attempts: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.max_attempts = max_attempts or settings.AUDIT_CHAIN_MAX_ATTEMPTS

    def record(
        self,
        actor: ActorContext,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        before: Any = None,
        after: Any = None,
        description: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """Append an entry; failures are logged and counted, never raised."""
        try:
            entry = self._append(actor, action, resource_type, resource_id, before, after, description)
        except Exception:
            record_audit_failure()
            logger.exception(f"Failed to record audit event {action} for tenant {actor.tenant_id}")
            return None
        record_audit(action)
        return entry

    def _append(
        self,
        actor: ActorContext,
        action: str,
        resource_type: str,
        resource_id: Optional[str],
        before: Any,
        after: Any,
        description: Optional[str],
    ) -> AuditLog:
        fields = {
            "tenant_id": actor.tenant_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": str(resource_id) if resource_id is not None else None,
            "user_id": actor.user_id,
            "user_email": actor.email,
            "user_role": actor.role,
            "ip_address": actor.ip_address,
            "user_agent": actor.user_agent,
            "before_state": redact(snapshot(before)),
            "after_state": redact(snapshot(after)),
            "description": description,
        }

        with self.session_factory() as db:
            repository = AuditRepository(db)
            attempt = 1
            while True:
                try:
                    with transaction(db):
                        tip = repository.tip(actor.tenant_id)
                        fields["prev_hash"] = tip.hash if tip else ""
                        fields["sequence"] = tip.sequence + 1 if tip else 1
                        fields["created_at"] = self.clock()
                        fields["hash"] = compute_hash(fields["prev_hash"], canonical_body(fields))
                        entry = repository.append(**fields)
                    return entry
                except UniqueConstraintConflict as exc:
                    if attempt >= self.max_attempts or not exc.involves(CHAIN_CONSTRAINT, CHAIN_COLUMN):
                        raise
                    logger.debug(f"Audit chain append raced for tenant {actor.tenant_id}; retrying")
                    attempt += 1

    def query(
        self,
        tenant_id: str,
        filters: Optional[AuditQuery] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> AuditPage:
        """Newest-first page of a tenant's audit entries"""
        page = max(page, 1)
        page_size = min(max(page_size, 1), settings.AUDIT_QUERY_MAX_PAGE_SIZE)
        with self.session_factory() as db:
            items, total = AuditRepository(db).page(tenant_id, filters or AuditQuery(), page, page_size)
            return AuditPage(
                items=[AuditEntry.model_validate(item) for item in items],
                total=total,
                page=page,
                page_size=page_size,
            )

    def verify_chain(self, tenant_id: str) -> ChainVerification:
        """Recompute every hash in the tenant's chain and report the first broken link"""
        prev_hash = ""
        expected = 1
        with self.session_factory() as db:
            for entry in AuditRepository(db).chain(tenant_id):
                reason = None
                if entry.sequence != expected:
                    reason = f"expected sequence {expected}"
                elif entry.prev_hash != prev_hash:
                    reason = "previous hash does not match"
                elif compute_hash(prev_hash, canonical_body(entry)) != entry.hash:
                    reason = "content hash does not match"
                if reason:
                    logger.warning(f"Audit chain for tenant {tenant_id} broken at {entry.sequence}: {reason}")
                    return ChainVerification(
                        tenant_id=tenant_id,
                        ok=False,
                        entries=expected - 1,
                        broken_at=entry.sequence,
                        reason=reason,
                    )
                prev_hash = entry.hash
                expected += 1
        return ChainVerification(tenant_id=tenant_id, ok=True, entries=expected - 1)
