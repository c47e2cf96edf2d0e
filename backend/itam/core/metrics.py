"""Prometheus metrics helpers for repository and service instrumentation."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


ticket_number_collisions_total = Counter(
    "ticket_number_collisions_total",
    "Ticket number collisions that triggered a regenerate",
)

ticket_creation_failures_total = Counter(
    "ticket_creation_failures_total",
    "Ticket creations that exhausted the numbering retry bound",
)

first_admin_claims_total = Counter(
    "first_admin_claims_total",
    "First administrator claim attempts",
    labelnames=("outcome",),
)

admin_lock_backfill_total = Counter(
    "admin_lock_backfill_total",
    "Per-tenant results of the admin lock backfill",
    labelnames=("outcome",),
)

bulk_import_rows_total = Counter(
    "bulk_import_rows_total",
    "Bulk import rows processed",
    labelnames=("mode", "status"),
)

audit_records_total = Counter(
    "audit_records_total",
    "Audit log entries written",
    labelnames=("action",),
)

audit_write_failures_total = Counter(
    "audit_write_failures_total",
    "Audit log writes that failed and were dropped",
)

store_errors_total = Counter(
    "store_errors_total",
    "Store errors translated for callers",
    labelnames=("kind",),
)

dashboard_section_duration_seconds = Histogram(
    "dashboard_section_duration_seconds",
    "Dashboard aggregation section duration in seconds",
    labelnames=("section",),
)

dashboard_section_failures_total = Counter(
    "dashboard_section_failures_total",
    "Dashboard aggregation sections that failed",
    labelnames=("section",),
)


def record_ticket_collision() -> None:
    ticket_number_collisions_total.inc()


def record_ticket_creation_failure() -> None:
    ticket_creation_failures_total.inc()


def record_first_admin_claim(outcome: str) -> None:
    first_admin_claims_total.labels(outcome=outcome).inc()


def record_backfill(outcome: str, count: int = 1) -> None:
    if count:
        admin_lock_backfill_total.labels(outcome=outcome).inc(count)


def record_import_rows(mode: str, status: str, count: int) -> None:
    if count:
        bulk_import_rows_total.labels(mode=mode, status=status).inc(count)


def record_audit(action: str) -> None:
    audit_records_total.labels(action=action).inc()


def record_audit_failure() -> None:
    audit_write_failures_total.inc()


def record_store_error(kind: str) -> None:
    store_errors_total.labels(kind=kind).inc()


def observe_section(section: str, seconds: float) -> None:
    dashboard_section_duration_seconds.labels(section=section).observe(seconds)


def record_section_failure(section: str) -> None:
    dashboard_section_failures_total.labels(section=section).inc()
