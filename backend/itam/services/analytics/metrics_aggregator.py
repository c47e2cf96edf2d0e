"""
Dashboard metrics aggregator - orchestrates the analytics services
"""
import asyncio
import time
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.config import settings
from itam.core.logging import get_logger
from itam.core.metrics import observe_section, record_section_failure
from itam.core.tracing import tracing_span
from itam.services.analytics.activity_analytics import ActivityAnalytics
from itam.services.analytics.asset_analytics import AssetAnalytics
from itam.services.analytics.license_analytics import LicenseAnalytics
from itam.services.analytics.ticket_analytics import TicketAnalytics

logger = get_logger(__name__)

SECTIONS = ("asset_counts", "warranty", "licenses", "tickets", "unused", "asset_age", "recent_activity")


class MetricsAggregator:
    """
    Builds the dashboard snapshot for one tenant.

    Each section runs on a worker thread with its own session, so sections are
    independent reads rather than one consistent snapshot. A failing section
    comes back as None with an entry under "errors"; the others still return.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock = utcnow,
        window_days: Optional[int] = None,
        recent_limit: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.window_days = window_days or settings.EXPIRY_WINDOW_DAYS
        self.recent_limit = recent_limit or settings.RECENT_ACTIVITY_LIMIT
        self.assets = AssetAnalytics()
        self.licenses = LicenseAnalytics()
        self.tickets = TicketAnalytics()
        self.activity = ActivityAnalytics()

    async def snapshot(self, tenant_id: str) -> Dict[str, Any]:
        now = self.clock()
        sections: Dict[str, Callable[[Session], Any]] = {
            "asset_counts": lambda db: self.assets.get_asset_counts(db, tenant_id),
            "warranty": lambda db: self.assets.get_warranty_status(db, tenant_id, now, self.window_days),
            "licenses": lambda db: self.licenses.get_license_overview(db, tenant_id, now, self.window_days),
            "tickets": lambda db: self.tickets.get_ticket_funnel(db, tenant_id),
            "unused": lambda db: {
                "hardware": self.assets.get_unused_hardware(db, tenant_id),
                "licenses": self.licenses.get_unused_licenses(db, tenant_id),
            },
            "asset_age": lambda db: self.assets.get_asset_age(db, tenant_id, now),
            "recent_activity": lambda db: self.activity.get_recent_activity(db, tenant_id, now, self.recent_limit),
        }

        with tracing_span("dashboard.snapshot", {"tenant_id": tenant_id}):
            results = await asyncio.gather(*(
                asyncio.to_thread(self._run_section, name, compute)
                for name, compute in sections.items()
            ))

        snapshot: Dict[str, Any] = {
            "tenant_id": tenant_id,
            "generated_at": now.isoformat(),
            "errors": {},
        }
        for name, (value, error) in zip(sections, results):
            snapshot[name] = value
            if error:
                snapshot["errors"][name] = error
        return snapshot

    def _run_section(self, name: str, compute: Callable[[Session], Any]) -> Tuple[Any, Optional[str]]:
        started = time.perf_counter()
        try:
            with self.session_factory() as db:
                return compute(db), None
        except Exception as e:
            record_section_failure(name)
            logger.error(f"Dashboard section {name} failed: {e}", exc_info=True)
            return None, f"{name} is temporarily unavailable"
        finally:
            observe_section(name, time.perf_counter() - started)
