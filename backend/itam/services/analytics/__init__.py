"""
Analytics services module
"""
from itam.services.analytics.metrics_aggregator import MetricsAggregator
from itam.services.analytics.asset_analytics import AssetAnalytics
from itam.services.analytics.license_analytics import LicenseAnalytics
from itam.services.analytics.ticket_analytics import TicketAnalytics
from itam.services.analytics.activity_analytics import ActivityAnalytics

__all__ = [
    "MetricsAggregator",
    "AssetAnalytics",
    "LicenseAnalytics",
    "TicketAnalytics",
    "ActivityAnalytics",
]
