"""
Asset analytics - inventory counts, warranty windows, idle stock and asset age
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from itam.models.asset import ASSET_STATUSES, ASSET_TYPES, Asset
from itam.core.logging import get_logger

logger = get_logger(__name__)

AGING_YEARS = 3
OLD_YEARS = 5
DAYS_PER_YEAR = 365.25


class AssetAnalytics:
    """Read-only aggregations over a tenant's assets"""

    def get_asset_counts(self, db: Session, tenant_id: str) -> Dict[str, Any]:
        """Totals per type, each broken down by status"""
        rows = db.query(
            Asset.type,
            Asset.status,
            func.count(Asset.id).label("count"),
        ).filter(
            Asset.tenant_id == tenant_id
        ).group_by(
            Asset.type, Asset.status
        ).all()

        by_type = {
            asset_type: {"total": 0, "by_status": {status: 0 for status in ASSET_STATUSES}}
            for asset_type in ASSET_TYPES
        }
        by_status = {status: 0 for status in ASSET_STATUSES}
        total = 0
        for asset_type, status, count in rows:
            bucket = by_type.setdefault(asset_type, {"total": 0, "by_status": {}})
            bucket["total"] += count
            bucket["by_status"][status] = bucket["by_status"].get(status, 0) + count
            by_status[status] = by_status.get(status, 0) + count
            total += count

        return {"total": total, "by_type": by_type, "by_status": by_status}

    def get_warranty_status(self, db: Session, tenant_id: str, now: datetime, window_days: int) -> Dict[str, Any]:
        """Hardware warranty and AMC dates expiring inside the window vs. already expired"""
        today = now.date()
        assets = db.query(Asset).filter(
            Asset.tenant_id == tenant_id,
            Asset.type == "Hardware",
            or_(Asset.warranty_expiry.isnot(None), Asset.amc_expiry.isnot(None)),
        ).all()

        expiring: List[Dict[str, Any]] = []
        expired: List[Dict[str, Any]] = []
        for asset in assets:
            for kind, expiry in (("warranty", asset.warranty_expiry), ("amc", asset.amc_expiry)):
                if expiry is None:
                    continue
                days_remaining = (expiry - today).days
                item = {
                    "id": asset.id,
                    "name": asset.name,
                    "kind": kind,
                    "expiry": expiry.isoformat(),
                    "days_remaining": days_remaining,
                }
                if days_remaining < 0:
                    expired.append(item)
                elif days_remaining <= window_days:
                    expiring.append(item)

        expiring.sort(key=lambda item: item["days_remaining"])
        expired.sort(key=lambda item: item["days_remaining"], reverse=True)
        return {
            "window_days": window_days,
            "expiring_count": len(expiring),
            "expired_count": len(expired),
            "expiring": expiring,
            "expired": expired,
        }

    def get_unused_hardware(self, db: Session, tenant_id: str) -> Dict[str, Any]:
        assets = db.query(Asset).filter(
            Asset.tenant_id == tenant_id,
            Asset.type == "Hardware",
            Asset.status == "in-stock",
        ).order_by(Asset.name).all()
        return {
            "count": len(assets),
            "items": [
                {"id": a.id, "name": a.name, "category": a.category, "location": a.location}
                for a in assets
            ],
        }

    def get_asset_age(self, db: Session, tenant_id: str, now: datetime) -> Dict[str, Any]:
        """
        Age buckets for physical assets (software is excluded).

        new: under 3 years, aging: 3 to 5 years, old: 5 years and over.
        Replacement cost is the summed purchase cost of the aging and old buckets.
        """
        today = now.date()
        assets = db.query(Asset).filter(
            Asset.tenant_id == tenant_id,
            Asset.type != "Software",
        ).all()

        buckets = {"new": 0, "aging": 0, "old": 0, "unknown": 0}
        replacement_costs = {"aging": 0.0, "old": 0.0}
        ages: List[float] = []
        old_assets: List[Dict[str, Any]] = []

        for asset in assets:
            if asset.purchase_date is None:
                buckets["unknown"] += 1
                continue
            age = (today - asset.purchase_date).days / DAYS_PER_YEAR
            ages.append(age)
            cost = float(asset.purchase_cost or 0)
            if age >= OLD_YEARS:
                buckets["old"] += 1
                replacement_costs["old"] += cost
                old_assets.append({"id": asset.id, "name": asset.name, "age_years": round(age, 1)})
            elif age >= AGING_YEARS:
                buckets["aging"] += 1
                replacement_costs["aging"] += cost
            else:
                buckets["new"] += 1

        average_age: Optional[float] = round(sum(ages) / len(ages), 1) if ages else None
        old_assets.sort(key=lambda item: item["age_years"], reverse=True)
        return {
            "buckets": buckets,
            "replacement_costs": {key: round(value, 2) for key, value in replacement_costs.items()},
            "average_age_years": average_age,
            "oldest": old_assets[:5],
        }
