"""
License analytics - seat utilization, renewals and unused seats
"""
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from itam.models.asset import Asset, SoftwareLicense


def _utilization(used: int, total: int) -> float:
    if not total:
        return 0.0
    return round(used / total * 100, 1)


class LicenseAnalytics:
    """Read-only aggregations over a tenant's licenses and software assets"""

    def get_license_overview(self, db: Session, tenant_id: str, now: datetime, window_days: int) -> Dict[str, Any]:
        today = now.date()
        licenses = db.query(SoftwareLicense).filter(
            SoftwareLicense.tenant_id == tenant_id
        ).order_by(SoftwareLicense.name).all()

        items = []
        total_seats = 0
        used_seats = 0
        renewals = []
        for license in licenses:
            total = license.total_licenses or 0
            used = license.used_licenses or 0
            total_seats += total
            used_seats += used
            items.append({
                "id": license.id,
                "name": license.name,
                "vendor": license.vendor,
                "used": used,
                "total": total,
                "utilization": _utilization(used, total),
                # Advisory only: writes are never rejected for over-allocation
                "over_allocated": used > total,
            })
            if license.renewal_date is not None:
                renewals.append(("license", license.id, license.name, license.renewal_date))

        software = db.query(Asset).filter(
            Asset.tenant_id == tenant_id,
            Asset.type == "Software",
            Asset.renewal_date.isnot(None),
        ).all()
        for asset in software:
            renewals.append(("software_asset", asset.id, asset.software_name or asset.name, asset.renewal_date))

        expiring: List[Dict[str, Any]] = []
        expired: List[Dict[str, Any]] = []
        for source, item_id, name, renewal_date in renewals:
            days_remaining = (renewal_date - today).days
            entry = {
                "source": source,
                "id": item_id,
                "name": name,
                "renewal_date": renewal_date.isoformat(),
                "days_remaining": days_remaining,
            }
            if days_remaining < 0:
                expired.append(entry)
            elif days_remaining <= window_days:
                expiring.append(entry)
        expiring.sort(key=lambda entry: entry["days_remaining"])

        return {
            "total_seats": total_seats,
            "used_seats": used_seats,
            "utilization": _utilization(used_seats, total_seats),
            "over_allocated_count": sum(1 for item in items if item["over_allocated"]),
            "items": items,
            "renewals": {
                "window_days": window_days,
                "expiring_count": len(expiring),
                "expired_count": len(expired),
                "expiring": expiring,
                "expired": expired,
            },
        }

    def get_unused_licenses(self, db: Session, tenant_id: str) -> Dict[str, Any]:
        licenses = db.query(SoftwareLicense).filter(
            SoftwareLicense.tenant_id == tenant_id,
            SoftwareLicense.used_licenses < SoftwareLicense.total_licenses,
        ).order_by(SoftwareLicense.name).all()
        items = [
            {
                "id": license.id,
                "name": license.name,
                "unused": license.total_licenses - license.used_licenses,
                "wasted_cost": round((license.total_licenses - license.used_licenses) * float(license.cost_per_license or 0), 2),
            }
            for license in licenses
        ]
        return {"count": len(items), "unused_seats": sum(item["unused"] for item in items), "items": items}
