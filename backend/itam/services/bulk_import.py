"""
Bulk asset import from CSV rows.

Every row is validated on its own into a ``ValidRow`` or an ``InvalidRow``;
nothing short-circuits. The mode then decides what gets written:

- ``validateOnly``: report only, no writes
- ``partial``: insert the valid rows in one transaction
- ``atomic``: insert everything in one transaction, or nothing if any row is invalid

Invalid rows are reported, never raised. Only batch-level problems (file too
large, too many rows, unreadable file) raise ``ValidationFailed``.
"""
from __future__ import annotations

import csv
import io
import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from itam.core.config import settings
from itam.core.exceptions import FieldIssue, ValidationFailed
from itam.core.logging import get_logger
from itam.core.metrics import record_import_rows
from itam.core.tracing import tracing_span
from itam.models.asset import ASSET_STATUSES
from itam.repositories.asset_repository import AssetRepository
from itam.repositories.user_repository import UserRepository
from itam.schemas.asset import MAX_INT, MAX_MONEY, AssetCreate

logger = get_logger(__name__)

CSV_TEMPLATE_HEADERS = [
    "name", "type", "status", "category", "manufacturer", "model", "serial_number",
    "location", "assigned_user_email", "assigned_user_name", "purchase_date",
    "purchase_cost", "warranty_expiry", "amc_expiry", "specifications", "notes",
    "software_name", "version", "license_type", "license_key", "used_licenses",
    "renewal_date", "vendor_name", "vendor_email", "vendor_phone", "company_name",
    "company_gst_number",
]

_TYPE_ALIASES = {
    "hardware": "Hardware",
    "software": "Software",
    "peripherals": "Peripherals",
    "peripheral": "Peripherals",
    "others": "Others",
    "other": "Others",
}

_DATE_FIELDS = ("purchase_date", "warranty_expiry", "amc_expiry", "renewal_date")
_TEXT_FIELDS = (
    "category", "manufacturer", "model", "serial_number", "location", "notes",
    "software_name", "version", "license_type", "license_key", "vendor_name",
    "vendor_email", "vendor_phone", "company_name", "company_gst_number",
)
_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_FORMULA_PREFIXES = ("=", "+", "-", "@")


class ImportMode(str, Enum):
    VALIDATE_ONLY = "validateOnly"
    PARTIAL = "partial"
    ATOMIC = "atomic"


@dataclass(frozen=True)
class ValidRow:
    row_number: int
    record: AssetCreate
    warnings: List[str] = field(default_factory=list)
    status = "valid"


@dataclass(frozen=True)
class InvalidRow:
    row_number: int
    issues: List[FieldIssue]
    warnings: List[str] = field(default_factory=list)
    status = "invalid"


RowResult = Union[ValidRow, InvalidRow]


@dataclass
class ImportSummary:
    total: int = 0
    valid: int = 0
    invalid: int = 0
    inserted: int = 0


@dataclass
class ImportResult:
    mode: str
    summary: ImportSummary
    rows: List[RowResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "summary": {
                "total": self.summary.total,
                "valid": self.summary.valid,
                "invalid": self.summary.invalid,
                "inserted": self.summary.inserted,
            },
            "rows": [
                {
                    "rowNumber": row.row_number,
                    "status": row.status,
                    "errors": [issue.to_dict() for issue in row.issues] if isinstance(row, InvalidRow) else [],
                    "warnings": list(row.warnings),
                }
                for row in self.rows
            ],
        }


def normalize_asset_type(value: str) -> Optional[str]:
    return _TYPE_ALIASES.get(value.strip().lower())


def parse_date(value: str) -> Optional[date]:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def sanitize_csv_value(value: Any) -> str:
    """Neutralise spreadsheet formulas in generated CSV cells"""
    text = "" if value is None else str(value)
    if text.startswith(_FORMULA_PREFIXES):
        return "'" + text
    return text


def template_csv() -> str:
    """Header row plus one example row for the import template download"""
    example = {
        "name": "Dell Latitude 7420",
        "type": "Hardware",
        "status": "in-stock",
        "category": "Laptop",
        "manufacturer": "Dell",
        "model": "Latitude 7420",
        "serial_number": "SN-0001",
        "location": "HQ",
        "purchase_date": "2024-01-15",
        "purchase_cost": "1250.00",
        "warranty_expiry": "2027-01-15",
        "specifications": '{"ram": "16GB"}',
    }
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_TEMPLATE_HEADERS)
    writer.writerow([sanitize_csv_value(example.get(header, "")) for header in CSV_TEMPLATE_HEADERS])
    return buffer.getvalue()


def _clean(row: Dict[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _max_length(field_name: str) -> Optional[int]:
    for constraint in AssetCreate.model_fields[field_name].metadata:
        limit = getattr(constraint, "max_length", None)
        if limit is not None:
            return limit
    return None


class BulkImportEngine:
    """Validates and imports asset rows for one tenant"""

    def __init__(self, db: Session, max_file_bytes: Optional[int] = None, max_rows: Optional[int] = None):
        self.db = db
        self.max_file_bytes = max_file_bytes or settings.IMPORT_MAX_FILE_BYTES
        self.max_rows = max_rows or settings.IMPORT_MAX_ROWS

    def parse_csv(self, content: bytes) -> List[Dict[str, str]]:
        """Decode an uploaded CSV into header-keyed rows, enforcing the batch limits"""
        if len(content) > self.max_file_bytes:
            raise ValidationFailed.single(
                "file", "file_too_large", f"File exceeds the {self.max_file_bytes} byte limit"
            )
        if not content.strip():
            raise ValidationFailed.single("file", "empty_file", "The uploaded file is empty")
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationFailed.single("file", "invalid_encoding", "The file must be UTF-8 encoded")

        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise ValidationFailed.single("file", "empty_file", "The uploaded file has no header row")
        reader.fieldnames = [(name or "").strip().lower() for name in reader.fieldnames]

        rows: List[Dict[str, str]] = []
        for row in reader:
            row.pop(None, None)  # cells beyond the header
            rows.append(row)
            if len(rows) > self.max_rows:
                raise ValidationFailed.single(
                    "file", "too_many_rows", f"A single import is limited to {self.max_rows} rows"
                )
        return rows

    def validate(self, tenant_id: str, rows: Sequence[Dict[str, Any]]) -> ImportResult:
        """Report on every row without writing anything"""
        return self.import_rows(tenant_id, rows, ImportMode.VALIDATE_ONLY)

    def import_rows(self, tenant_id: str, rows: Sequence[Dict[str, Any]], mode: Union[str, ImportMode]) -> ImportResult:
        try:
            mode = ImportMode(mode)
        except ValueError:
            raise ValidationFailed.single("mode", "invalid_choice", f"Unknown import mode: {mode}")
        if not rows:
            raise ValidationFailed.single("rows", "empty_file", "There are no rows to import")
        if len(rows) > self.max_rows:
            raise ValidationFailed.single(
                "rows", "too_many_rows", f"A single import is limited to {self.max_rows} rows"
            )

        with tracing_span("bulk_import", {"tenant_id": tenant_id, "mode": mode.value, "rows": len(rows)}):
            users_by_email = {
                user.email: user for user in UserRepository(self.db).list_users(tenant_id)
            }
            results: List[RowResult] = [
                self._validate_row(index, row, users_by_email)
                for index, row in enumerate(rows, start=2)  # header is row 1
            ]
            valid = [result for result in results if isinstance(result, ValidRow)]
            summary = ImportSummary(total=len(results), valid=len(valid), invalid=len(results) - len(valid))

            write = mode is ImportMode.PARTIAL or (mode is ImportMode.ATOMIC and summary.invalid == 0)
            if write and valid:
                summary.inserted = AssetRepository(self.db).create_bulk(
                    tenant_id, [result.record.model_dump() for result in valid]
                )

        record_import_rows(mode.value, "valid", summary.valid)
        record_import_rows(mode.value, "invalid", summary.invalid)
        record_import_rows(mode.value, "inserted", summary.inserted)
        logger.info(
            f"Bulk import ({mode.value}) for tenant {tenant_id}: total={summary.total} "
            f"valid={summary.valid} invalid={summary.invalid} inserted={summary.inserted}"
        )
        return ImportResult(mode=mode.value, summary=summary, rows=results)

    def _validate_row(self, row_number: int, row: Dict[str, Any], users_by_email: Dict[str, Any]) -> RowResult:
        issues: List[FieldIssue] = []
        warnings: List[str] = []
        data: Dict[str, Any] = {}

        def issue(field_name: str, code: str, message: str) -> None:
            issues.append(FieldIssue(field=field_name, code=code, message=message, row=row_number))

        name = _clean(row, "name")
        if not name:
            issue("name", "required", "Name is required")
        data["name"] = name

        raw_type = _clean(row, "type")
        asset_type = None
        if not raw_type:
            issue("type", "required", "Type is required")
        else:
            asset_type = normalize_asset_type(raw_type)
            if asset_type is None:
                issue("type", "invalid_choice", "Type must be one of Hardware, Software, Peripherals, Others")
        data["type"] = asset_type

        raw_status = _clean(row, "status")
        if not raw_status:
            issue("status", "required", "Status is required")
        elif raw_status.lower() not in ASSET_STATUSES:
            issue("status", "invalid_choice", f"Status must be one of {', '.join(ASSET_STATUSES)}")
        data["status"] = raw_status.lower() if raw_status else None

        for field_name in _TEXT_FIELDS + ("assigned_user_name", "assigned_user_email"):
            value = _clean(row, field_name)
            limit = _max_length(field_name)
            if value is not None and limit is not None and len(value) > limit:
                issue(field_name, "invalid_value", f"Must be at most {limit} characters")
            if field_name in _TEXT_FIELDS:
                data[field_name] = value

        for field_name in _DATE_FIELDS:
            raw = _clean(row, field_name)
            if raw is None:
                continue
            parsed = parse_date(raw)
            if parsed is None:
                issue(field_name, "invalid_date", f"Invalid date: {raw}")
            data[field_name] = parsed

        raw_cost = _clean(row, "purchase_cost")
        if raw_cost is not None:
            try:
                cost = float(raw_cost.replace(",", ""))
            except ValueError:
                cost = None
            if cost is None or not math.isfinite(cost) or cost < 0:
                issue("purchase_cost", "invalid_number", "Purchase cost must be a non-negative number")
            elif cost >= MAX_MONEY:
                issue("purchase_cost", "invalid_number", f"Purchase cost must be less than {MAX_MONEY:,}")
            else:
                data["purchase_cost"] = cost

        raw_used = _clean(row, "used_licenses")
        if raw_used is not None:
            if not raw_used.isdecimal():
                issue("used_licenses", "invalid_number", "Used licenses must be a non-negative integer")
            elif int(raw_used) > MAX_INT:
                issue("used_licenses", "invalid_number", f"Used licenses must be at most {MAX_INT}")
            else:
                data["used_licenses"] = int(raw_used)

        if asset_type == "Software":
            if not data.get("software_name"):
                issue("software_name", "type_required", "Software name is required for software assets")
            if not data.get("license_key"):
                issue("license_key", "type_required", "License key is required for software assets")

        raw_specs = _clean(row, "specifications")
        if raw_specs is not None:
            try:
                specs = json.loads(raw_specs)
            except ValueError:
                specs = None
            if isinstance(specs, dict):
                data["specifications"] = specs
            else:
                warnings.append("Specifications are not a JSON object; stored as a note")
                data["specifications"] = {"note": raw_specs}

        email = _clean(row, "assigned_user_email")
        if email is not None:
            email = email.lower()
            if not _EMAIL.match(email):
                issue("assigned_user_email", "invalid_email", f"Invalid email: {email}")
            else:
                data["assigned_user_email"] = email
                user = users_by_email.get(email)
                if user is not None:
                    data["assigned_user_id"] = user.id
                    data["assigned_user_name"] = _clean(row, "assigned_user_name") or user.full_name
                    data["assigned_user_employee_id"] = user.employee_id
                else:
                    warnings.append(f"No user with email {email} in this organization; asset left unlinked")
                    data["assigned_user_name"] = _clean(row, "assigned_user_name")

        if issues:
            return InvalidRow(row_number=row_number, issues=issues, warnings=warnings)

        try:
            record = AssetCreate(**{key: value for key, value in data.items() if value is not None})
        except ValidationError as exc:
            for error in exc.errors():
                location = ".".join(str(part) for part in error.get("loc", ())) or "row"
                issue(location, "invalid_value", error.get("msg", "Invalid value"))
            return InvalidRow(row_number=row_number, issues=issues, warnings=warnings)
        return ValidRow(row_number=row_number, record=record, warnings=warnings)
