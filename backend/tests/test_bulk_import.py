import csv
import io
from datetime import date

import pytest

from itam.core.exceptions import ValidationFailed
from itam.models.asset import Asset
from itam.models.audit import AuditLog
from itam.services.asset_service import AssetService
from itam.services.bulk_import import (
    CSV_TEMPLATE_HEADERS,
    BulkImportEngine,
    ImportMode,
    InvalidRow,
    normalize_asset_type,
    parse_date,
    sanitize_csv_value,
    template_csv,
)


def _row(name, **extra):
    row = {"name": name, "type": "Hardware", "status": "in-stock"}
    row.update(extra)
    return row


@pytest.fixture
def batch():
    """Five rows, the third of which has no name"""
    return [
        _row("Laptop 1"),
        _row("Laptop 2"),
        _row(""),
        _row("Laptop 4"),
        _row("Laptop 5"),
    ]


@pytest.fixture
def importer(db):
    return BulkImportEngine(db, max_file_bytes=10_000, max_rows=10)


def _count(db, tenant):
    return db.query(Asset).filter(Asset.tenant_id == tenant.id).count()


def test_validate_only_reports_without_writing(importer, db, tenant_a, batch):
    result = importer.import_rows(tenant_a.id, batch, "validateOnly")

    assert result.to_dict()["summary"] == {"total": 5, "valid": 4, "invalid": 1, "inserted": 0}
    assert _count(db, tenant_a) == 0


def test_partial_inserts_valid_rows(importer, db, tenant_a, batch):
    result = importer.import_rows(tenant_a.id, batch, ImportMode.PARTIAL)

    assert result.summary.inserted == 4
    assert result.summary.invalid == 1
    assert _count(db, tenant_a) == 4


def test_atomic_inserts_nothing_when_any_row_is_invalid(importer, db, tenant_a, batch):
    validate = importer.import_rows(tenant_a.id, batch, "validateOnly").to_dict()
    atomic = importer.import_rows(tenant_a.id, batch, "atomic").to_dict()

    assert atomic["summary"]["inserted"] == 0
    assert atomic["rows"] == validate["rows"]
    assert atomic["summary"] == validate["summary"]
    assert _count(db, tenant_a) == 0


def test_atomic_inserts_everything_when_all_rows_valid(importer, db, tenant_a):
    rows = [_row(f"Monitor {i}", type="peripheral") for i in range(3)]

    result = importer.import_rows(tenant_a.id, rows, "atomic")

    assert result.summary.inserted == 3
    assert {a.type for a in db.query(Asset)} == {"Peripherals"}


def test_invalid_row_reports_row_number_and_field(importer, tenant_a, batch):
    result = importer.import_rows(tenant_a.id, batch, "validateOnly").to_dict()

    invalid = [row for row in result["rows"] if row["status"] == "invalid"]
    assert len(invalid) == 1
    # Row numbers count the header as row 1
    assert invalid[0]["rowNumber"] == 4
    assert invalid[0]["errors"] == [{"field": "name", "code": "required", "message": "Name is required", "row": 4}]
    assert [row["rowNumber"] for row in result["rows"]] == [2, 3, 4, 5, 6]


def test_every_row_is_validated_independently(importer, tenant_a):
    rows = [
        {"name": "", "type": "Spaceship", "status": "lost"},
        _row("Bad dates", purchase_date="31/31/2024", purchase_cost="-5"),
        _row("Ok"),
    ]

    result = importer.import_rows(tenant_a.id, rows, "validateOnly")

    first, second, third = result.rows
    assert isinstance(first, InvalidRow)
    assert {(i.field, i.code) for i in first.issues} == {
        ("name", "required"), ("type", "invalid_choice"), ("status", "invalid_choice"),
    }
    assert {(i.field, i.code) for i in second.issues} == {
        ("purchase_date", "invalid_date"), ("purchase_cost", "invalid_number"),
    }
    assert third.status == "valid"


def test_software_rows_need_name_and_license_key(importer, tenant_a):
    rows = [
        _row("Office", type="Software"),
        _row("Office", type="Software", software_name="Office", license_key="XXXX-YYYY"),
    ]

    result = importer.import_rows(tenant_a.id, rows, "validateOnly")

    assert {i.field for i in result.rows[0].issues} == {"software_name", "license_key"}
    assert all(i.code == "type_required" for i in result.rows[0].issues)
    assert result.rows[1].status == "valid"


def test_bad_specifications_become_a_warning(importer, db, tenant_a):
    result = importer.import_rows(tenant_a.id, [_row("Server", specifications="16GB RAM")], "partial")

    assert result.rows[0].status == "valid"
    assert result.rows[0].warnings
    assert db.query(Asset).one().specifications == {"note": "16GB RAM"}


def test_assigned_email_links_same_tenant_user(importer, db, tenant_a, make_user):
    user = make_user(tenant_a, "dana@acme.test", first_name="Dana")

    result = importer.import_rows(
        tenant_a.id,
        [_row("Phone", assigned_user_email="DANA@acme.test"), _row("Tablet", assigned_user_email="ghost@acme.test")],
        "partial",
    )

    assert result.summary.inserted == 2
    phone = db.query(Asset).filter(Asset.name == "Phone").one()
    tablet = db.query(Asset).filter(Asset.name == "Tablet").one()
    assert phone.assigned_user_id == user.id
    assert phone.assigned_user_employee_id == user.employee_id
    assert tablet.assigned_user_id is None
    assert result.rows[1].warnings


def test_assigned_email_never_links_foreign_user(importer, db, tenant_a, tenant_b, make_user):
    make_user(tenant_b, "dana@globex.test")

    importer.import_rows(tenant_a.id, [_row("Phone", assigned_user_email="dana@globex.test")], "partial")

    assert db.query(Asset).one().assigned_user_id is None


def test_dates_and_costs_are_parsed(importer, db, tenant_a):
    importer.import_rows(
        tenant_a.id,
        [_row("Switch", purchase_date="03/15/2023", warranty_expiry="2026-03-15", purchase_cost="1,200.50")],
        "partial",
    )

    switch = db.query(Asset).one()
    assert switch.purchase_date == date(2023, 3, 15)
    assert switch.warranty_expiry == date(2026, 3, 15)
    assert switch.purchase_cost == 1200.5


@pytest.mark.parametrize("cost", ["inf", "-inf", "nan", "1e20", "10000000000"])
def test_costs_the_column_cannot_hold_are_invalid(importer, tenant_a, cost):
    result = importer.import_rows(tenant_a.id, [_row("Server", purchase_cost=cost)], "validateOnly")

    assert [(i.field, i.code) for i in result.rows[0].issues] == [("purchase_cost", "invalid_number")]


def test_overlong_values_are_invalid(importer, db, tenant_a):
    rows = [
        _row("Too long", manufacturer="M" * 129),
        _row("Many seats", used_licenses=str(2 ** 31)),
        _row("Fits", manufacturer="M" * 128, purchase_cost="9999999999.99"),
    ]

    result = importer.import_rows(tenant_a.id, rows, "partial")

    assert [(i.field, i.code) for i in result.rows[0].issues] == [("manufacturer", "invalid_value")]
    assert [(i.field, i.code) for i in result.rows[1].issues] == [("used_licenses", "invalid_number")]
    assert result.summary.inserted == 1
    assert db.query(Asset).one().name == "Fits"


def test_rejects_unknown_mode_empty_and_oversized_batches(importer, tenant_a):
    with pytest.raises(ValidationFailed) as bad_mode:
        importer.import_rows(tenant_a.id, [_row("x")], "yolo")
    assert bad_mode.value.issues[0].code == "invalid_choice"

    with pytest.raises(ValidationFailed) as empty:
        importer.import_rows(tenant_a.id, [], "partial")
    assert empty.value.issues[0].code == "empty_file"

    with pytest.raises(ValidationFailed) as too_many:
        importer.import_rows(tenant_a.id, [_row(str(i)) for i in range(11)], "partial")
    assert too_many.value.issues[0].code == "too_many_rows"


def test_parse_csv_normalises_headers(importer):
    content = "\ufeffName,TYPE, Status \nRouter,hardware,deployed\n".encode("utf-8")

    rows = importer.parse_csv(content)

    assert rows == [{"name": "Router", "type": "hardware", "status": "deployed"}]


def test_parse_csv_limits(importer):
    with pytest.raises(ValidationFailed) as too_large:
        importer.parse_csv(b"x" * 10_001)
    assert too_large.value.issues[0].code == "file_too_large"

    with pytest.raises(ValidationFailed) as empty:
        importer.parse_csv(b"   \n")
    assert empty.value.issues[0].code == "empty_file"

    with pytest.raises(ValidationFailed) as encoding:
        importer.parse_csv(b"name\n\xff\xfe\xfa")
    assert encoding.value.issues[0].code == "invalid_encoding"

    lines = ["name,type,status"] + [f"a{i},Hardware,in-stock" for i in range(11)]
    with pytest.raises(ValidationFailed) as too_many:
        importer.parse_csv("\n".join(lines).encode())
    assert too_many.value.issues[0].code == "too_many_rows"


def test_service_import_is_audited_only_when_rows_land(db, audit, actor_a, batch):
    service = AssetService(db, audit)

    service.bulk_import(actor_a, batch, "validateOnly")
    assert db.query(AuditLog).filter(AuditLog.action == "asset_bulk_import").count() == 0

    service.bulk_import(actor_a, batch, "partial")
    entry = db.query(AuditLog).filter(AuditLog.action == "asset_bulk_import").one()
    assert entry.after_state["inserted"] == 4


def test_template_contains_every_header():
    reader = csv.reader(io.StringIO(template_csv()))
    headers, example = list(reader)

    assert headers == CSV_TEMPLATE_HEADERS
    assert "amc_expiry" in headers
    assert example[0] == "Dell Latitude 7420"


def test_sanitize_csv_value_neutralises_formulas():
    assert sanitize_csv_value("=SUM(A1:A3)") == "'=SUM(A1:A3)"
    assert sanitize_csv_value("+1") == "'+1"
    assert sanitize_csv_value("@cmd") == "'@cmd"
    assert sanitize_csv_value("plain") == "plain"
    assert sanitize_csv_value(None) == ""


def test_helpers():
    assert normalize_asset_type(" hardware ") == "Hardware"
    assert normalize_asset_type("Other") == "Others"
    assert normalize_asset_type("boat") is None
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date("2024-02-30") is None
