"""
Export renderer tests — supplier CSV and order PDF.
"""

import csv
from datetime import datetime
from io import StringIO

import pytest

from roofcrm.calculators.catalog import ProductCatalog
from roofcrm.calculators.shingle_roof import ShingleRoofCalculator
from roofcrm.exports.csv_export import HEADERS, render_csv
from roofcrm.exports.order_pdf import render_order_pdf


COMPANY = {"name": "NextDoor Exterior Solutions", "address": "900 Commerce St, Dallas, TX",
           "phone": "(214) 555-0142", "email": "orders@nextdoorexteriors.com"}


@pytest.fixture
def order(measurement):
    """Order dict shaped like a persisted MaterialOrder."""
    material_list = ShingleRoofCalculator(ProductCatalog(overrides={})).compute(
        measurement, "moderate", "GAF",
        accessories=[{"name": "Pipe Boot", "quantity": 6}],
        shingle_color="Charcoal",
    )
    return {
        "id": 7,
        "job_id": 3,
        "order_number": "MO-20261012-J3-00007",
        "job_address": "1418 Cedar Ridge Dr, Plano, TX 75075",
        "shingle_color": "Charcoal",
        "material_system": "GAF",
        "roof_complexity": "moderate",
        "total_squares": material_list["total_squares"],
        "waste_percent": material_list["waste_percent"],
        "line_items": material_list["line_items"],
        "measurement_json": material_list["measurement"],
        "created_at": datetime(2026, 10, 12, 14, 30, 5),
    }


def _rows(csv_bytes):
    return list(csv.reader(StringIO(csv_bytes.decode("utf-8"))))


# ============================================================
# CSV
# ============================================================

def test_csv_header_and_rows(order):
    rows = _rows(render_csv(order))
    assert rows[0] == HEADERS
    assert rows[0] == ["Category", "Product", "Manufacturer", "Color", "Quantity", "Unit"]
    assert len(rows) == 1 + len(order["line_items"])
    assert rows[1] == ["Shingles", "GAF Timberline HDZ", "GAF", "Charcoal", "85", "bundles"]
    assert rows[-1] == ["Accessory", "Pipe Boot", "", "", "6", "ea"]


def test_csv_blank_color_outside_colored_categories(order):
    rows = {row[0]: row for row in _rows(render_csv(order))[1:]}
    assert rows["Starter Strip"][3] == "Charcoal"
    assert rows["Hip & Ridge"][3] == "Charcoal"
    assert rows["Underlayment"][3] == ""
    assert rows["Nails"][3] == ""
    assert rows["Drip Edge"][3] == ""


def test_csv_quotes_commas(order):
    order["line_items"][-1]["product_name"] = 'Pipe Boot, 3" lead'
    rows = _rows(render_csv(order))
    assert rows[-1][1] == 'Pipe Boot, 3" lead'


def test_csv_byte_identical(order):
    assert render_csv(order) == render_csv(order)
    assert render_csv(order).endswith(b"\r\n")


# ============================================================
# PDF
# ============================================================

def test_pdf_is_pdf(order):
    pdf_bytes = render_order_pdf(order, COMPANY)
    assert isinstance(pdf_bytes, bytes)
    assert pdf_bytes.startswith(b"%PDF-")
    assert len(pdf_bytes) > 1000


def test_pdf_byte_identical(order):
    assert render_order_pdf(order, COMPANY) == render_order_pdf(order, COMPANY)


def test_pdf_accepts_iso_created_at(order):
    as_string = dict(order, created_at="2026-10-12T14:30:05")
    assert render_order_pdf(as_string, COMPANY) == render_order_pdf(order, COMPANY)


def test_pdf_handles_unicode(order):
    order["job_address"] = "1418 Cedar Ridge Dr — Unit B"
    order["line_items"][-1]["product_name"] = "Pipe Boot “Lead”"
    assert render_order_pdf(order, COMPANY).startswith(b"%PDF-")


def test_pdf_without_created_at_fails(order):
    order["created_at"] = None
    with pytest.raises(ValueError):
        render_order_pdf(order, COMPANY)


def test_pdf_uses_company_profile(order):
    """The header comes from the company profile passed in, not from the PDF object."""
    other = {"name": "Summit Roofing Supply Co"}
    assert render_order_pdf(order, other) != render_order_pdf(order, COMPANY)
    assert render_order_pdf(order, other).startswith(b"%PDF-")
