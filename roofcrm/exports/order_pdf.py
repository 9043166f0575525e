"""
Material order PDF — printable order summary.

Used for recordkeeping and as the attachment emailed to the supplier.
Uses fpdf2 (pure Python, no system dependencies).

Sections:
1. Header (company, order number, date, job address)
2. Order summary (manufacturer, color, complexity, squares, waste)
3. Materials table
4. Generation timestamp

Rendering is deterministic: the PDF creation date is pinned to the order's
created_at, so the same order always renders to the same bytes.
"""

from datetime import datetime, timezone

from fpdf import FPDF

from ..calculators.catalog import CATEGORY_LABELS, COLORED_CATEGORIES
from ..config import settings
from . import as_order_dict

COMPLEXITY_NAMES = {
    "simple": "Simple",
    "moderate": "Moderate",
    "complex": "Complex",
}


def _safe(text) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        str(text)
        .replace("\u2022", "-")    # bullet
        .replace("\u2014", " - ")  # em dash
        .replace("\u2013", "-")    # en dash
        .replace("\u201c", '"')    # left double quote
        .replace("\u201d", '"')    # right double quote
        .replace("\u2018", "'")    # left single quote
        .replace("\u2019", "'")    # right single quote
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def _as_datetime(value) -> datetime:
    """created_at may be a datetime (ORM row) or an ISO string (dict input). Naive means UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value is None:
        raise ValueError("Order has no created_at — cannot render a reproducible document")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _fmt_squares(squares) -> str:
    return f"{float(squares or 0):.1f}"


def _pitch_text(measurement: dict) -> str:
    rise = (measurement or {}).get("predominant_pitch_rise")
    return f"{rise}/12" if rise is not None else "N/A"


def default_company_profile() -> dict:
    return {
        "name": settings.COMPANY_NAME,
        "address": settings.COMPANY_ADDRESS,
        "phone": settings.COMPANY_PHONE,
        "email": settings.COMPANY_EMAIL,
    }


class OrderPDF(FPDF):
    """Custom PDF class for material order documents."""

    def __init__(self):
        super().__init__()
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Header is drawn once on the first page

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        """Render a section header bar."""
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """Render a table header row. cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label == "Qty" else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, cols):
        """Render a table data row."""
        self.set_font("Helvetica", "", 8)
        for val, (label, width) in zip(values, cols):
            align = "R" if label == "Qty" else "L"
            self.cell(width, 5.5, str(val), align=align)
        self.ln()

    def label_value(self, label, value):
        self.set_font("Helvetica", "B", 9)
        self.cell(45, 5.5, label)
        self.set_font("Helvetica", "", 9)
        self.cell(0, 5.5, _safe(value), new_x="LMARGIN", new_y="NEXT")


def render_order_pdf(order, company: dict = None) -> bytes:
    """
    Render a material order document.

    Args:
        order: MaterialOrder row or dict with the same fields
        company: {name, address, phone, email} — defaults to the configured company

    Returns:
        PDF bytes
    """
    order = as_order_dict(order)
    company = company or default_company_profile()
    created_at = _as_datetime(order.get("created_at"))

    company_name = company.get("name") or "Material Order"
    info_parts = [p for p in [company.get("address"), company.get("phone"), company.get("email")] if p]
    company_info = " | ".join(info_parts)

    pdf = OrderPDF()
    pdf.set_creation_date(created_at)
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin  # printable width

    # ── SECTION 1: Header ──
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(company_name), new_x="LMARGIN", new_y="NEXT")
    if company_info:
        pdf.set_font("Helvetica", "", 9)
        pdf.set_text_color(100, 100, 100)
        pdf.cell(0, 5, _safe(company_info), new_x="LMARGIN", new_y="NEXT")
        pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, _safe(f"MATERIAL ORDER #{order.get('order_number', '')}"), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {created_at.strftime('%B %d, %Y')}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(2)
    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(0, 5, "Job address:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.multi_cell(pw, 5, _safe(order.get("job_address") or "Not provided"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # ── SECTION 2: Order summary ──
    complexity = order.get("roof_complexity") or ""
    measurement = order.get("measurement_json") or {}
    pdf.section_header("ORDER SUMMARY")
    pdf.label_value("Manufacturer:", order.get("material_system") or "")
    pdf.label_value("Shingle color:", order.get("shingle_color") or "")
    pdf.label_value("Roof complexity:", COMPLEXITY_NAMES.get(complexity, complexity.title()))
    pdf.label_value("Predominant pitch:", _pitch_text(measurement))
    pdf.label_value("Total squares:", _fmt_squares(order.get("total_squares")))
    pdf.label_value("Waste factor:", f"{order.get('waste_percent', 0)}%")
    if measurement.get("source_quality") == "estimated":
        pdf.set_font("Helvetica", "I", 8)
        pdf.set_text_color(120, 120, 120)
        pdf.cell(0, 5, "Roof measurements estimated - verify edge lengths on site.",
                 new_x="LMARGIN", new_y="NEXT")
        pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    # ── SECTION 3: Materials ──
    pdf.section_header("MATERIALS")
    cols = [("Category", 32), ("Product", 78), ("Color", 35), ("Qty", 20), ("Unit", 25)]
    pdf.table_header(cols)
    for item in order.get("line_items") or []:
        category = item.get("category", "")
        color = item.get("color") if category in COLORED_CATEGORIES else ""
        pdf.table_row(
            [
                _safe(CATEGORY_LABELS.get(category, category)),
                _safe((item.get("product_name") or "")[:48]),
                _safe((color or "")[:20]),
                str(int(item.get("quantity", 0))),
                _safe("  " + (item.get("unit") or "")),
            ],
            cols,
        )
    pdf.ln(6)

    # ── SECTION 4: Generation timestamp ──
    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.cell(pw, 4, f"Generated {created_at.strftime('%Y-%m-%d %H:%M')} UTC",
             new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
