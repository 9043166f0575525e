"""
Supplier CSV export.

Column contract (suppliers ingest this directly — do not reorder):
    Category, Product, Manufacturer, Color, Quantity, Unit

One header row, then one row per line item in stored order.
"""

import csv
from io import StringIO

from ..calculators.catalog import CATEGORY_LABELS, COLORED_CATEGORIES, ACCESSORY
from . import as_order_dict

HEADERS = ["Category", "Product", "Manufacturer", "Color", "Quantity", "Unit"]


def line_item_row(item: dict) -> list:
    category = item.get("category", ACCESSORY)
    color = item.get("color") if category in COLORED_CATEGORIES else None
    return [
        CATEGORY_LABELS.get(category, category),
        item.get("product_name") or "",
        item.get("manufacturer") or "",
        color or "",
        str(int(item.get("quantity", 0))),
        item.get("unit") or "",
    ]


def render_csv(order) -> bytes:
    """Render the order's line items as UTF-8 CSV bytes. Same order in, same bytes out."""
    order = as_order_dict(order)
    output = StringIO()
    writer = csv.writer(output, lineterminator="\r\n")
    writer.writerow(HEADERS)
    for item in order.get("line_items") or []:
        writer.writerow(line_item_row(item))
    return output.getvalue().encode("utf-8")
