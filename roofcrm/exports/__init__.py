"""Supplier CSV and printable PDF renderers for material orders."""

ORDER_FIELDS = (
    "id", "job_id", "order_number", "job_address", "shingle_color", "material_system",
    "roof_complexity", "total_squares", "waste_percent", "line_items",
    "measurement_json", "created_at",
)


def as_order_dict(order) -> dict:
    """Renderers take a MaterialOrder row or an equivalent dict."""
    if isinstance(order, dict):
        return order
    return {field: getattr(order, field, None) for field in ORDER_FIELDS}
