"""
Asphalt shingle roof calculator — the material quantity engine.

Area-derived products (shingles, starter, underlayment, nails) are sized from
the roof area inflated by the waste tier. Linear products (hip & ridge cap,
drip edge) are sized from measured edge lengths and get no waste: those lengths
are measured directly, not extrapolated from area.

Valley length is folded into hip & ridge cap — valleys consume cap at about the
same rate as hips.

Pure function of its inputs: same inputs, same output, every time.
"""

import logging
import math

from pydantic import ValidationError as PydanticValidationError

from ..errors import MissingMeasurement, ValidationError
from ..measurements import normalize_measurement
from ..schemas import ManualAccessory, RoofMeasurement
from .base import BaseCalculator
from .catalog import (
    ACCESSORY, COLORED_CATEGORIES, DRIP_EDGE, HIP_RIDGE, NAILS, SHINGLES, STARTER,
    UNDERLAYMENT, ProductCatalog,
)
from .waste_policy import WasteTier, percent_for

logger = logging.getLogger(__name__)

ACCESSORY_UNIT = "ea"


class ShingleRoofCalculator(BaseCalculator):

    def __init__(self, catalog: ProductCatalog = None):
        self.catalog = catalog or ProductCatalog()

    def compute(self, measurement, tier, manufacturer: str,
                accessories: list = None, shingle_color: str = None) -> dict:
        measurement = self._parse_measurement(measurement)
        area = measurement.total_area_sqft
        if area is None or area == 0:
            raise MissingMeasurement(
                "No roof area available for this job. "
                "Enter a manual roof area (sq ft) to generate a material order."
            )
        if not math.isfinite(area):
            raise ValidationError(f"Roof area must be a finite number, got {area}")
        if area < 0:
            raise ValidationError(f"Roof area must be positive, got {area}")
        if not str(manufacturer or "").strip():
            raise ValidationError("Material system (manufacturer) is required")
        if shingle_color is not None and not str(shingle_color).strip():
            raise ValidationError("Shingle color is required")

        tier = WasteTier.parse(tier)
        accessories = self._parse_accessories(accessories)
        measurement = normalize_measurement(measurement)
        color = shingle_color.strip() if shingle_color else None
        manufacturer_name = self.catalog.manufacturer_name(manufacturer)
        if not self.catalog.is_catalogued(manufacturer):
            logger.info("Manufacturer %r not catalogued, using generic coverage", manufacturer)

        # 1-3. Waste and squares
        waste_percent = percent_for(tier)
        adjusted_area = self.apply_waste(area, waste_percent)
        total_squares = self.area_to_squares(adjusted_area)

        # 4-6. Quantities, in emission order
        ridge_cap_ft = measurement.ridge_length_ft + measurement.valley_length_ft
        drip_edge_ft = measurement.eave_length_ft + measurement.rake_length_ft
        if not all(math.isfinite(v) for v in (adjusted_area, ridge_cap_ft, drip_edge_ft)):
            raise ValidationError(
                f"Roof measurement out of range (area {area} sq ft, "
                f"ridge+valley {ridge_cap_ft} ft, eave+rake {drip_edge_ft} ft)"
            )

        amounts = [
            (SHINGLES, adjusted_area),
            (STARTER, adjusted_area),
            (HIP_RIDGE, ridge_cap_ft),
            (UNDERLAYMENT, adjusted_area),
            (NAILS, total_squares),
            (DRIP_EDGE, drip_edge_ft),
        ]

        line_items = []
        for category, amount in amounts:
            coverage = self.catalog.coverage_for(manufacturer, category)
            line_items.append(self.make_line_item(
                category=category,
                product_name=coverage["display_name"],
                quantity=self.packages_needed(amount, coverage["units_per_package"]),
                unit=coverage["unit"],
                manufacturer=manufacturer_name,
                color=color if category in COLORED_CATEGORIES else None,
                sku=coverage.get("sku"),
            ))

        # 7. Accessories: verbatim, no waste, no packaging
        for accessory in accessories:
            line_items.append(self.make_line_item(
                category=ACCESSORY,
                product_name=accessory.name.strip(),
                quantity=accessory.quantity,
                unit=ACCESSORY_UNIT,
            ))

        return self.make_material_list(
            total_squares=total_squares,
            waste_percent=waste_percent,
            line_items=line_items,
            measurement=measurement.model_dump(mode="json"),
        )

    def _parse_measurement(self, measurement) -> RoofMeasurement:
        if measurement is None:
            raise MissingMeasurement(
                "No roof measurement supplied. Enter a manual roof area (sq ft)."
            )
        if isinstance(measurement, RoofMeasurement):
            return measurement
        try:
            return RoofMeasurement.model_validate(measurement)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid roof measurement: {e}")

    def _parse_accessories(self, accessories) -> list:
        parsed = []
        for acc in accessories or []:
            if isinstance(acc, ManualAccessory):
                name, quantity = acc.name, acc.quantity
            else:
                name, quantity = acc.get("name"), acc.get("quantity")
            if not str(name or "").strip():
                raise ValidationError("Accessory name is required")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    f"Accessory {name!r} needs a whole-number quantity above zero, got {quantity!r}"
                )
            parsed.append(ManualAccessory(name=name, quantity=quantity))
        return parsed


def compute(measurement, tier, manufacturer: str, accessories: list = None,
            shingle_color: str = None) -> dict:
    """Module-level entry point — one calculation with the configured catalog."""
    return ShingleRoofCalculator().compute(measurement, tier, manufacturer, accessories, shingle_color)
