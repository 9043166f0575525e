"""
Abstract base class for roof material calculators.

Input: normalized RoofMeasurement + tier + manufacturer + accessories
Output: MaterialList dict {total_squares, waste_percent, line_items, measurement}
"""

import logging
import math
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

# Quotients are rounded to this many places before the ceiling: 99.9 / 33.3
# must be 3 bundles, not 4 because of float noise.
_QUOTIENT_PLACES = 9


class BaseCalculator(ABC):
    """All roof system calculators inherit from this."""

    SQ_FT_PER_SQUARE = 100.0

    @abstractmethod
    def compute(self, measurement, tier, manufacturer: str,
                accessories: list = None, shingle_color: str = None) -> dict:
        """
        Takes a roof measurement and the order choices.
        Returns a MaterialList dict.
        """
        pass

    # --- Helper methods for all calculators ---

    def apply_waste(self, area_sq_ft: float, waste_percent: int) -> float:
        """Inflate an area by a whole-number waste percentage."""
        return area_sq_ft * (100 + waste_percent) / 100.0

    def packages_needed(self, amount: float, per_package: float) -> int:
        """
        Number of packages covering `amount`. Always rounds UP — a roof can't be
        finished with a fraction of a bundle, and a short order stops the crew.
        """
        if amount <= 0:
            return 0
        return math.ceil(round(amount / per_package, _QUOTIENT_PLACES))

    def area_to_squares(self, area_sq_ft: float) -> float:
        """1 square = 100 sq ft of roof coverage."""
        return area_sq_ft / self.SQ_FT_PER_SQUARE

    def make_line_item(self, category: str, product_name: str, quantity: int, unit: str,
                       manufacturer: str = None, color: str = None, sku: str = None) -> dict:
        """Build a LineItem dict."""
        return {
            "category": category,
            "product_name": product_name,
            "quantity": int(quantity),
            "unit": unit,
            "manufacturer": manufacturer,
            "color": color,
            "sku": sku,
        }

    def make_material_list(self, total_squares: float, waste_percent: int,
                           line_items: list, measurement: dict) -> dict:
        """Build the MaterialList output dict."""
        return {
            "total_squares": total_squares,
            "waste_percent": waste_percent,
            "line_items": line_items,
            "measurement": measurement,
        }
