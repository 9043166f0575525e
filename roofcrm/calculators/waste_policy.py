"""
Waste factor policy — roof complexity tier to waste percentage.

Configuration, not data: the three tiers are fixed and not editable at runtime.
"""

import enum

from ..errors import ValidationError


class WasteTier(str, enum.Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"

    @classmethod
    def parse(cls, value) -> "WasteTier":
        """Convert user input to a tier. Unknown tiers are rejected here, at the input boundary."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown roof complexity: {value!r}. "
                f"Expected one of {[t.value for t in cls]}"
            )


WASTE_PERCENT = {
    WasteTier.SIMPLE: 7,     # gables, few penetrations
    WasteTier.MODERATE: 12,  # hips, a valley or two
    WasteTier.COMPLEX: 17,   # cut-up roofs, many valleys/dormers
}


def percent_for(tier: WasteTier) -> int:
    """Waste percentage for a tier."""
    return WASTE_PERCENT[WasteTier(tier)]
