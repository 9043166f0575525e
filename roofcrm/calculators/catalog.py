"""
Product catalog with fallback chain:
1. Overrides from data/product_catalog.json (if present — supplier-specific packaging)
2. Manufacturer entries in this file
3. GENERIC entry for the category (standard US asphalt-shingle trade figures)

An unrecognized manufacturer never blocks a calculation — it gets generic coverage.

Coverage is per package: sq ft per bundle/roll for area products,
linear ft per bundle/piece for linear products, squares per lb for nails.
"""

import copy
import json
import logging
import os
import re

from ..config import settings

logger = logging.getLogger(__name__)

# --- Line item categories, in the order they are emitted ---
SHINGLES = "shingles"
STARTER = "starter"
HIP_RIDGE = "hip_ridge"
UNDERLAYMENT = "underlayment"
NAILS = "nails"
DRIP_EDGE = "drip_edge"
ACCESSORY = "accessory"

CATEGORY_ORDER = [SHINGLES, STARTER, HIP_RIDGE, UNDERLAYMENT, NAILS, DRIP_EDGE]

CATEGORY_LABELS = {
    SHINGLES: "Shingles",
    STARTER: "Starter Strip",
    HIP_RIDGE: "Hip & Ridge",
    UNDERLAYMENT: "Underlayment",
    NAILS: "Nails",
    DRIP_EDGE: "Drip Edge",
    ACCESSORY: "Accessory",
}

# Categories whose color follows the shingle color
COLORED_CATEGORIES = {SHINGLES, STARTER, HIP_RIDGE}

# ~2.5 lb of coil nails per 4 squares in practice: rounded to a planning figure
NAIL_COVERAGE_SQUARES_PER_LB = 1.5

GENERIC = "generic"

GENERIC_CATALOG = {
    SHINGLES: {"units_per_package": 33.3, "unit": "bundles",
               "display_name": "Architectural Shingles", "sku": None},
    STARTER: {"units_per_package": 105.0, "unit": "bundles",
              "display_name": "Starter Strip", "sku": None},
    HIP_RIDGE: {"units_per_package": 25.0, "unit": "bundles",
                "display_name": "Hip & Ridge Cap", "sku": None},
    UNDERLAYMENT: {"units_per_package": 1000.0, "unit": "rolls",
                   "display_name": "Synthetic Underlayment", "sku": None},
    NAILS: {"units_per_package": NAIL_COVERAGE_SQUARES_PER_LB, "unit": "lbs",
            "display_name": "1-1/4\" Coil Roofing Nails", "sku": None},
    DRIP_EDGE: {"units_per_package": 10.0, "unit": "pieces",
                "display_name": "Drip Edge (10 ft)", "sku": None},
}

# Manufacturer systems offered in the CRM. Only categories that differ from
# GENERIC need an entry: missing categories fall through to GENERIC.
MANUFACTURER_CATALOG = {
    "gaf": {
        "name": "GAF",
        SHINGLES: {"units_per_package": 33.3, "unit": "bundles",
                   "display_name": "GAF Timberline HDZ", "sku": "GAF-TIMBERLINE-HDZ"},
        STARTER: {"units_per_package": 120.0, "unit": "bundles",
                  "display_name": "GAF Pro-Start Starter Strip", "sku": "GAF-PRO-START"},
        HIP_RIDGE: {"units_per_package": 25.0, "unit": "bundles",
                    "display_name": "GAF Seal-A-Ridge", "sku": "GAF-SEAL-A-RIDGE"},
        UNDERLAYMENT: {"units_per_package": 1000.0, "unit": "rolls",
                       "display_name": "GAF FeltBuster Synthetic Underlayment", "sku": "GAF-FELTBUSTER"},
    },
    "owenscorning": {
        "name": "Owens Corning",
        SHINGLES: {"units_per_package": 32.8, "unit": "bundles",
                   "display_name": "Owens Corning Duration", "sku": "OC-DURATION"},
        STARTER: {"units_per_package": 105.0, "unit": "bundles",
                  "display_name": "Owens Corning Starter Strip Plus", "sku": "OC-STARTER-PLUS"},
        HIP_RIDGE: {"units_per_package": 33.0, "unit": "bundles",
                    "display_name": "Owens Corning ProEdge Hip & Ridge", "sku": "OC-PROEDGE"},
        UNDERLAYMENT: {"units_per_package": 1000.0, "unit": "rolls",
                       "display_name": "Owens Corning ProArmor Synthetic Underlayment", "sku": "OC-PROARMOR"},
    },
    "certainteed": {
        "name": "CertainTeed",
        SHINGLES: {"units_per_package": 33.3, "unit": "bundles",
                   "display_name": "CertainTeed Landmark", "sku": "CT-LANDMARK"},
        STARTER: {"units_per_package": 116.25, "unit": "bundles",
                  "display_name": "CertainTeed SwiftStart Starter", "sku": "CT-SWIFTSTART"},
        HIP_RIDGE: {"units_per_package": 30.0, "unit": "bundles",
                    "display_name": "CertainTeed Shadow Ridge", "sku": "CT-SHADOW-RIDGE"},
        UNDERLAYMENT: {"units_per_package": 1000.0, "unit": "rolls",
                       "display_name": "CertainTeed RoofRunner Synthetic Underlayment", "sku": "CT-ROOFRUNNER"},
    },
    "tamko": {
        "name": "Tamko",
        SHINGLES: {"units_per_package": 33.3, "unit": "bundles",
                   "display_name": "Tamko Heritage", "sku": "TAMKO-HERITAGE"},
    },
}

MANUFACTURER_ALIASES = {
    "oc": "owenscorning",
    "owens": "owenscorning",
    "ct": "certainteed",
    "gafmaterials": "gaf",
}


def normalize_manufacturer(name: str) -> str:
    """'Owens-Corning', 'owens corning' and 'OWENS CORNING' all resolve to 'owenscorning'."""
    key = re.sub(r"[^a-z0-9]+", "", str(name or "").lower())
    return MANUFACTURER_ALIASES.get(key, key)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(os.path.dirname(__file__), "..", "..", path)


def load_overrides(path: str) -> dict:
    """Load catalog overrides keyed by manufacturer ('generic' allowed), then category."""
    try:
        with open(_resolve_path(path)) as f:
            overrides = json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as e:
        # A broken config file should stop the service, not silently price with defaults
        raise ValueError(f"Invalid product catalog overrides in {path}: {e}")
    logger.info("Loaded product catalog overrides for %d manufacturers from %s", len(overrides), path)
    return overrides


_OVERRIDES = load_overrides(settings.CATALOG_OVERRIDES_PATH)


class ProductCatalog:
    """
    Resolves (manufacturer, category) to packaging coverage.

    Built once per calculation. Calculators ask for coverage per category and
    never need to know whether it came from an override, a manufacturer entry,
    or the generic fallback.
    """

    def __init__(self, overrides: dict = None):
        self._generic = copy.deepcopy(GENERIC_CATALOG)
        self._manufacturers = copy.deepcopy(MANUFACTURER_CATALOG)
        for manufacturer, categories in (overrides if overrides is not None else _OVERRIDES).items():
            key = normalize_manufacturer(manufacturer)
            target = self._generic if key == GENERIC else self._manufacturers.setdefault(key, {})
            for category, entry in categories.items():
                if category == "name":
                    target["name"] = entry
                    continue
                merged = dict(target.get(category) or self._generic.get(category) or {})
                merged.update(entry)
                target[category] = merged

    def is_catalogued(self, manufacturer: str) -> bool:
        return normalize_manufacturer(manufacturer) in self._manufacturers

    def manufacturer_name(self, manufacturer: str) -> str:
        """Canonical display name ('gaf' -> 'GAF'); unknown names are returned as typed."""
        entry = self._manufacturers.get(normalize_manufacturer(manufacturer))
        if entry and entry.get("name"):
            return entry["name"]
        return str(manufacturer).strip()

    def coverage_for(self, manufacturer: str, category: str) -> dict:
        """
        Returns {units_per_package, unit, display_name, sku} for a category.
        Falls back to the generic entry if the manufacturer or category isn't catalogued.
        Raises KeyError only for a category that doesn't exist at all.
        """
        entry = self._manufacturers.get(normalize_manufacturer(manufacturer), {})
        coverage = entry.get(category)
        if coverage is None:
            coverage = self._generic[category]
        return dict(coverage)

    def nail_coverage_squares_per_lb(self, manufacturer: str) -> float:
        return self.coverage_for(manufacturer, NAILS)["units_per_package"]
