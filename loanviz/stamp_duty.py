"""Property purchase tax (stamp duty) from marginal bracket tables.

Each region has a standard table and optionally a first-time buyer table.
A table is a list of ``{"threshold": ..., "rate": ...}`` entries sorted by
threshold; the rate (percent) applies to the part of the price between that
threshold and the next one. Surcharges are percentages of the whole price;
a region may instead give additional properties their own band table.

The built-in tables can be replaced by a JSON file of the same shape, see
``load_rate_tables``.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .data_models import StampDutyBand, StampDutyResult
from .utils import Number, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

DEFAULT_RATE_TABLES: Dict[str, Dict[str, Any]] = {
    "england": {
        "name": "Stamp Duty Land Tax",
        "standard": [
            {"threshold": 0, "rate": 0},
            {"threshold": 125000, "rate": 2},
            {"threshold": 250000, "rate": 5},
            {"threshold": 925000, "rate": 10},
            {"threshold": 1500000, "rate": 12},
        ],
        "first_time_buyer": [
            {"threshold": 0, "rate": 0},
            {"threshold": 300000, "rate": 5},
        ],
        "first_time_buyer_ceiling": 500000,
        "additional_property_surcharge": 5,
        "non_resident_surcharge": 2,
    },
    "scotland": {
        "name": "Land and Buildings Transaction Tax",
        "standard": [
            {"threshold": 0, "rate": 0},
            {"threshold": 145000, "rate": 2},
            {"threshold": 250000, "rate": 5},
            {"threshold": 325000, "rate": 10},
            {"threshold": 750000, "rate": 12},
        ],
        "first_time_buyer": [
            {"threshold": 0, "rate": 0},
            {"threshold": 175000, "rate": 2},
            {"threshold": 250000, "rate": 5},
            {"threshold": 325000, "rate": 10},
            {"threshold": 750000, "rate": 12},
        ],
        "first_time_buyer_ceiling": None,
        "additional_property_surcharge": 8,
        "non_resident_surcharge": 0,
    },
    "wales": {
        "name": "Land Transaction Tax",
        "standard": [
            {"threshold": 0, "rate": 0},
            {"threshold": 225000, "rate": 6},
            {"threshold": 400000, "rate": 7.5},
            {"threshold": 750000, "rate": 10},
            {"threshold": 1500000, "rate": 12},
        ],
        # Higher rates replace the main bands instead of adding a flat surcharge
        "additional_property": [
            {"threshold": 0, "rate": 5},
            {"threshold": 180000, "rate": 8.5},
            {"threshold": 250000, "rate": 10},
            {"threshold": 400000, "rate": 12.5},
            {"threshold": 750000, "rate": 15},
            {"threshold": 1500000, "rate": 17},
        ],
        "non_resident_surcharge": 0,
    },
}
# Northern Ireland uses the SDLT bands
DEFAULT_RATE_TABLES["northern-ireland"] = DEFAULT_RATE_TABLES["england"]


def load_rate_tables(path: Path) -> Dict[str, Dict[str, Any]]:
    """Read replacement rate tables from a JSON file."""
    with Path(path).open("r", encoding="utf-8") as f:
        tables = json.load(f)
    if not isinstance(tables, dict):
        raise ValueError(f"Rate tables in {path} must be a JSON object keyed by region")
    for region, config in tables.items():
        if not isinstance(config, dict) or not isinstance(config.get("standard"), list):
            raise ValueError(f"Rate table for {region} in {path} needs a \"standard\" band list")
    return tables


def _band_breakdown(value: Decimal, table: List[Mapping[str, Any]]) -> List[StampDutyBand]:
    entries = sorted(table, key=lambda e: to_decimal(e["threshold"]))
    bands: List[StampDutyBand] = []
    for i, entry in enumerate(entries):
        start = to_decimal(entry["threshold"])
        end = to_decimal(entries[i + 1]["threshold"]) if i + 1 < len(entries) else None
        if value <= start:
            break
        top = value if end is None else min(value, end)
        value_in_band = top - start
        rate = to_decimal(entry["rate"])
        bands.append(
            StampDutyBand(
                start=start,
                end=end,
                rate=rate,
                value_in_band=value_in_band,
                tax_in_band=value_in_band * rate / 100,
            )
        )
    return bands


def calculate_stamp_duty(
    property_value: Number,
    region: str = "england",
    first_time_buyer: bool = False,
    additional_property: bool = False,
    non_resident: bool = False,
    tables: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> StampDutyResult:
    """Compute the tax due on a property purchase.

    First-time buyer relief applies only to a main residence priced within the
    region's relief ceiling; above it the standard table is used.

    Raises
    ------
    ValueError
        If ``region`` has no rate table.
    """
    tables = tables if tables is not None else DEFAULT_RATE_TABLES
    key = region.lower()
    if key not in tables:
        raise ValueError(f"Unknown stamp duty region: {region}. Known regions: {', '.join(sorted(tables))}")
    config = tables[key]
    value = max(to_decimal(property_value, default=ZERO), ZERO)

    relief = bool(first_time_buyer and not additional_property and config.get("first_time_buyer"))
    ceiling = config.get("first_time_buyer_ceiling")
    if relief and ceiling is not None and value > to_decimal(ceiling):
        logger.debug("Price %s above first-time buyer ceiling %s in %s", value, ceiling, key)
        relief = False
    if relief:
        table = config["first_time_buyer"]
    elif additional_property and config.get("additional_property"):
        table = config["additional_property"]
    else:
        table = config["standard"]

    bands = _band_breakdown(value, table)
    total_tax = sum((band.tax_in_band for band in bands), ZERO)

    surcharges: Dict[str, Decimal] = {}
    if additional_property and config.get("additional_property_surcharge"):
        surcharges["additional_property"] = value * to_decimal(config["additional_property_surcharge"]) / 100
    if non_resident and config.get("non_resident_surcharge"):
        surcharges["non_resident"] = value * to_decimal(config["non_resident_surcharge"]) / 100
    total_tax += sum(surcharges.values(), ZERO)

    effective_rate = total_tax / value * 100 if value > 0 else ZERO

    return StampDutyResult(
        property_value=value,
        region=key,
        tax_name=config.get("name", "Stamp Duty"),
        is_first_time_buyer=first_time_buyer,
        is_additional_property=additional_property,
        is_non_resident=non_resident,
        bands=bands,
        surcharges=surcharges,
        total_tax=total_tax,
        effective_rate=effective_rate,
    )
