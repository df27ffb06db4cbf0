# catalog/services/pricing.py

"""
PRICING RESOLVER

Pure functions mapping (pricing tier, vehicle size) -> unit price.

Rules:
- Non-size-aware tiers (or unknown vehicle size) always use the base price.
- Size-aware tiers use the size-specific override when present, else the base
  price. A missing override is a normal fallback, not an error.
- No DB access, no settings access, no clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.money import to_money

# ============================================================
# VEHICLE SIZE CLASSES
# ============================================================

SIZE_SEDAN = "sedan"
SIZE_TRUCK_SUV_2ROW = "truck_suv_2row"
SIZE_SUV_3ROW_VAN = "suv_3row_van"

VEHICLE_SIZE_CHOICES = [
    (SIZE_SEDAN, "Sedan"),
    (SIZE_TRUCK_SUV_2ROW, "Truck/SUV (2-Row)"),
    (SIZE_SUV_3ROW_VAN, "SUV (3-Row) / Van"),
]

VEHICLE_SIZE_CLASSES = {value for value, _ in VEHICLE_SIZE_CHOICES}

# size class -> PricingTier attribute holding its override
_SIZE_OVERRIDE_FIELD = {
    SIZE_SEDAN: "sedan_price",
    SIZE_TRUCK_SUV_2ROW: "truck_suv_price",
    SIZE_SUV_3ROW_VAN: "suv_van_price",
}


class PricingUnavailableError(Exception):
    """Raised when a service has no usable pricing tier for an add-to-order action."""


# ============================================================
# TYPES
# ============================================================


@dataclass(frozen=True)
class PricingTier:
    tier_name: str
    price: Decimal
    tier_label: str = ""
    is_vehicle_size_aware: bool = False
    sedan_price: Optional[Decimal] = None
    truck_suv_price: Optional[Decimal] = None
    suv_van_price: Optional[Decimal] = None

    @property
    def display_label(self) -> str:
        return self.tier_label or self.tier_name

    def override_for(self, vehicle_size_class: Optional[str]) -> Optional[Decimal]:
        field_name = _SIZE_OVERRIDE_FIELD.get(vehicle_size_class or "")
        if not field_name:
            return None
        return getattr(self, field_name)

    @classmethod
    def from_record(cls, record) -> "PricingTier":
        """
        Build from any object/dict carrying the tier columns
        (ServicePricingTier model instance or an API payload).
        """

        def _get(name, default=None):
            if isinstance(record, dict):
                return record.get(name, default)
            return getattr(record, name, default)

        def _opt_money(name):
            raw = _get(name)
            return None if raw is None or raw == "" else to_money(raw)

        return cls(
            tier_name=str(_get("tier_name", "") or ""),
            tier_label=str(_get("tier_label", "") or ""),
            price=to_money(_get("price")),
            is_vehicle_size_aware=bool(_get("is_vehicle_size_aware", False)),
            sedan_price=_opt_money("sedan_price"),
            truck_suv_price=_opt_money("truck_suv_price"),
            suv_van_price=_opt_money("suv_van_price"),
        )


# ============================================================
# RESOLUTION
# ============================================================


def resolve_price(tier: PricingTier, vehicle_size_class: Optional[str]) -> Decimal:
    if not tier.is_vehicle_size_aware or not vehicle_size_class:
        return to_money(tier.price)

    override = tier.override_for(vehicle_size_class)
    if override is None:
        return to_money(tier.price)

    return to_money(override)


def price_range(tier: PricingTier) -> tuple[Decimal, Decimal]:
    """
    (min, max) for display before a vehicle is known.
    """
    base = to_money(tier.price)
    if not tier.is_vehicle_size_aware:
        return base, base

    candidates = [base]
    for size_class in _SIZE_OVERRIDE_FIELD:
        override = tier.override_for(size_class)
        if override is not None:
            candidates.append(to_money(override))

    return min(candidates), max(candidates)


def tiers_price_range(tiers) -> Optional[tuple[Decimal, Decimal]]:
    ranges = [price_range(t) for t in tiers]
    if not ranges:
        return None
    return min(r[0] for r in ranges), max(r[1] for r in ranges)


def service_price_range(service) -> Optional[tuple[Decimal, Decimal]]:
    """
    Display range for a whole service (any object exposing is_per_unit,
    per_unit_price, per_unit_max and tiers).

    Per-unit services range from one unit to the per-unit cap.
    """
    if getattr(service, "is_per_unit", False):
        unit = to_money(service.per_unit_price)
        top = unit * Decimal(service.per_unit_max or 1)
        return unit, to_money(top)
    return tiers_price_range(service.tiers)
