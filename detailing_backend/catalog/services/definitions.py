# catalog/services/definitions.py

"""
CATALOG DEFINITIONS (immutable snapshots)

The order and job cores never touch the ORM. Adapters convert catalog rows into
these snapshots and pass them in as parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from shared.money import to_money

from .pricing import PricingTier, PricingUnavailableError, service_price_range

PRICING_MODEL_VEHICLE_SIZE = "vehicle_size"
PRICING_MODEL_SCOPE = "scope"
PRICING_MODEL_PER_UNIT = "per_unit"
PRICING_MODEL_FLAT = "flat"

PRICING_MODEL_CHOICES = [
    (PRICING_MODEL_VEHICLE_SIZE, "Vehicle Size"),
    (PRICING_MODEL_SCOPE, "Scope"),
    (PRICING_MODEL_PER_UNIT, "Per Unit"),
    (PRICING_MODEL_FLAT, "Flat Rate"),
]


@dataclass(frozen=True)
class ProductDefinition:
    id: str
    name: str
    retail_price: Decimal
    is_taxable: bool = True

    @classmethod
    def from_model(cls, product) -> "ProductDefinition":
        return cls(
            id=str(product.id),
            name=product.name,
            retail_price=to_money(product.retail_price),
            is_taxable=bool(product.is_taxable),
        )


@dataclass(frozen=True)
class ServiceDefinition:
    id: str
    name: str
    is_taxable: bool = False
    pricing_model: str = PRICING_MODEL_FLAT
    tiers: tuple[PricingTier, ...] = field(default_factory=tuple)
    per_unit_price: Optional[Decimal] = None
    per_unit_label: Optional[str] = None
    per_unit_max: Optional[int] = None

    @property
    def is_per_unit(self) -> bool:
        return self.pricing_model == PRICING_MODEL_PER_UNIT and self.per_unit_price is not None

    def find_tier(self, tier_name: Optional[str]) -> Optional[PricingTier]:
        if not tier_name:
            return None
        for tier in self.tiers:
            if tier.tier_name == tier_name:
                return tier
        return None

    def require_tier(self, tier_name: Optional[str] = None) -> PricingTier:
        """
        Resolve the tier to sell.

        - explicit tier_name must exist
        - without a tier_name, a single-tier service uses its only tier
        """
        if tier_name:
            tier = self.find_tier(tier_name)
            if tier is None:
                raise PricingUnavailableError(
                    f"No pricing available for '{self.name}' tier '{tier_name}'"
                )
            return tier

        if len(self.tiers) == 1:
            return self.tiers[0]

        if not self.tiers:
            raise PricingUnavailableError(f"No pricing available for '{self.name}'")

        raise PricingUnavailableError(
            f"'{self.name}' has {len(self.tiers)} pricing tiers; a tier must be chosen"
        )

    def price_range(self):
        return service_price_range(self)

    @classmethod
    def from_model(cls, service) -> "ServiceDefinition":
        tiers = tuple(PricingTier.from_record(t) for t in service.pricing_tiers.all())
        per_unit_price = service.per_unit_price
        return cls(
            id=str(service.id),
            name=service.name,
            is_taxable=bool(service.is_taxable),
            pricing_model=service.pricing_model,
            tiers=tiers,
            per_unit_price=to_money(per_unit_price) if per_unit_price is not None else None,
            per_unit_label=service.per_unit_label or None,
            per_unit_max=service.per_unit_max,
        )
