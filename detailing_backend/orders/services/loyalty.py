# orders/services/loyalty.py

"""
LOYALTY REDEMPTION POLICY

Points redeem at a fixed dollar rate with a minimum redemption.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from shared.money import to_decimal, to_money


@dataclass(frozen=True)
class LoyaltyPolicy:
    redeem_rate: Decimal = Decimal("0.05")
    redeem_minimum: int = 100

    def discount_for(self, points: int) -> Decimal:
        return to_money(Decimal(int(points or 0)) * self.redeem_rate)

    @classmethod
    def from_settings(cls) -> "LoyaltyPolicy":
        return cls(
            redeem_rate=to_decimal(getattr(settings, "LOYALTY_REDEEM_RATE", "0.05")),
            redeem_minimum=int(getattr(settings, "LOYALTY_REDEEM_MINIMUM", 100)),
        )


DEFAULT_LOYALTY_POLICY = LoyaltyPolicy()
