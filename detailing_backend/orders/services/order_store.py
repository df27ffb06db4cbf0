# orders/services/order_store.py

"""
ORDER STORE (dispatcher)

Wraps the pure reducer with:
- pre-dispatch validation (rejected actions never touch state)
- an append-only action log (replayable)
- subscriber notification
- over-discount warnings

One store per open ticket or draft quote. Not shared across threads.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from shared.clock import Clock, system_clock

from . import actions as a
from .coupons import CouponRule, apply_coupon
from .loyalty import DEFAULT_LOYALTY_POLICY, LoyaltyPolicy
from .order_reducer import reduce_order
from .order_state import OrderState
from .order_validation import validate_action

logger = logging.getLogger(__name__)

Subscriber = Callable[[OrderState, a.OrderAction], None]


class OrderStore:
    def __init__(
        self,
        initial_state: Optional[OrderState] = None,
        *,
        clock: Clock = system_clock,
        loyalty: LoyaltyPolicy = DEFAULT_LOYALTY_POLICY,
    ):
        self._state = initial_state if initial_state is not None else OrderState()
        self._clock = clock
        self._loyalty = loyalty
        self._log: list[a.OrderAction] = []
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> OrderState:
        return self._state

    @property
    def actions(self) -> tuple[a.OrderAction, ...]:
        return tuple(self._log)

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        self._subscribers.append(fn)

        def unsubscribe():
            if fn in self._subscribers:
                self._subscribers.remove(fn)

        return unsubscribe

    def dispatch(self, action: a.OrderAction) -> OrderState:
        validate_action(self._state, action, loyalty=self._loyalty)
        return self._commit(action)

    def _commit(self, action: a.OrderAction) -> OrderState:
        previous = self._state
        new_state = reduce_order(previous, action)

        self._state = new_state
        self._log.append(action)

        if new_state.is_over_discounted and not previous.is_over_discounted:
            logger.warning(
                "Order discounts exceed subtotal + tax; total clamped to zero",
                extra={
                    "subtotal": str(new_state.subtotal),
                    "tax_amount": str(new_state.tax_amount),
                    "discount_amount": str(new_state.discount_amount),
                    "action": type(action).__name__,
                },
            )

        for fn in list(self._subscribers):
            fn(new_state, action)

        return new_state

    # ------------------------------------------------------------
    # Convenience dispatchers that need the clock / policies
    # ------------------------------------------------------------

    def apply_coupon(self, rule: CouponRule) -> OrderState:
        coupon = apply_coupon(rule, self._state.subtotal, self._clock.now())
        return self.dispatch(a.SetCoupon(coupon=coupon))

    def redeem_loyalty(self, points: int) -> OrderState:
        discount = self._loyalty.discount_for(points)
        return self.dispatch(a.SetLoyaltyRedeem(points=points, discount=discount))

    # ------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------

    @classmethod
    def replay(
        cls,
        actions: Iterable[a.OrderAction],
        *,
        initial_state: Optional[OrderState] = None,
        **kwargs,
    ) -> "OrderStore":
        """
        Rebuild a store from a recorded log.

        Actions were validated when first dispatched; coupon windows may since
        have closed, so replay reduces without re-validating.
        """
        store = cls(initial_state, **kwargs)
        for action in actions:
            store._commit(action)
        return store
