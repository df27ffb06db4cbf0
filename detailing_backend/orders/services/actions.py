# orders/services/actions.py

"""
ORDER ACTIONS

Each action is an immutable record. New line ids are generated when the action
is built (not inside the reducer) so replaying a log rebuilds the same state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from catalog.services.definitions import ProductDefinition, ServiceDefinition

from .order_state import AppliedCoupon, CustomerRef, OrderState, VehicleRef


def new_item_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class OrderAction:
    pass


@dataclass(frozen=True)
class AddProduct(OrderAction):
    product: ProductDefinition
    quantity: int = 1
    item_id: str = field(default_factory=new_item_id)
    locked: bool = False


@dataclass(frozen=True)
class AddService(OrderAction):
    service: ServiceDefinition
    tier_name: Optional[str] = None
    vehicle_size_class: Optional[str] = None
    per_unit_qty: Optional[int] = None
    item_id: str = field(default_factory=new_item_id)
    locked: bool = False


@dataclass(frozen=True)
class AddCustomItem(OrderAction):
    name: str
    unit_price: Decimal
    is_taxable: bool = False
    quantity: int = 1
    item_id: str = field(default_factory=new_item_id)


@dataclass(frozen=True)
class UpdateItemQuantity(OrderAction):
    item_id: str
    quantity: int


@dataclass(frozen=True)
class UpdatePerUnitQuantity(OrderAction):
    item_id: str
    per_unit_qty: int


@dataclass(frozen=True)
class RemoveItem(OrderAction):
    item_id: str


@dataclass(frozen=True)
class UpdateItemNote(OrderAction):
    item_id: str
    note: str


@dataclass(frozen=True)
class SetCustomer(OrderAction):
    customer: Optional[CustomerRef]


@dataclass(frozen=True)
class SetVehicle(OrderAction):
    vehicle: Optional[VehicleRef]


@dataclass(frozen=True)
class RecalculateVehiclePrices(OrderAction):
    vehicle: Optional[VehicleRef]
    services: tuple[ServiceDefinition, ...] = ()


@dataclass(frozen=True)
class SetCoupon(OrderAction):
    coupon: Optional[AppliedCoupon]


@dataclass(frozen=True)
class SetLoyaltyRedeem(OrderAction):
    points: int
    discount: Decimal


@dataclass(frozen=True)
class ApplyManualDiscount(OrderAction):
    kind: str
    value: Decimal
    label: str = ""


@dataclass(frozen=True)
class RemoveManualDiscount(OrderAction):
    pass


@dataclass(frozen=True)
class SetNotes(OrderAction):
    notes: str


@dataclass(frozen=True)
class Clear(OrderAction):
    pass


@dataclass(frozen=True)
class RestoreOrder(OrderAction):
    state: OrderState


ALL_ACTIONS = (
    AddProduct,
    AddService,
    AddCustomItem,
    UpdateItemQuantity,
    UpdatePerUnitQuantity,
    RemoveItem,
    UpdateItemNote,
    SetCustomer,
    SetVehicle,
    RecalculateVehiclePrices,
    SetCoupon,
    SetLoyaltyRedeem,
    ApplyManualDiscount,
    RemoveManualDiscount,
    SetNotes,
    Clear,
    RestoreOrder,
)
