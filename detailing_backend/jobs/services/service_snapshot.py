# jobs/services/service_snapshot.py

"""
JOB SERVICE SNAPSHOT

Freezes catalog pricing into ServiceLine rows when a job is created.
After this point catalog edits never change what the job charges.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from catalog.services.definitions import ServiceDefinition
from catalog.services.pricing import PricingUnavailableError, resolve_price
from shared.money import to_money

from .exceptions import JobValidationError
from .job_state import ServiceLine


def snapshot_service(
    definition: ServiceDefinition,
    *,
    tier_name: Optional[str] = None,
    vehicle_size_class: Optional[str] = None,
    per_unit_qty: Optional[int] = None,
) -> ServiceLine:
    if definition.is_per_unit:
        qty = int(per_unit_qty or 1)
        if definition.per_unit_max and qty > definition.per_unit_max:
            raise JobValidationError(
                f"'{definition.name}' allows at most {definition.per_unit_max} {definition.per_unit_label or 'units'}"
            )
        label = definition.per_unit_label or "units"
        return ServiceLine(
            id=definition.id,
            name=f"{definition.name} ({qty} {label})",
            price=to_money(definition.per_unit_price * qty),
            is_taxable=definition.is_taxable,
        )

    try:
        tier = definition.require_tier(tier_name)
    except PricingUnavailableError as exc:
        raise JobValidationError(str(exc)) from exc

    name = definition.name
    if len(definition.tiers) > 1 and tier.tier_label:
        name = f"{definition.name} - {tier.tier_label}"

    return ServiceLine(
        id=definition.id,
        name=name,
        price=resolve_price(tier, vehicle_size_class),
        is_taxable=definition.is_taxable,
    )


def snapshot_services(
    requests: Iterable[Mapping],
    definitions: Mapping[str, ServiceDefinition],
    *,
    vehicle_size_class: Optional[str] = None,
) -> tuple[ServiceLine, ...]:
    lines = []
    for request in requests:
        service_id = str(request.get("service_id"))
        definition = definitions.get(service_id)
        if definition is None:
            raise JobValidationError(f"Service {service_id} is not available")
        lines.append(
            snapshot_service(
                definition,
                tier_name=request.get("tier_name") or None,
                vehicle_size_class=vehicle_size_class,
                per_unit_qty=request.get("per_unit_qty"),
            )
        )
    return tuple(lines)
