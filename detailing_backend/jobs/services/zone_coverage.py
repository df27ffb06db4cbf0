# jobs/services/zone_coverage.py

"""
ZONE COVERAGE TRACKER

Counts photographed body zones against per-phase / per-region minimums.

Rules:
- A zone is covered by ONE photo; extra photos of the same zone add nothing.
- Region is derived from the zone key prefix (exterior_* / interior_*).
- Phase-completing transitions need BOTH regions met; the report says exactly
  which region is short and by how many zones.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

REGION_EXTERIOR = "exterior"
REGION_INTERIOR = "interior"
REGIONS = (REGION_EXTERIOR, REGION_INTERIOR)

PHASE_INTAKE = "intake"
PHASE_PROGRESS = "progress"
PHASE_COMPLETION = "completion"

PHASE_CHOICES = [
    (PHASE_INTAKE, "Intake"),
    (PHASE_PROGRESS, "Progress"),
    (PHASE_COMPLETION, "Completion"),
]
PHASES = {value for value, _ in PHASE_CHOICES}

EXTERIOR_ZONES = (
    "exterior_front",
    "exterior_rear",
    "exterior_driver_side",
    "exterior_passenger_side",
    "exterior_hood",
    "exterior_roof",
    "exterior_trunk",
    "exterior_wheels",
)

INTERIOR_ZONES = (
    "interior_dashboard",
    "interior_console",
    "interior_seats_front",
    "interior_seats_rear",
    "interior_carpet",
    "interior_door_panels",
    "interior_trunk_cargo",
)

ZONES = EXTERIOR_ZONES + INTERIOR_ZONES

ZONE_CHOICES = [(z, z.split("_", 1)[1].replace("_", " ").title()) for z in ZONES]

_ZONES_BY_REGION = {
    REGION_EXTERIOR: frozenset(EXTERIOR_ZONES),
    REGION_INTERIOR: frozenset(INTERIOR_ZONES),
}


def region_of(zone: str) -> Optional[str]:
    if zone in _ZONES_BY_REGION[REGION_EXTERIOR]:
        return REGION_EXTERIOR
    if zone in _ZONES_BY_REGION[REGION_INTERIOR]:
        return REGION_INTERIOR
    return None


# ============================================================
# REQUIREMENTS
# ============================================================


@dataclass(frozen=True)
class ZoneRequirements:
    minimums: Mapping[str, Mapping[str, int]] = field(
        default_factory=lambda: {
            PHASE_INTAKE: {REGION_EXTERIOR: 4, REGION_INTERIOR: 2},
            PHASE_COMPLETION: {REGION_EXTERIOR: 4, REGION_INTERIOR: 2},
        }
    )

    def minimum(self, phase: str, region: str) -> int:
        return int((self.minimums.get(phase) or {}).get(region, 0))

    @classmethod
    def from_config(cls, raw: Optional[Mapping]) -> "ZoneRequirements":
        if not raw:
            return cls()
        minimums = {
            phase: {region: int(count) for region, count in (regions or {}).items()}
            for phase, regions in raw.items()
        }
        return cls(minimums=minimums)


DEFAULT_ZONE_REQUIREMENTS = ZoneRequirements()


# ============================================================
# COUNTING
# ============================================================


def zone_counts(photos: Iterable, phase: Optional[str] = None) -> dict[str, int]:
    """
    zone -> photo count. Photos need `.zone` and `.phase`.
    """
    counts = Counter()
    for photo in photos:
        if phase is not None and photo.phase != phase:
            continue
        if photo.zone:
            counts[photo.zone] += 1
    return dict(counts)


def covered_zones(counts: Mapping[str, int], region: str) -> int:
    zones = _ZONES_BY_REGION.get(region, frozenset())
    return sum(1 for zone in zones if counts.get(zone, 0) >= 1)


def is_met(
    counts: Mapping[str, int],
    region: str,
    phase: str,
    requirements: ZoneRequirements = DEFAULT_ZONE_REQUIREMENTS,
) -> bool:
    return covered_zones(counts, region) >= requirements.minimum(phase, region)


# ============================================================
# REPORT
# ============================================================


@dataclass(frozen=True)
class RegionCoverage:
    region: str
    covered: int
    required: int

    @property
    def missing(self) -> int:
        return max(0, self.required - self.covered)

    @property
    def is_met(self) -> bool:
        return self.missing == 0


@dataclass(frozen=True)
class CoverageReport:
    phase: str
    regions: tuple[RegionCoverage, ...]

    @property
    def is_met(self) -> bool:
        return all(r.is_met for r in self.regions)

    def for_region(self, region: str) -> Optional[RegionCoverage]:
        return next((r for r in self.regions if r.region == region), None)

    def shortfall_message(self) -> str:
        parts = []
        for r in self.regions:
            if r.missing:
                noun = "zone" if r.missing == 1 else "zones"
                parts.append(f"{r.missing} more {r.region} {noun}")
        return " and ".join(parts)

    def as_dict(self) -> dict:
        return {
            "phase": self.phase,
            "is_met": self.is_met,
            "regions": [
                {"region": r.region, "covered": r.covered, "required": r.required, "missing": r.missing}
                for r in self.regions
            ],
        }


def coverage_report(
    photos: Iterable,
    phase: str,
    requirements: ZoneRequirements = DEFAULT_ZONE_REQUIREMENTS,
) -> CoverageReport:
    counts = zone_counts(photos, phase)
    return CoverageReport(
        phase=phase,
        regions=tuple(
            RegionCoverage(
                region=region,
                covered=covered_zones(counts, region),
                required=requirements.minimum(phase, region),
            )
            for region in REGIONS
        ),
    )
