from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class Metric(str, Enum):
    POPULATION = "population"
    HISPANIC = "hispanic"
    PROJECTED = "projected"


class Region(str, Enum):
    EAST = "east"
    WEST = "west"
    CENTRAL = "central"


class RowKind(str, Enum):
    POPULATION = "population"
    HISPANIC = "hispanic"


@dataclass(frozen=True)
class Row:
    """
    One measurement for one county.

    A source line yields at most two rows: a POPULATION row (left sub-table)
    and a HISPANIC row (right sub-table, hispanic and/or projected figures).
    Fields that do not apply to the row's kind are None, never 0.
    """
    county: str
    kind: RowKind
    population: Optional[float] = None
    hispanic_population: Optional[float] = None
    projected_population: Optional[float] = None
    region: Optional[Region] = None

    def value_for(self, metric: Metric) -> Optional[float]:
        if metric == Metric.POPULATION:
            return self.population
        if metric == Metric.HISPANIC:
            return self.hispanic_population
        if metric == Metric.PROJECTED:
            return self.projected_population
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "county": self.county,
            "kind": self.kind.value,
            "population": self.population,
            "hispanicPopulation": self.hispanic_population,
            "projectedPopulation": self.projected_population,
            "region": self.region.value if self.region else None,
        }


@dataclass(frozen=True)
class Totals:
    population: float = 0.0
    hispanic: float = 0.0
    projected: float = 0.0

    def get(self, metric: Metric) -> float:
        return getattr(self, Metric(metric).value)

    def to_dict(self) -> Dict[str, float]:
        return {
            "population": self.population,
            "hispanic": self.hispanic,
            "projected": self.projected,
        }


def _empty_region_totals() -> Dict[Region, Totals]:
    return {region: Totals() for region in Region}


@dataclass(frozen=True)
class Snapshot:
    """
    Complete result of one ingestion pass: rows plus grand and per-region totals.

    Never mutated after construction; a reload builds a new Snapshot and the
    store swaps the reference.
    """
    rows: Tuple[Row, ...] = ()
    totals: Totals = field(default_factory=Totals)
    region_totals: Mapping[Region, Totals] = field(default_factory=_empty_region_totals, hash=False)

    def __post_init__(self) -> None:
        # Read-only view over a private copy, so callers cannot patch totals in place
        object.__setattr__(self, "region_totals", MappingProxyType(dict(self.region_totals)))

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    def region_total(self, region: Region, metric: Metric) -> float:
        return self.region_totals.get(Region(region), Totals()).get(metric)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "totals": self.totals.to_dict(),
            "regionTotals": {r.value: t.to_dict() for r, t in self.region_totals.items()},
        }


@dataclass
class Answer:
    answer: str
    meta: Dict[str, Any]

    @property
    def type(self) -> str:
        return str(self.meta.get("type", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"answer": self.answer, "meta": dict(self.meta)}
