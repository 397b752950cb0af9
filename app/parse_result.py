"""
Shared data structures for the tariff simulation pipeline.

Used by the decoder, section locator, aggregator, rating engine and ranker
to hand results from one stage to the next.
"""

import json
from dataclasses import dataclass, field, asdict, replace
from datetime import date
from enum import Enum
from typing import Optional

import pandas as pd

from settings import PERIODS


class FileKind(Enum):
    """Declared kind of an uploaded meter export."""
    DELIMITED_TEXT = "delimited-text"
    SPREADSHEET = "spreadsheet"


@dataclass(frozen=True)
class Section:
    """A named region of the raw grid located by a marker string."""
    name: str
    marker: str
    marker_row: int
    header_row: int
    data_start: int
    data_end: int  # exclusive

    @property
    def data_rows(self) -> range:
        return range(self.data_start, self.data_end)

    @property
    def row_count(self) -> int:
        return max(self.data_end - self.data_start, 0)


@dataclass(frozen=True)
class FieldMap:
    """Maps semantic field names to column indices in a section's header row."""
    section: str
    columns: dict[str, int]
    headers: tuple[str, ...] = ()

    def has(self, field_name: str) -> bool:
        return field_name in self.columns

    def index_of(self, field_name: str) -> Optional[int]:
        return self.columns.get(field_name)


@dataclass
class DataQualityIssue:
    """A single data quality finding."""
    category: str          # e.g. "invalid_dates", "outside_window"
    severity: str          # "info", "warning", "error"
    message: str
    affected_rows: int = 0


@dataclass(frozen=True)
class PeriodTotals:
    """Raw per-period consumption over the one-year window, plus its scaling."""
    p1: float = 0.0
    p2: float = 0.0
    p3: float = 0.0
    p4: float = 0.0
    p5: float = 0.0
    p6: float = 0.0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    observed_days: int = 0
    rows_used: int = 0
    annualization_factor: float = 1.0
    issues: tuple[DataQualityIssue, ...] = ()

    @property
    def total_kwh(self) -> float:
        return sum(self.period_values())

    def period_values(self) -> tuple[float, ...]:
        return tuple(getattr(self, p) for p in PERIODS)

    def annualized(self) -> tuple[float, ...]:
        """Per-period consumption scaled to a 365-day year."""
        factor = self.annualization_factor
        return tuple(value * factor for value in self.period_values())


@dataclass(frozen=True)
class SupplyProfile:
    """Contracted power (kW) for each of the six periods."""
    contracted_power: tuple[float, ...] = (0.0,) * len(PERIODS)

    def __post_init__(self):
        if len(self.contracted_power) != len(PERIODS):
            raise ValueError(
                f"contracted_power needs {len(PERIODS)} values, got {len(self.contracted_power)}"
            )


@dataclass(frozen=True)
class Tariff:
    """A pricing plan offered by one company. Read-only input to rating."""
    id: str
    company_name: str
    price_kwh: tuple[float, ...]     # EUR/kWh per period
    price_power: tuple[float, ...]   # EUR/kW/day per period
    fixed_term_monthly: float        # EUR/month
    promo: str = ""
    surplus_compensation_price: float = 0.0  # EUR/kWh, not part of totals

    def __post_init__(self):
        for name in ("price_kwh", "price_power"):
            values = getattr(self, name)
            if len(values) != len(PERIODS):
                raise ValueError(
                    f"Tariff '{self.company_name}': {name} needs {len(PERIODS)} values, "
                    f"got {len(values)}"
                )


@dataclass(frozen=True)
class CompanyCost:
    """Annual cost of one tariff for the uploaded consumption."""
    id: str
    name: str
    fixed_fee: float
    consumption_cost: float
    other_costs: float      # contracted power cost
    special_tax: float
    vat: float
    total_cost: float
    rank: int = 0
    promo: str = ""

    @property
    def subtotal(self) -> float:
        return self.fixed_fee + self.consumption_cost + self.other_costs

    def with_rank(self, rank: int) -> "CompanyCost":
        return replace(self, rank=rank)


@dataclass(frozen=True)
class BestOption:
    """Cheapest tariff and the saving versus the user's current plan."""
    company_name: str
    savings: float
    current_plan_found: bool


@dataclass
class SimulationResult:
    """Unified output of a successful simulation run."""
    total_kwh_p1: float
    total_kwh_p2: float
    total_kwh_p3: float
    total_kwh_p4: float
    total_kwh_p5: float
    total_kwh_p6: float
    total_kwh: float
    period: str
    best_option: BestOption
    details: list[CompanyCost] = field(default_factory=list)
    observed_days: int = 0
    annualization_factor: float = 1.0
    warnings: list[str] = field(default_factory=list)

    @property
    def ranked_names(self) -> list[str]:
        return [d.name for d in self.details]

    # ---- serialization helpers ----

    def to_dict(self) -> dict:
        """Serialize to the summary/details layout consumed by the UI."""
        d = asdict(self)
        details = d.pop("details")
        warnings = d.pop("warnings")
        return {"summary": d, "details": details, "warnings": warnings}

    def to_json(self, **kwargs) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str, **kwargs)

    @classmethod
    def from_dict(cls, d: dict) -> "SimulationResult":
        """Construct from a plain dict (inverse of to_dict)."""
        summary = dict(d.get("summary", {}))
        best_raw = summary.pop("best_option", {}) or {}
        best = BestOption(**best_raw) if isinstance(best_raw, dict) else best_raw
        details = [
            CompanyCost(**item) if isinstance(item, dict) else item
            for item in d.get("details", [])
        ]
        known = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in summary.items() if k in known}
        return cls(
            best_option=best,
            details=details,
            warnings=list(d.get("warnings", [])),
            **filtered,
        )


def empty_grid() -> pd.DataFrame:
    """A grid with no rows, used when a decoder finds nothing to keep."""
    return pd.DataFrame(dtype=object)
