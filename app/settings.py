"""
Simulation settings.

Tax rates, section markers and header names are jurisdiction/format policy
rather than algorithm, so they live here instead of in the pipeline modules.
Defaults match Spanish distributor exports and Spanish electricity taxation.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

PERIODS = ("p1", "p2", "p3", "p4", "p5", "p6")

SUPPLY_SECTION = "supply"
READING_SECTION = "readings"


def _consumption_aliases() -> dict[str, tuple[str, ...]]:
    return {
        p: (f"Consumo Activa {p.upper()}", f"Consumo activa {p.upper()}")
        for p in PERIODS
    }


def _power_aliases() -> dict[str, tuple[str, ...]]:
    return {
        f"power_{p}": (
            f"Potencia contratada {p.upper()}",
            f"Potencia Contratada {p.upper()}",
            f"Potencia {p.upper()}",
        )
        for p in PERIODS
    }


@dataclass(frozen=True)
class SimulationSettings:
    """Immutable configuration for one simulation run."""
    special_tax_rate: float = 0.005
    vat_rate: float = 0.21
    days_per_year: int = 365
    months_per_year: int = 12

    # Rows between a section marker and its header row, on the cleaned grid
    header_offset: int = 1

    section_markers: dict[str, str] = field(default_factory=lambda: {
        SUPPLY_SECTION: "Datos suministro",
        READING_SECTION: "Datos lecturas",
    })
    reading_date_aliases: tuple[str, ...] = (
        "Fecha lectura", "Fecha de lectura", "Fecha",
    )
    consumption_aliases: dict[str, tuple[str, ...]] = field(
        default_factory=_consumption_aliases
    )
    power_aliases: dict[str, tuple[str, ...]] = field(
        default_factory=_power_aliases
    )

    current_plan_name: str = "Tu Compañía Actual"
    gemini_model: str = "gemini-2.0-flash"

    @classmethod
    def from_env(cls) -> "SimulationSettings":
        """Build settings from defaults overridden by SIM_* environment variables."""
        base = cls()
        overrides: dict = {}

        special = os.environ.get("SIM_SPECIAL_TAX_RATE", "").strip()
        if special:
            overrides["special_tax_rate"] = _env_float("SIM_SPECIAL_TAX_RATE", special)

        vat = os.environ.get("SIM_VAT_RATE", "").strip()
        if vat:
            overrides["vat_rate"] = _env_float("SIM_VAT_RATE", vat)

        offset = os.environ.get("SIM_HEADER_OFFSET", "").strip()
        if offset:
            try:
                overrides["header_offset"] = max(1, int(offset))
            except ValueError:
                raise ValueError(f"SIM_HEADER_OFFSET must be an integer, got {offset!r}")

        current = os.environ.get("SIM_CURRENT_PLAN_NAME", "").strip()
        if current:
            overrides["current_plan_name"] = current

        model = os.environ.get("GEMINI_MODEL", "").strip()
        if model:
            overrides["gemini_model"] = model

        return replace(base, **overrides) if overrides else base


def _env_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value
