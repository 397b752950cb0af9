"""
Tariff rating.

Annual cost of a tariff for a consumption profile:

    energy   = sum(price_kwh[p] * annualized_kwh[p])
    power    = sum(price_power[p] * contracted_kw[p] * days_per_year)
    fixed    = fixed_term_monthly * months_per_year
    subtotal = energy + power + fixed
    special  = subtotal * special_tax_rate
    vat      = (subtotal + special) * vat_rate
    total    = subtotal + special + vat

Values are kept unrounded; rounding happens only when results are shown.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from errors import NoTariffsError
from parse_result import CompanyCost, PeriodTotals, SupplyProfile, Tariff
from settings import SimulationSettings

log = logging.getLogger(__name__)


def _weighted_sum(prices: Sequence[float], quantities: Sequence[float]) -> float:
    return float(np.dot(np.asarray(prices, dtype=float), np.asarray(quantities, dtype=float)))


def rate_tariff(
    tariff: Tariff,
    consumption: Sequence[float],
    supply: SupplyProfile,
    settings: Optional[SimulationSettings] = None,
) -> CompanyCost:
    """Cost breakdown of one tariff for already-annualized per-period consumption."""
    settings = settings or SimulationSettings()

    energy_cost = _weighted_sum(tariff.price_kwh, consumption)
    power_cost = _weighted_sum(tariff.price_power, supply.contracted_power) * settings.days_per_year
    fixed_fee = tariff.fixed_term_monthly * settings.months_per_year

    subtotal = energy_cost + power_cost + fixed_fee
    special_tax = subtotal * settings.special_tax_rate
    vat = (subtotal + special_tax) * settings.vat_rate
    total_cost = subtotal + special_tax + vat

    return CompanyCost(
        id=tariff.id,
        name=tariff.company_name,
        fixed_fee=fixed_fee,
        consumption_cost=energy_cost,
        other_costs=power_cost,
        special_tax=special_tax,
        vat=vat,
        total_cost=total_cost,
        promo=tariff.promo,
    )


def rate_tariffs(
    totals: PeriodTotals,
    supply: SupplyProfile,
    tariffs: Sequence[Tariff],
    settings: Optional[SimulationSettings] = None,
) -> list[CompanyCost]:
    """
    Rate every tariff, in input order, against the annualized totals.

    Raises:
        NoTariffsError: The tariff list is empty.
    """
    if not tariffs:
        raise NoTariffsError()

    settings = settings or SimulationSettings()
    consumption = totals.annualized()
    costs = [rate_tariff(t, consumption, supply, settings) for t in tariffs]
    log.debug("Rated %d tariffs", len(costs))
    return costs
