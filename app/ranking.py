"""Ranking of rated tariffs and savings versus the current plan."""
from __future__ import annotations

from typing import Sequence

from parse_result import BestOption, CompanyCost


def rank_costs(costs: Sequence[CompanyCost]) -> list[CompanyCost]:
    """Sort by total cost ascending and assign ranks 1..N.

    ``sorted`` is stable, so tariffs with equal totals keep their input order
    and still get distinct consecutive ranks.
    """
    ordered = sorted(costs, key=lambda c: c.total_cost)
    return [cost.with_rank(i) for i, cost in enumerate(ordered, start=1)]


def best_option(ranked: Sequence[CompanyCost], current_plan_name: str) -> BestOption:
    """Rank-1 tariff plus the saving against the tariff named ``current_plan_name``.

    Savings are floored at zero. When no tariff carries the current plan's
    name the saving is 0.0 and ``current_plan_found`` is False.
    """
    if not ranked:
        raise ValueError("Cannot pick a best option from an empty ranking")

    best = ranked[0]
    current = next((c for c in ranked if c.name == current_plan_name), None)
    if current is None:
        return BestOption(company_name=best.name, savings=0.0, current_plan_found=False)

    savings = max(0.0, current.total_cost - best.total_cost)
    return BestOption(company_name=best.name, savings=savings, current_plan_found=True)
