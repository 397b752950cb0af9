"""
Simulation Orchestrator
========================

Wires Decoder → Section Locator → Field Resolver → Reading Aggregator →
Rating Engine → Ranker into a single entry point.

Usage:
    from orchestrator import run_simulation
    outcome = run_simulation(file_bytes, "lecturas.csv", tariffs)
    if outcome.success:
        print(outcome.data.to_json(indent=2))
    else:
        print(outcome.error, outcome.help_message)

``simulate`` raises the typed pipeline errors; ``run_simulation`` is the
boundary that turns them into a failed SimulationOutcome and asks the
optional text assistant for help or a summary.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from column_mapping import reading_field_specs, resolve_fields, supply_field_specs
from common.formatters import format_period_label
from errors import SimulationError
from llm_assist import TextAssistant, describe_failure
from parse_result import SimulationResult, Tariff
from ranking import best_option, rank_costs
from rating import rate_tariffs
from reading_aggregator import aggregate_readings, extract_readings, read_supply_profile
from section_locator import header_row, locate_sections
from settings import READING_SECTION, SUPPLY_SECTION, SimulationSettings
from upload_decoder import read_upload

log = logging.getLogger(__name__)

FALLBACK_HELP_MESSAGE = (
    "Make sure the Excel or CSV file is not corrupt and that it contains the "
    "'Datos suministro' and 'Datos lecturas' sections with the contracted power "
    "and consumption columns (P1 to P6)."
)
NO_SUMMARY_MESSAGE = "No summary available."


@dataclass
class SimulationOutcome:
    """Result handed to the presentation layer: success and failure never mix."""
    success: bool
    data: Optional[SimulationResult] = None
    error: Optional[str] = None
    help_message: Optional[str] = None
    ai_summary: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "error": self.error,
            "help_message": self.help_message,
            "ai_summary": self.ai_summary,
        }


def simulate(
    file_content: bytes,
    filename: str,
    tariffs: Sequence[Tariff],
    settings: Optional[SimulationSettings] = None,
    mime_type: Optional[str] = None,
) -> SimulationResult:
    """Run the full pipeline on one upload.

    Args:
        file_content: Raw upload bytes.
        filename: Original filename (for format detection).
        tariffs: Tariffs to compare, in the order ties should be broken.
        settings: Tax rates, markers and header names; defaults if None.
        mime_type: Optional declared MIME type.

    Returns:
        SimulationResult with annualized consumption and ranked costs.

    Raises:
        SimulationError: any of its subclasses, from the stage that failed.
    """
    settings = settings or SimulationSettings()

    grid = read_upload(file_content, filename, mime_type=mime_type)

    sections = locate_sections(grid, settings.section_markers, settings.header_offset)
    supply_section = sections[SUPPLY_SECTION]
    reading_section = sections[READING_SECTION]

    reading_map = resolve_fields(
        header_row(grid, reading_section),
        reading_field_specs(settings),
        reading_section.marker,
    )
    supply_map = resolve_fields(
        header_row(grid, supply_section),
        supply_field_specs(settings),
        supply_section.marker,
    )

    readings = extract_readings(grid, reading_section, reading_map)
    totals = aggregate_readings(readings, days_per_year=settings.days_per_year)
    supply = read_supply_profile(grid, supply_section, supply_map)

    costs = rate_tariffs(totals, supply, tariffs, settings)
    ranked = rank_costs(costs)
    best = best_option(ranked, settings.current_plan_name)

    annualized = totals.annualized()
    result = SimulationResult(
        total_kwh_p1=annualized[0],
        total_kwh_p2=annualized[1],
        total_kwh_p3=annualized[2],
        total_kwh_p4=annualized[3],
        total_kwh_p5=annualized[4],
        total_kwh_p6=annualized[5],
        total_kwh=sum(annualized),
        period=format_period_label(totals.start_date, totals.end_date),
        best_option=best,
        details=ranked,
        observed_days=totals.observed_days,
        annualization_factor=totals.annualization_factor,
        warnings=[issue.message for issue in totals.issues],
    )
    if not best.current_plan_found:
        result.warnings.append(
            f"Current plan '{settings.current_plan_name}' is not among the tariffs; savings not computed"
        )

    log.info(
        "Simulation of %s: %.0f kWh/year, best option %s (savings %.2f)",
        filename, result.total_kwh, best.company_name, best.savings,
    )
    return result


def _help_for(error: SimulationError, assistant: Optional[TextAssistant]) -> str:
    if assistant is None:
        return FALLBACK_HELP_MESSAGE
    try:
        message = assistant.explain_issue(describe_failure(error))
    except Exception as e:
        log.warning("Contextual help generation failed: %s", e)
        return FALLBACK_HELP_MESSAGE
    return message or FALLBACK_HELP_MESSAGE


def _summary_for(result: SimulationResult, assistant: Optional[TextAssistant], current_plan_name: str) -> Optional[str]:
    best = result.best_option
    if not best.current_plan_found or best.savings <= 0:
        return None
    if assistant is None:
        return NO_SUMMARY_MESSAGE
    try:
        summary = assistant.summarize_result(
            current_plan_name=current_plan_name,
            best_plan_name=best.company_name,
            estimated_savings=best.savings,
            total_consumption_kwh=result.total_kwh,
        )
    except Exception as e:
        log.warning("Result summary generation failed: %s", e)
        return NO_SUMMARY_MESSAGE
    return summary or NO_SUMMARY_MESSAGE


def run_simulation(
    file_content: bytes,
    filename: str,
    tariffs: Sequence[Tariff],
    settings: Optional[SimulationSettings] = None,
    mime_type: Optional[str] = None,
    assistant: Optional[TextAssistant] = None,
) -> SimulationOutcome:
    """Pipeline boundary: never raises for expected failures.

    A failed run carries the exact error text plus a help message; a
    successful run carries the result plus an optional summary. Assistant
    failures only ever replace the text with static fallback copy.
    """
    settings = settings or SimulationSettings()
    try:
        result = simulate(file_content, filename, tariffs, settings, mime_type)
    except SimulationError as e:
        log.warning("Simulation of %s failed: %s", filename, e)
        return SimulationOutcome(
            success=False,
            error=str(e),
            help_message=_help_for(e, assistant),
        )

    return SimulationOutcome(
        success=True,
        data=result,
        ai_summary=_summary_for(result, assistant, settings.current_plan_name),
    )


def build_history_record(
    result: SimulationResult,
    filename: str,
    user_id: str,
    timestamp: Optional[datetime] = None,
) -> dict:
    """The value a history store keeps for one simulation. Nothing is written here."""
    when = timestamp or datetime.now(timezone.utc)
    return {
        "user_id": user_id,
        "file_name": filename,
        "simulation_date": when.isoformat(),
        "result": result.to_dict(),
    }
