"""Formatting utilities for simulation results.

Currency, kWh and date-range helpers used when results are shown to people
or handed to the text-generation collaborator. Pipeline values stay
unrounded; rounding belongs here.
"""
from __future__ import annotations

from datetime import date


def round_money(value: float | None) -> float | None:
    """Round a euro amount to cents for display."""
    if value is None:
        return None
    return round(value, 2)


def format_currency(value: float | None, symbol: str = "\u20ac") -> str:
    """Format a value as EUR in Spanish style (1.234,56 €), or a dash if None."""
    if value is None:
        return "\u2014"
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} {symbol}"


def format_kwh(value: float | None, precision: int = 0) -> str:
    """Format a kWh value with thousands dots (Spanish style)."""
    if value is None:
        return "\u2014"
    text = f"{value:,.{precision}f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} kWh"


def format_period_label(start: date | None, end: date | None) -> str:
    """Human-readable observed period, ``dd/mm/YYYY - dd/mm/YYYY``."""
    if start and end:
        return f"{start:%d/%m/%Y} - {end:%d/%m/%Y}"
    if end:
        return f"{end:%d/%m/%Y}"
    return "\u2014"
