"""
Reading aggregation and annualization.

Extracts the reading rows of the "Datos lecturas" section, keeps the most
recent year of readings, sums consumption per period and works out the
factor that scales the observed window to a full year. Also reads the
contracted power from the "Datos suministro" section.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import datetime

import numpy as np
import pandas as pd

from errors import NoUsableDataError
from parse_result import (
    DataQualityIssue,
    FieldMap,
    PeriodTotals,
    Section,
    SupplyProfile,
)
from section_locator import section_frame
from settings import PERIODS

log = logging.getLogger(__name__)

# Excel serial day 0 (the 1900 leap-year bug makes this 30 Dec, not 31 Dec)
_EXCEL_EPOCH = pd.Timestamp("1899-12-30")
# First number in a cell; trailing notes like "(est)" or "kW" are ignored
_NUMBER_TOKEN = re.compile(r"[-+]?\d(?:[\d.,]*\d)?(?:[eE][-+]?\d+)?")
# Space or NBSP used as a thousands separator ("1 234,56")
_DIGIT_GAP = re.compile(r"(?<=\d)[ \u00a0](?=\d{3}(?!\d))")


def parse_decimal(value) -> float:
    """
    Parse a Spanish-formatted number; anything unusable counts as 0.0.

    ``"1234,56"`` -> 1234.56. When both separators are present the dots are
    thousands separators, so ``"1.234,56"`` -> 1234.56 as well.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    match = _NUMBER_TOKEN.search(_DIGIT_GAP.sub("", str(value).strip()))
    if match is None:
        return 0.0
    text = match.group()
    if "," in text:
        if "." in text:
            text = text.replace(".", "")
        text = text.replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _parse_one_date(value):
    if isinstance(value, (pd.Timestamp, datetime)):
        return pd.Timestamp(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        if not math.isfinite(float(value)):
            return pd.NaT
        return _EXCEL_EPOCH + pd.Timedelta(days=float(value))
    text = str(value).strip()
    if not text:
        return pd.NaT
    return pd.to_datetime(text, errors="coerce", dayfirst=True)


def parse_reading_dates(series: pd.Series) -> pd.Series:
    """
    Parse reading dates, day-first as in Spanish exports.

    Datetime cells pass through, numeric cells are Excel serial days and
    anything unparsable becomes NaT.
    """
    parsed = series.map(_parse_one_date)
    return pd.to_datetime(parsed, errors="coerce").dt.normalize()


def extract_readings(
    grid: pd.DataFrame,
    section: Section,
    field_map: FieldMap,
) -> pd.DataFrame:
    """Pull ``reading_date`` and ``p1``..``p6`` out of the reading section."""
    rows = section_frame(grid, section)
    out = pd.DataFrame(index=rows.index)

    date_idx = field_map.index_of("reading_date")
    if date_idx is not None and date_idx in rows.columns:
        out["reading_date"] = parse_reading_dates(rows[date_idx])
    else:
        out["reading_date"] = pd.Series(pd.NaT, index=rows.index, dtype="datetime64[ns]")

    for period in PERIODS:
        idx = field_map.index_of(period)
        if idx is not None and idx in rows.columns:
            out[period] = rows[idx].map(parse_decimal).astype(float)
        else:
            out[period] = 0.0

    return out


def aggregate_readings(readings: pd.DataFrame, days_per_year: int = 365) -> PeriodTotals:
    """
    Sum consumption over the latest year of readings and annualize it.

    The window is ``(latest - days_per_year days, latest]``. Rows whose date
    could not be parsed are excluded and reported as a data-quality issue.

    Raises:
        NoUsableDataError: no dated rows, nothing inside the window, or a
            window whose consumption sums to exactly zero.
    """
    issues: list[DataQualityIssue] = []

    if readings.empty:
        raise NoUsableDataError("The readings section has no data rows.")

    dated_mask = readings["reading_date"].notna()
    undated = int((~dated_mask).sum())
    if undated:
        issues.append(DataQualityIssue(
            category="invalid_dates",
            severity="warning",
            message=f"Ignored {undated} readings with an unreadable date",
            affected_rows=undated,
        ))

    dated = readings[dated_mask]
    if dated.empty:
        raise NoUsableDataError(
            "No reading has a valid date, so the consumption period cannot be determined."
        )

    latest = dated["reading_date"].max()
    window_start = latest - pd.Timedelta(days=days_per_year)
    in_window = dated[dated["reading_date"] > window_start]

    excluded = len(dated) - len(in_window)
    if excluded:
        issues.append(DataQualityIssue(
            category="outside_window",
            severity="info",
            message=f"Ignored {excluded} readings older than one year before {latest:%d/%m/%Y}",
            affected_rows=excluded,
        ))

    if in_window.empty:
        raise NoUsableDataError("No readings fall within the last year of data.")

    sums = {p: float(in_window[p].sum()) for p in PERIODS}
    grand_total = sum(sums.values())
    if grand_total == 0:
        raise NoUsableDataError(
            "Total consumption in the file is zero. Check that the consumption columns hold data."
        )

    earliest = in_window["reading_date"].min()
    observed_days = int((latest - earliest).days)
    if observed_days > 0:
        factor = days_per_year / observed_days
    else:
        factor = 1.0
        issues.append(DataQualityIssue(
            category="single_date",
            severity="warning",
            message="All readings share one date; consumption was not annualized",
            affected_rows=len(in_window),
        ))

    log.info(
        "Aggregated %d readings over %d days (%s to %s), factor %.4f",
        len(in_window), observed_days, earliest.date(), latest.date(), factor,
    )

    return PeriodTotals(
        **sums,
        start_date=earliest.date(),
        end_date=latest.date(),
        observed_days=observed_days,
        rows_used=len(in_window),
        annualization_factor=factor,
        issues=tuple(issues),
    )


def read_supply_profile(
    grid: pd.DataFrame,
    section: Section,
    field_map: FieldMap,
) -> SupplyProfile:
    """Contracted power per period from the first data row of the supply section."""
    rows = section_frame(grid, section)
    if rows.empty:
        raise NoUsableDataError("The supply section has no data rows.")

    first = rows.iloc[0]
    powers = []
    for period in PERIODS:
        idx = field_map.index_of(f"power_{period}")
        powers.append(parse_decimal(first[idx]) if idx is not None and idx in first.index else 0.0)

    return SupplyProfile(contracted_power=tuple(powers))
