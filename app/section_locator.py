"""
Section discovery inside a loosely structured export.

Distributor exports stack several titled tables in one sheet ("Datos
suministro", "Datos lecturas", ...). Their row positions move between
exports, so each table is found by scanning for its title text. This is the
only place that knows how sections are laid out.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

import pandas as pd

from errors import SectionNotFoundError
from parse_result import Section

log = logging.getLogger(__name__)


def _cell_text(value) -> str:
    return value if isinstance(value, str) else str(value)


def find_marker_row(grid: pd.DataFrame, marker: str) -> Optional[int]:
    """Return the first row index where any cell contains ``marker`` (case-insensitive)."""
    needle = marker.lower()
    for idx, row in enumerate(grid.itertuples(index=False, name=None)):
        if any(needle in _cell_text(cell).lower() for cell in row if cell != ""):
            return idx
    return None


def locate_sections(
    grid: pd.DataFrame,
    markers: Mapping[str, str],
    header_offset: int = 1,
) -> dict[str, Section]:
    """
    Locate every named section in the grid.

    Args:
        grid: Normalized raw grid (empty rows already dropped).
        markers: Section name -> marker text to search for.
        header_offset: Rows between the marker row and the header row.

    Returns:
        Section name -> Section, with data ranges bounded by the next section.

    Raises:
        SectionNotFoundError: A marker is absent, or its header row would fall
            past the end of the grid.
    """
    n_rows = len(grid)
    marker_rows: dict[str, int] = {}

    for name, marker in markers.items():
        row = find_marker_row(grid, marker)
        if row is None:
            raise SectionNotFoundError(marker)
        if row + header_offset >= n_rows:
            raise SectionNotFoundError(marker, missing_header=True)
        marker_rows[name] = row
        log.debug("Section '%s' marker at row %d", name, row)

    sections: dict[str, Section] = {}
    for name, marker_row in marker_rows.items():
        header_row = marker_row + header_offset
        following = [
            other_row
            for other_name, other_row in marker_rows.items()
            if other_name != name and other_row > header_row
        ]
        data_end = min(following) if following else n_rows
        sections[name] = Section(
            name=name,
            marker=markers[name],
            marker_row=marker_row,
            header_row=header_row,
            data_start=header_row + 1,
            data_end=data_end,
        )

    return sections


def header_row(grid: pd.DataFrame, section: Section) -> list[str]:
    """The trimmed header cells of a section, as text."""
    return [_cell_text(cell).strip() for cell in grid.iloc[section.header_row].tolist()]


def section_frame(grid: pd.DataFrame, section: Section) -> pd.DataFrame:
    """Copy of the section's data rows."""
    return grid.iloc[section.data_start:section.data_end].reset_index(drop=True).copy()
