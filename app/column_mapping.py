"""
Column resolution for located sections.

Maps the header row of a section to the semantic fields the rating step
needs (reading date, six consumption periods, six contracted power periods).

Resolution is exact: a header resolves a field only when its trimmed text
equals one of the field's known names, case-sensitively. Fuzzy matching
with rapidfuzz is used only to suggest the closest header in the error
message when a required column is missing; it never resolves a field.
"""

from dataclasses import dataclass
from typing import Optional

from rapidfuzz import fuzz, process

from errors import MissingColumnsError
from parse_result import FieldMap
from settings import PERIODS, SimulationSettings

# Minimum similarity (0-100) before a header is offered as a hint
_HINT_THRESHOLD = 70


@dataclass(frozen=True)
class FieldSpec:
    """A semantic field and the header names that resolve it."""
    name: str
    aliases: tuple[str, ...]
    required: bool = True

    @property
    def display_name(self) -> str:
        return self.aliases[0] if self.aliases else self.name


def reading_field_specs(settings: SimulationSettings) -> list[FieldSpec]:
    """Reading date and P1..P3 consumption are required; P4..P6 are optional."""
    specs = [FieldSpec("reading_date", tuple(settings.reading_date_aliases), required=True)]
    for i, period in enumerate(PERIODS):
        specs.append(FieldSpec(
            period,
            tuple(settings.consumption_aliases[period]),
            required=i < 3,
        ))
    return specs


def supply_field_specs(settings: SimulationSettings) -> list[FieldSpec]:
    """Contracted power P1 and P2 are required; P3..P6 are optional."""
    specs = []
    for i, period in enumerate(PERIODS):
        name = f"power_{period}"
        specs.append(FieldSpec(
            name,
            tuple(settings.power_aliases[name]),
            required=i < 2,
        ))
    return specs


def _closest_header(spec: FieldSpec, headers: list[str]) -> Optional[str]:
    """Best fuzzy match among headers for a missing field, if any is close enough."""
    choices = [h for h in headers if h]
    if not choices:
        return None

    best_header = None
    best_score = 0.0
    for alias in spec.aliases:
        match = process.extractOne(alias, choices, scorer=fuzz.token_sort_ratio)
        if match is None:
            continue
        header, score, _ = match
        if score > best_score:
            best_header, best_score = header, score

    if best_score >= _HINT_THRESHOLD:
        return best_header
    return None


def resolve_fields(
    headers: list[str],
    specs: list[FieldSpec],
    section_name: str,
) -> FieldMap:
    """
    Resolve every field spec against a header row.

    Args:
        headers: Header row cells (trimmed text).
        specs: Fields to resolve, in priority order of their aliases.
        section_name: Used in the error message.

    Returns:
        FieldMap with the column index of every resolved field.

    Raises:
        MissingColumnsError: Listing every required field that did not resolve.
    """
    trimmed = [str(h).strip() for h in headers]
    positions: dict[str, int] = {}
    for idx, header in enumerate(trimmed):
        # First occurrence wins for duplicated headers
        positions.setdefault(header, idx)

    columns: dict[str, int] = {}
    missing: list[FieldSpec] = []

    for spec in specs:
        found = next((positions[a] for a in spec.aliases if a in positions), None)
        if found is not None:
            columns[spec.name] = found
        elif spec.required:
            missing.append(spec)

    if missing:
        suggestions = {}
        for spec in missing:
            hint = _closest_header(spec, trimmed)
            if hint:
                suggestions[spec.display_name] = hint
        raise MissingColumnsError(
            section_name,
            [spec.display_name for spec in missing],
            suggestions,
        )

    return FieldMap(section=section_name, columns=columns, headers=tuple(trimmed))
