"""
Typed failures of the simulation pipeline.

Every stage raises a subclass of SimulationError. The orchestrator catches
the base class at the pipeline boundary and surfaces ``str(error)`` to the
user unchanged, so messages here are written for people, not for logs.
"""
from __future__ import annotations


class SimulationError(Exception):
    """Base class for all expected pipeline failures."""


class DecodeError(SimulationError):
    """The upload could not be turned into a grid of cells."""


class SectionNotFoundError(SimulationError):
    """A required section is missing from the grid, or has no header row."""

    def __init__(self, marker: str, missing_header: bool = False) -> None:
        self.marker = marker
        self.missing_header = missing_header
        if missing_header:
            message = f"Section '{marker}' has no header row below its title."
        else:
            message = f"Section '{marker}' was not found in the file."
        super().__init__(message)


class MissingColumnsError(SimulationError):
    """One or more required columns are absent from a section's header row."""

    def __init__(
        self,
        section: str,
        missing: list[str],
        suggestions: dict[str, str] | None = None,
    ) -> None:
        self.section = section
        self.missing = list(missing)
        self.suggestions = dict(suggestions or {})

        parts = []
        for name in self.missing:
            hint = self.suggestions.get(name)
            if hint:
                parts.append(f"'{name}' (closest header: '{hint}')")
            else:
                parts.append(f"'{name}'")
        super().__init__(
            f"Missing required columns in section '{section}': {', '.join(parts)}."
        )


class NoUsableDataError(SimulationError):
    """The located sections hold no consumption that can be rated."""


class NoTariffsError(SimulationError):
    """The rating engine was given an empty tariff list."""

    def __init__(self, message: str = "No tariffs available to compare.") -> None:
        super().__init__(message)
