"""Tests for marker-based section discovery."""
import pandas as pd
import pytest

from errors import SectionNotFoundError
from section_locator import find_marker_row, header_row, locate_sections, section_frame

MARKERS = {"supply": "Datos suministro", "readings": "Datos lecturas"}


def _grid(rows):
    width = max(len(r) for r in rows)
    return pd.DataFrame([r + [""] * (width - len(r)) for r in rows], dtype=object)


@pytest.fixture
def grid():
    return _grid([
        ["Informe"],                                     # 0
        ["DATOS SUMINISTRO del punto"],                  # 1
        ["CUPS", "Potencia contratada P1"],              # 2
        ["ES001", "4,6"],                                # 3
        ["", "Datos lecturas"],                          # 4
        ["Fecha lectura", "Consumo Activa P1"],          # 5
        ["31/01/2023", "100"],                           # 6
        ["28/02/2023", "90"],                            # 7
    ])


class TestFindMarkerRow:

    def test_case_insensitive_substring(self, grid):
        assert find_marker_row(grid, "Datos suministro") == 1

    def test_marker_in_any_column(self, grid):
        assert find_marker_row(grid, "datos lecturas") == 4

    def test_missing(self, grid):
        assert find_marker_row(grid, "Datos facturas") is None

    def test_first_match_wins(self):
        g = _grid([["x"], ["Datos lecturas"], ["Datos lecturas"]])
        assert find_marker_row(g, "Datos lecturas") == 1

    def test_non_text_cells_are_scanned_as_text(self):
        g = _grid([[2023, 4.5], ["Datos lecturas"]])
        assert find_marker_row(g, "2023") == 0


class TestLocateSections:

    def test_header_and_data_ranges(self, grid):
        sections = locate_sections(grid, MARKERS, header_offset=1)
        supply = sections["supply"]
        readings = sections["readings"]

        assert (supply.marker_row, supply.header_row) == (1, 2)
        # Supply data stops where the readings section begins
        assert (supply.data_start, supply.data_end) == (3, 4)
        assert (readings.header_row, readings.data_start, readings.data_end) == (5, 6, 8)
        assert readings.row_count == 2

    def test_order_independent(self):
        g = _grid([
            ["Datos lecturas"],
            ["Fecha lectura", "Consumo Activa P1"],
            ["31/01/2023", "100"],
            ["Datos suministro"],
            ["Potencia contratada P1"],
            ["4,6"],
        ])
        sections = locate_sections(g, MARKERS)
        assert sections["readings"].data_rows == range(2, 3)
        assert sections["supply"].data_rows == range(5, 6)

    def test_header_offset_two(self, grid):
        sections = locate_sections(grid, {"readings": "Datos lecturas"}, header_offset=2)
        assert sections["readings"].header_row == 6
        assert sections["readings"].data_start == 7

    def test_missing_marker_names_it(self, grid):
        with pytest.raises(SectionNotFoundError, match="Datos facturas") as excinfo:
            locate_sections(grid, {**MARKERS, "bills": "Datos facturas"})
        assert excinfo.value.marker == "Datos facturas"

    def test_marker_on_last_row(self):
        g = _grid([["Datos suministro"], ["x"], ["Datos lecturas"]])
        with pytest.raises(SectionNotFoundError, match="Datos lecturas") as excinfo:
            locate_sections(g, MARKERS)
        assert str(excinfo.value) == "Section 'Datos lecturas' has no header row below its title."
        assert excinfo.value.missing_header

    def test_absent_marker_message(self, grid):
        with pytest.raises(SectionNotFoundError) as excinfo:
            locate_sections(grid, {"bills": "Datos facturas"})
        assert str(excinfo.value) == "Section 'Datos facturas' was not found in the file."
        assert not excinfo.value.missing_header


class TestSectionAccessors:

    def test_header_row_is_trimmed_text(self, grid):
        sections = locate_sections(grid, MARKERS)
        assert header_row(grid, sections["readings"]) == ["Fecha lectura", "Consumo Activa P1"]

    def test_section_frame_rows(self, grid):
        sections = locate_sections(grid, MARKERS)
        frame = section_frame(grid, sections["readings"])
        assert frame[0].tolist() == ["31/01/2023", "28/02/2023"]
        assert list(frame.index) == [0, 1]

    def test_section_frame_is_a_copy(self, grid):
        sections = locate_sections(grid, MARKERS)
        frame = section_frame(grid, sections["readings"])
        frame.iloc[0, 0] = "changed"
        assert grid.iloc[6, 0] == "31/01/2023"
