"""
Pytest configuration for the tariff simulator test suite.

Registers the custom 'llm' marker used to tag tests that call the real
Gemini API. Those tests are skipped unless GEMINI_API_KEY is set.

Also provides builders for section-based meter exports so tests can write
CSV and Excel uploads in memory.

Run unit tests only (default, no key):
    pytest

Run everything including live LLM calls:
    GEMINI_API_KEY=... pytest
"""
import io
import os

import pytest

from parse_result import Tariff

READING_HEADERS = [
    "Fecha lectura",
    "Consumo Activa P1", "Consumo Activa P2", "Consumo Activa P3",
    "Consumo Activa P4", "Consumo Activa P5", "Consumo Activa P6",
]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "llm: test calls the live Gemini API (needs GEMINI_API_KEY)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip live LLM tests when no API key is configured."""
    if os.environ.get("GEMINI_API_KEY"):
        return

    skip_llm = pytest.mark.skip(reason="GEMINI_API_KEY not set")
    for item in items:
        if "llm" in item.keywords:
            item.add_marker(skip_llm)


def _export_rows(
    readings,
    powers=(4.6, 4.6),
    supply_first=True,
    power_header="Potencia contratada",
    reading_headers=None,
    preamble=True,
):
    """Rows of a section-based export, as lists of text cells."""
    supply = [
        ["Datos suministro"],
        ["CUPS", "Tarifa"] + [f"{power_header} P{i}" for i in range(1, len(powers) + 1)],
        ["ES0021000000000001AA", "2.0TD"] + [str(p).replace(".", ",") for p in powers],
    ]
    reading_block = [["Datos lecturas"], list(reading_headers or READING_HEADERS)]
    for row in readings:
        reading_block.append([str(cell) for cell in row])

    rows = [["Informe de consumos"], ["Titular", "Cliente de prueba"]] if preamble else []
    if supply_first:
        rows += supply + reading_block
    else:
        rows += reading_block + supply
    return rows


def _csv_bytes(rows, encoding="utf-8", blank_lines=True):
    lines = []
    for row in rows:
        lines.append(";".join(f'"{cell}"' if " " in cell else cell for cell in row))
        if blank_lines and len(row) == 1:
            lines.append("")
    return "\r\n".join(lines).encode(encoding)


def _xlsx_bytes(rows):
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    ws.title = "Consumos"
    for row in rows:
        ws.append(row)
    extra = wb.create_sheet("Otra hoja")
    extra.append(["Datos lecturas ignorados"])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def export_rows():
    """Factory: build the rows of a section-based export."""
    return _export_rows


@pytest.fixture
def csv_bytes():
    """Factory: encode export rows as semicolon CSV bytes."""
    return _csv_bytes


@pytest.fixture
def xlsx_bytes():
    """Factory: encode export rows as an .xlsx workbook."""
    return _xlsx_bytes


@pytest.fixture
def monthly_readings():
    """Twelve monthly readings for 2023, 100/50/25 kWh in P1/P2/P3."""
    months = [
        "31/01/2023", "28/02/2023", "31/03/2023", "30/04/2023",
        "31/05/2023", "30/06/2023", "31/07/2023", "31/08/2023",
        "30/09/2023", "31/10/2023", "30/11/2023", "31/12/2023",
    ]
    return [[m, "100", "50", "25", "0", "0", "0"] for m in months]


def make_tariff(name, kwh=0.1, power=0.05, fixed=5.0, tariff_id=None, promo=""):
    """Flat-priced tariff helper."""
    return Tariff(
        id=tariff_id or name,
        company_name=name,
        price_kwh=(kwh,) * 6,
        price_power=(power,) * 6,
        fixed_term_monthly=fixed,
        promo=promo,
    )


@pytest.fixture
def tariffs():
    """Three tariffs including the user's current plan."""
    return [
        make_tariff("Tu Compañía Actual", kwh=0.22, power=0.10, fixed=5.83, tariff_id="1"),
        make_tariff("EcoLuz", kwh=0.15, power=0.09, fixed=5.00, tariff_id="2"),
        make_tariff("Energía Clara", kwh=0.16, power=0.095, fixed=4.58, tariff_id="3"),
    ]


@pytest.fixture
def tariff_factory():
    """Factory: flat-priced Tariff."""
    return make_tariff
