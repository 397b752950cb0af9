"""Tests for simulation settings and their environment overrides."""
import pytest

from settings import PERIODS, READING_SECTION, SUPPLY_SECTION, SimulationSettings


class TestDefaults:

    def test_tax_rates(self):
        settings = SimulationSettings()
        assert settings.special_tax_rate == 0.005
        assert settings.vat_rate == 0.21
        assert settings.days_per_year == 365
        assert settings.months_per_year == 12

    def test_markers_and_aliases(self):
        settings = SimulationSettings()
        assert settings.section_markers[SUPPLY_SECTION] == "Datos suministro"
        assert settings.section_markers[READING_SECTION] == "Datos lecturas"
        assert settings.consumption_aliases["p4"][0] == "Consumo Activa P4"
        assert set(settings.power_aliases) == {f"power_{p}" for p in PERIODS}

    def test_frozen(self):
        with pytest.raises(Exception):
            SimulationSettings().vat_rate = 0.1


class TestFromEnv:

    def test_no_overrides(self, monkeypatch):
        for name in ("SIM_SPECIAL_TAX_RATE", "SIM_VAT_RATE", "SIM_HEADER_OFFSET",
                     "SIM_CURRENT_PLAN_NAME", "GEMINI_MODEL"):
            monkeypatch.delenv(name, raising=False)
        assert SimulationSettings.from_env() == SimulationSettings()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SIM_SPECIAL_TAX_RATE", "0.0511")
        monkeypatch.setenv("SIM_VAT_RATE", "0.10")
        monkeypatch.setenv("SIM_HEADER_OFFSET", "2")
        monkeypatch.setenv("SIM_CURRENT_PLAN_NAME", "Mi Plan")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
        settings = SimulationSettings.from_env()
        assert settings.special_tax_rate == 0.0511
        assert settings.vat_rate == 0.10
        assert settings.header_offset == 2
        assert settings.current_plan_name == "Mi Plan"
        assert settings.gemini_model == "gemini-test"

    def test_header_offset_at_least_one(self, monkeypatch):
        monkeypatch.setenv("SIM_HEADER_OFFSET", "0")
        assert SimulationSettings.from_env().header_offset == 1

    @pytest.mark.parametrize("name,value", [
        ("SIM_VAT_RATE", "veintiuno"),
        ("SIM_SPECIAL_TAX_RATE", "-0.1"),
        ("SIM_HEADER_OFFSET", "1.5"),
    ])
    def test_bad_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError, match=name):
            SimulationSettings.from_env()
