from __future__ import annotations

import pytest

from backend.censusly.config import load_settings

ENV_VARS = (
    "CENSUS_API_BASE",
    "CENSUS_API_KEY",
    "CENSUS_LATEST_YEAR",
    "CENSUS_HISTORICAL_YEARS",
    "CENSUS_GEOGRAPHY_YEAR",
    "CENSUS_TIMEOUT",
    "CORS_ORIGINS",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.api_base == "https://api.census.gov/data"
    assert settings.api_key == ""
    assert settings.latest_year == 2023
    assert settings.historical_years == (2022, 2021, 2020, 2019)
    assert settings.geography_year == 2022
    assert settings.cors_origins == ("*",)
    assert settings.log_format == "console"


def test_overrides(monkeypatch):
    monkeypatch.setenv("CENSUS_API_BASE", "http://localhost:8080/data/")
    monkeypatch.setenv("CENSUS_LATEST_YEAR", "2022")
    monkeypatch.setenv("CENSUS_HISTORICAL_YEARS", "2019, 2022,2021,2021")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://censusly.app")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    settings = load_settings()

    assert settings.api_base == "http://localhost:8080/data"
    assert settings.latest_year == 2022
    assert settings.historical_years == (2021, 2019)
    assert settings.cors_origins == ("http://localhost:5173", "https://censusly.app")
    assert settings.log_format == "json"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CENSUS_LATEST_YEAR", "23"),
        ("CENSUS_HISTORICAL_YEARS", "2022,last"),
        ("CENSUS_TIMEOUT", "0"),
        ("CENSUS_TIMEOUT", "soon"),
        ("LOG_FORMAT", "xml"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        load_settings()
