# Settings: load .env from the project root (or cwd) when the backend starts,
# then read everything from the environment.

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_project_root = Path(__file__).resolve().parents[2]

CENSUS_API_BASE = "https://api.census.gov/data"
DEFAULT_LATEST_YEAR = 2023
DEFAULT_HISTORICAL_YEARS = (2022, 2021, 2020, 2019)
DEFAULT_GEOGRAPHY_YEAR = 2022


def _load_dotenv() -> None:
    """Load .env from project root or cwd without overriding real env vars."""
    for path in (_project_root / ".env", Path.cwd() / ".env"):
        if path.is_file():
            with open(path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        k, _, v = line.partition("=")
                        v = v.strip().strip('"').strip("'")
                        os.environ.setdefault(k.strip(), v)
            break


_load_dotenv()


@dataclass(frozen=True)
class Settings:
    api_base: str = CENSUS_API_BASE
    api_key: str = ""
    latest_year: int = DEFAULT_LATEST_YEAR
    historical_years: tuple[int, ...] = DEFAULT_HISTORICAL_YEARS
    geography_year: int = DEFAULT_GEOGRAPHY_YEAR
    timeout: float = 20.0
    cors_origins: tuple[str, ...] = ("*",)
    log_format: str = "console"


def _env(name: str, default: str) -> str:
    return (os.getenv(name, default) or default).strip()


def _parse_years(raw: str) -> tuple[int, ...]:
    years: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not (part.isdigit() and len(part) == 4):
            raise ValueError(f"CENSUS_HISTORICAL_YEARS entries must be four-digit years. Got: {part!r}")
        years.append(int(part))
    return tuple(sorted(set(years), reverse=True))


def _parse_year(name: str, default: int) -> int:
    raw = _env(name, str(default))
    if not (raw.isdigit() and len(raw) == 4):
        raise ValueError(f"{name} must be a four-digit year. Got: {raw!r}")
    return int(raw)


def load_settings() -> Settings:
    timeout_raw = _env("CENSUS_TIMEOUT", "20")
    try:
        timeout = float(timeout_raw)
    except ValueError as exc:
        raise ValueError(f"CENSUS_TIMEOUT must be a number. Got: {timeout_raw!r}") from exc
    if timeout <= 0:
        raise ValueError("CENSUS_TIMEOUT must be > 0.")

    origins = tuple(
        origin.strip() for origin in _env("CORS_ORIGINS", "*").split(",") if origin.strip()
    ) or ("*",)

    log_format = _env("LOG_FORMAT", "console").lower()
    if log_format not in {"console", "json"}:
        raise ValueError(f"LOG_FORMAT must be console or json. Got: {log_format!r}")

    latest_year = _parse_year("CENSUS_LATEST_YEAR", DEFAULT_LATEST_YEAR)
    historical = _parse_years(
        _env("CENSUS_HISTORICAL_YEARS", ",".join(str(y) for y in DEFAULT_HISTORICAL_YEARS))
    )

    return Settings(
        api_base=_env("CENSUS_API_BASE", CENSUS_API_BASE).rstrip("/"),
        api_key=_env("CENSUS_API_KEY", ""),
        latest_year=latest_year,
        historical_years=tuple(year for year in historical if year != latest_year),
        geography_year=_parse_year("CENSUS_GEOGRAPHY_YEAR", DEFAULT_GEOGRAPHY_YEAR),
        timeout=timeout,
        cors_origins=origins,
        log_format=log_format,
    )
