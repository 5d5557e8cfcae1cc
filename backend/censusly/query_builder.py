from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from .config import CENSUS_API_BASE
from .errors import InvalidRequest
from .variables import Category, variable_codes

LEVELS = ("nation", "state", "county", "city", "zip")


@dataclass(frozen=True)
class NationLocation:
    level: ClassVar[str] = "nation"
    name: str = field(default="United States", compare=False)


@dataclass(frozen=True)
class StateLocation:
    level: ClassVar[str] = "state"
    fips: str
    name: str = field(default="", compare=False)

    @property
    def state_fips(self) -> str:
        return self.fips


@dataclass(frozen=True)
class CountyLocation:
    level: ClassVar[str] = "county"
    fips: str
    state_fips: Optional[str] = None
    name: str = field(default="", compare=False)


@dataclass(frozen=True)
class CityLocation:
    level: ClassVar[str] = "city"
    fips: str
    state_fips: Optional[str] = None
    name: str = field(default="", compare=False)


@dataclass(frozen=True)
class ZipLocation:
    level: ClassVar[str] = "zip"
    code: str
    name: str = field(default="", compare=False)


Location = Union[NationLocation, StateLocation, CountyLocation, CityLocation, ZipLocation]


def make_location(
    level: str,
    *,
    fips: str | None = None,
    state_fips: str | None = None,
    code: str | None = None,
    name: str | None = None,
) -> Location:
    """Build a location from loose fields (request bodies, CLI flags)."""
    level = (level or "").strip().lower()
    display = (name or "").strip()
    if level == "nation":
        return NationLocation(name=display or "United States")
    if level == "state":
        return StateLocation(fips=(fips or state_fips or "").strip(), name=display)
    if level == "county":
        return CountyLocation(fips=(fips or "").strip(), state_fips=_blank_to_none(state_fips), name=display)
    if level == "city":
        return CityLocation(fips=(fips or "").strip(), state_fips=_blank_to_none(state_fips), name=display)
    if level == "zip":
        return ZipLocation(code=(code or fips or "").strip(), name=display)
    raise InvalidRequest("location", f"Unsupported geography level: {level!r}")


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def location_to_dict(location: Location) -> dict[str, str | None]:
    out: dict[str, str | None] = {"level": location.level, "name": location.name or None}
    if isinstance(location, ZipLocation):
        out["code"] = location.code
    elif not isinstance(location, NationLocation):
        out["fips"] = location.fips
        out["state_fips"] = location.state_fips
    return out


def describe_location(location: Location) -> str:
    if location.name:
        return location.name
    if isinstance(location, NationLocation):
        return "United States"
    if isinstance(location, ZipLocation):
        return f"ZCTA {location.code}"
    if isinstance(location, StateLocation):
        return f"State {location.fips}"
    return f"{location.level.title()} {location.fips} (state {location.state_fips})"


@dataclass(frozen=True)
class CensusRequest:
    year: int
    variables: tuple[str, ...]
    geography_clause: tuple[tuple[str, str], ...]

    @property
    def path(self) -> str:
        return f"{self.year}/acs/acs5/profile"

    def url(self, base: str = CENSUS_API_BASE) -> str:
        return f"{base.rstrip('/')}/{self.path}"

    def params(self, api_key: str = "") -> list[tuple[str, str]]:
        items = [("get", ",".join(self.variables)), *self.geography_clause]
        if api_key:
            items.append(("key", api_key))
        return items


def geography_clause(location: Location) -> tuple[tuple[str, str], ...]:
    if isinstance(location, NationLocation):
        return (("for", "us:1"),)

    if isinstance(location, StateLocation):
        if not location.fips:
            raise InvalidRequest("query", "State location is missing its FIPS code")
        return (("for", f"state:{location.fips}"),)

    if isinstance(location, (CountyLocation, CityLocation)):
        kind = "county" if isinstance(location, CountyLocation) else "place"
        if not location.fips:
            raise InvalidRequest("query", f"{location.level.title()} location is missing its FIPS code")
        if not location.state_fips:
            raise InvalidRequest(
                "query",
                f"{location.level.title()} {location.fips} is missing its owning state FIPS code",
            )
        return (("for", f"{kind}:{location.fips}"), ("in", f"state:{location.state_fips}"))

    if isinstance(location, ZipLocation):
        if not location.code:
            raise InvalidRequest("query", "ZIP code is empty")
        return (("for", f"zip code tabulation area:{location.code}"),)

    raise InvalidRequest("query", f"Unsupported location: {location!r}")


def build_request(location: Location, year: int, category: Category) -> CensusRequest:
    if isinstance(year, bool) or not isinstance(year, int) or not 1000 <= year <= 9999:
        raise InvalidRequest("query", f"Year must be a four-digit year, got {year!r}")
    return CensusRequest(
        year=year,
        variables=variable_codes(Category(category)),
        geography_clause=geography_clause(location),
    )


def geography_query_string(request: CensusRequest) -> str:
    return "&".join(f"{key}={value}" for key, value in request.geography_clause)
