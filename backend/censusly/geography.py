"""State, county and place lookups used by the location pickers."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from .census_service import CensusClient
from .errors import InvalidRequest

logger = structlog.get_logger(__name__)

PLACE_SUFFIXES = (" city", " CDP", " borough", " town", " village")
DEFAULT_PLACE_RESULTS = 20

STATE_ABBREVIATIONS = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR",
    "California": "CA", "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE",
    "Florida": "FL", "Georgia": "GA", "Hawaii": "HI", "Idaho": "ID",
    "Illinois": "IL", "Indiana": "IN", "Iowa": "IA", "Kansas": "KS",
    "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME", "Maryland": "MD",
    "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN", "Mississippi": "MS",
    "Missouri": "MO", "Montana": "MT", "Nebraska": "NE", "Nevada": "NV",
    "New Hampshire": "NH", "New Jersey": "NJ", "New Mexico": "NM", "New York": "NY",
    "North Carolina": "NC", "North Dakota": "ND", "Ohio": "OH", "Oklahoma": "OK",
    "Oregon": "OR", "Pennsylvania": "PA", "Rhode Island": "RI", "South Carolina": "SC",
    "South Dakota": "SD", "Tennessee": "TN", "Texas": "TX", "Utah": "UT",
    "Vermont": "VT", "Virginia": "VA", "Washington": "WA", "West Virginia": "WV",
    "Wisconsin": "WI", "Wyoming": "WY", "District of Columbia": "DC", "Puerto Rico": "PR",
}


@dataclass(frozen=True)
class USState:
    name: str
    fips: str


@dataclass(frozen=True)
class County:
    name: str
    fips: str


@dataclass(frozen=True)
class Place:
    name: str
    fips: str


def state_abbreviation(name: str) -> str:
    """Two-letter code for a full Census state name; unknown names pass through."""
    return STATE_ABBREVIATIONS.get(name, name)


def clean_county_name(raw: str) -> str:
    # "Los Angeles County, California" -> "Los Angeles County"
    return raw.split(",", 1)[0].strip()


def clean_place_name(raw: str) -> str:
    name = raw.split(",", 1)[0]
    for suffix in PLACE_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    return name.strip()


class GeographyCatalog:
    """Caches the state list, plus the counties and places of one state at a time."""

    def __init__(self, client: CensusClient, *, year: int):
        self._client = client
        self.year = year
        self._states: list[USState] | None = None
        self.selected_state_fips: str | None = None
        self.counties: list[County] = []
        self.places: list[Place] = []

    async def states(self) -> list[USState]:
        if self._states is None:
            rows = await self._client.fetch_names(self.year, [("for", "state:*")], stage="states")
            states = [
                USState(name=state_abbreviation(str(row[0])), fips=str(row[1]))
                for row in rows
                if len(row) == 2 and row[0] and row[1]
            ]
            self._states = sorted(states, key=lambda state: state.name)
            logger.info("Loaded states", count=len(self._states))
        return list(self._states)

    async def load_counties(self, state_fips: str) -> list[County]:
        state_fips = _require_state_fips(state_fips)
        rows = await self._client.fetch_names(
            self.year,
            [("for", "county:*"), ("in", f"state:{state_fips}")],
            stage=f"counties:{state_fips}",
        )
        counties = [
            County(name=clean_county_name(str(row[0])), fips=str(row[2]))
            for row in rows
            if len(row) == 3 and row[0] and row[2]
        ]
        return sorted(counties, key=lambda county: county.name)

    async def load_places(self, state_fips: str) -> list[Place]:
        state_fips = _require_state_fips(state_fips)
        rows = await self._client.fetch_names(
            self.year,
            [("for", "place:*"), ("in", f"state:{state_fips}")],
            stage=f"places:{state_fips}",
        )
        places = [
            Place(name=clean_place_name(str(row[0])), fips=str(row[2]))
            for row in rows
            if len(row) == 3 and row[0] and row[2]
        ]
        return sorted(places, key=lambda place: place.name)

    async def select_state(self, state_fips: str) -> None:
        """Replace the county and place lists with those of ``state_fips``."""
        state_fips = _require_state_fips(state_fips)
        if state_fips == self.selected_state_fips and (self.counties or self.places):
            return
        self.selected_state_fips = state_fips
        self.counties = []
        self.places = []
        counties, places = await asyncio.gather(
            self.load_counties(state_fips),
            self.load_places(state_fips),
        )
        # A newer selection may have landed while this one was in flight.
        if self.selected_state_fips != state_fips:
            return
        self.counties = counties
        self.places = places
        logger.info(
            "Loaded state geographies",
            state_fips=state_fips,
            counties=len(counties),
            places=len(places),
        )

    def search_places(self, text: str = "", limit: int = DEFAULT_PLACE_RESULTS) -> list[Place]:
        needle = (text or "").strip().casefold()
        if not needle:
            return self.places[:limit]
        return [place for place in self.places if needle in place.name.casefold()]


def _require_state_fips(state_fips: str) -> str:
    state_fips = (state_fips or "").strip()
    if not state_fips:
        raise InvalidRequest("geography", "State FIPS code is required")
    return state_fips
