"""Fetch state for a primary location and an optional comparison location.

Each category keeps a latest record and a year -> record map per location.
A year present in the map is both selected and cached: removing the key is
the only eviction. Fetches run as independent coroutines and apply their
results under one lock. Every pending fetch holds a token; a result whose
token is no longer the slot's current one (year toggled off, comparison
exited or replaced, primary location changed) is dropped.
"""
from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Iterable, Sequence

import structlog

from .errors import CensusError, InvalidRequest
from .query_builder import Location, describe_location, location_to_dict
from .records import CategoryRecord
from .variables import Category

logger = structlog.get_logger(__name__)

Fetcher = Callable[[Location, Category, int], Awaitable[CategoryRecord]]


class Role(str, Enum):
    PRIMARY = "primary"
    COMPARISON = "comparison"


class SlotStatus(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class NoPrimaryLocation(RuntimeError):
    pass


@dataclass
class CategorySlot:
    latest: CategoryRecord | None = None
    historical: dict[int, CategoryRecord] = field(default_factory=dict)
    error: str | None = None
    error_kind: str | None = None
    year_errors: dict[int, str] = field(default_factory=dict)
    latest_token: int | None = None
    year_tokens: dict[int, int] = field(default_factory=dict)

    @property
    def status(self) -> SlotStatus:
        if self.latest_token is not None:
            return SlotStatus.LOADING
        if self.error is not None:
            return SlotStatus.ERROR
        if self.latest is not None:
            return SlotStatus.LOADED
        return SlotStatus.EMPTY

    @property
    def loading_years(self) -> list[int]:
        return sorted(self.year_tokens, reverse=True)

    def selected_years(self) -> set[int]:
        return set(self.historical) | set(self.year_tokens)

    def sorted_years(self) -> list[int]:
        return sorted(self.historical, reverse=True)


@dataclass
class LocationFetchState:
    location: Location | None = None
    slots: dict[Category, CategorySlot] = field(
        default_factory=lambda: {category: CategorySlot() for category in Category}
    )

    def slot(self, category: Category) -> CategorySlot:
        return self.slots[Category(category)]


class FetchOrchestrator:
    def __init__(
        self,
        fetcher: Fetcher,
        *,
        latest_year: int,
        historical_years: Sequence[int],
    ):
        self._fetch = fetcher
        self.latest_year = latest_year
        self.historical_years = tuple(sorted(set(historical_years), reverse=True))
        self._lock = asyncio.Lock()
        self._tokens = itertools.count(1)
        self.primary = LocationFetchState()
        self.comparison = LocationFetchState()
        self.is_comparing = False

    def state(self, role: Role) -> LocationFetchState:
        return self.primary if Role(role) is Role.PRIMARY else self.comparison

    @property
    def primary_location(self) -> Location | None:
        return self.primary.location

    @property
    def comparison_location(self) -> Location | None:
        return self.comparison.location if self.is_comparing else None

    # -- state transitions (callers hold the lock) ---------------------------

    def _select_locked(self, location: Location) -> bool:
        if self.primary.location == location:
            return False
        self.primary = LocationFetchState(location=location)
        self._clear_comparison_locked()
        logger.info("Selected primary location", location=describe_location(location))
        return True

    def _clear_comparison_locked(self) -> None:
        was_comparing = self.is_comparing
        self.comparison = LocationFetchState()
        self.is_comparing = False
        if was_comparing:
            logger.info("Exited comparison")

    def _bind_locked(self, role: Role, location: Location) -> LocationFetchState:
        if role is Role.PRIMARY:
            self._select_locked(location)
            return self.primary
        if not self.is_comparing or self.comparison.location != location:
            raise ValueError(f"{describe_location(location)} is not the active comparison location")
        return self.comparison

    def _begin_latest_locked(self, slot: CategorySlot) -> int | None:
        if slot.latest_token is not None:
            return None
        token = next(self._tokens)
        slot.latest_token = token
        slot.error = None
        slot.error_kind = None
        return token

    def _set_year_locked(self, slot: CategorySlot, year: int, selected: bool) -> int | None:
        """Select or deselect ``year``; return a token when a fetch must start."""
        if not selected:
            slot.historical.pop(year, None)
            slot.year_tokens.pop(year, None)
            slot.year_errors.pop(year, None)
            return None
        if year in slot.historical or year in slot.year_tokens:
            return None
        token = next(self._tokens)
        slot.year_tokens[year] = token
        slot.year_errors.pop(year, None)
        return token

    def _check_year(self, year: int) -> int:
        if year not in self.historical_years:
            offered = ", ".join(str(y) for y in self.historical_years)
            raise InvalidRequest("year", f"Year {year} is not one of the offered years ({offered})")
        return year

    def _require_primary_locked(self) -> Location:
        if self.primary.location is None:
            raise NoPrimaryLocation("Select a location before loading census data")
        return self.primary.location

    # -- fetch runners -------------------------------------------------------

    async def _load_latest(
        self,
        state: LocationFetchState,
        role: Role,
        location: Location,
        category: Category,
        token: int,
    ) -> bool:
        slot = state.slot(category)
        try:
            record = await self._fetch(location, category, self.latest_year)
        except CensusError as exc:
            async with self._lock:
                if self.state(role) is state and slot.latest_token == token:
                    slot.latest_token = None
                    slot.error = f"Failed to fetch latest {category.value} data. {exc.user_message}"
                    slot.error_kind = exc.kind
                    logger.warning(
                        "Latest fetch failed",
                        role=role.value,
                        category=category.value,
                        error=str(exc),
                    )
            return False
        except BaseException:
            # No await between check and clear.
            if slot.latest_token == token:
                slot.latest_token = None
            raise

        async with self._lock:
            if self.state(role) is not state or slot.latest_token != token:
                logger.info("Discarded stale latest result", role=role.value, category=category.value)
                return False
            slot.latest_token = None
            slot.latest = record
        return True

    async def _load_year(
        self,
        state: LocationFetchState,
        role: Role,
        location: Location,
        category: Category,
        year: int,
        token: int,
    ) -> bool:
        slot = state.slot(category)
        try:
            record = await self._fetch(location, category, year)
        except CensusError as exc:
            async with self._lock:
                if self.state(role) is state and slot.year_tokens.get(year) == token:
                    del slot.year_tokens[year]
                    slot.year_errors[year] = (
                        f"Failed to load {category.value} data for {year}. {exc.user_message}"
                    )
                    logger.warning(
                        "Historical fetch failed",
                        role=role.value,
                        category=category.value,
                        year=year,
                        error=str(exc),
                    )
            return False
        except BaseException:
            if slot.year_tokens.get(year) == token:
                del slot.year_tokens[year]
            raise

        async with self._lock:
            if self.state(role) is not state or slot.year_tokens.get(year) != token:
                logger.info(
                    "Discarded stale historical result",
                    role=role.value,
                    category=category.value,
                    year=year,
                )
                return False
            del slot.year_tokens[year]
            slot.historical[year] = record
        return True

    @staticmethod
    async def _run(jobs: Iterable[Coroutine[Any, Any, bool]]) -> None:
        pending = list(jobs)
        if pending:
            await asyncio.gather(*pending)

    # -- public operations ---------------------------------------------------

    async def select_location(self, location: Location) -> bool:
        """Make ``location`` the primary. A new location starts from empty state."""
        async with self._lock:
            return self._select_locked(location)

    async def fetch_latest(
        self,
        location: Location,
        category: Category,
        *,
        role: Role = Role.PRIMARY,
    ) -> bool:
        """Fetch the latest year for one slot; ignored while that slot is loading.

        On failure the previous record stays in place and an error message is
        set on the slot.
        """
        category = Category(category)
        role = Role(role)
        async with self._lock:
            state = self._bind_locked(role, location)
            token = self._begin_latest_locked(state.slot(category))
        if token is None:
            return False
        return await self._load_latest(state, role, location, category, token)

    async def toggle_historical_year(
        self,
        location: Location,
        category: Category,
        year: int,
        *,
        role: Role = Role.PRIMARY,
    ) -> bool:
        """Select ``year`` (fetch it) or deselect it (forget it, no network).

        Returns True when the year ends up present in the historical map.
        Deselecting a year whose fetch is still in flight cancels it.
        """
        category = Category(category)
        role = Role(role)
        year = self._check_year(year)
        async with self._lock:
            state = self._bind_locked(role, location)
            slot = state.slot(category)
            if role is Role.PRIMARY:
                jobs = self._toggle_primary_locked(category, year)
            else:
                token = self._set_year_locked(slot, year, year not in slot.selected_years())
                jobs = []
                if token is not None:
                    jobs.append(self._load_year(state, role, location, category, year, token))
        await self._run(jobs)
        return year in slot.historical

    def _toggle_primary_locked(self, category: Category, year: int) -> list[Coroutine[Any, Any, bool]]:
        """Flip ``year`` on the primary and apply the same selection to the comparison."""
        location = self._require_primary_locked()
        slot = self.primary.slot(category)
        selected = year not in slot.selected_years()
        jobs = []
        token = self._set_year_locked(slot, year, selected)
        if token is not None:
            jobs.append(self._load_year(self.primary, Role.PRIMARY, location, category, year, token))
        comparison_location = self.comparison.location
        if self.is_comparing and comparison_location is not None:
            comparison_token = self._set_year_locked(self.comparison.slot(category), year, selected)
            if comparison_token is not None:
                jobs.append(
                    self._load_year(
                        self.comparison,
                        Role.COMPARISON,
                        comparison_location,
                        category,
                        year,
                        comparison_token,
                    )
                )
        return jobs

    async def toggle_year(self, category: Category, year: int) -> bool:
        """Toggle a year on the primary location and mirror it on the comparison.

        Returns whether the year is selected (loaded or still loading) on the
        primary once the fetches settle; a failed fetch leaves it unselected.
        """
        category = Category(category)
        year = self._check_year(year)
        async with self._lock:
            self._require_primary_locked()
            slot = self.primary.slot(category)
            jobs = self._toggle_primary_locked(category, year)
        await self._run(jobs)
        return year in slot.selected_years()

    async def refresh_latest(self, category: Category) -> None:
        """Re-fetch the latest record for the primary and, while comparing, the comparison."""
        category = Category(category)
        jobs = []
        async with self._lock:
            location = self._require_primary_locked()
            token = self._begin_latest_locked(self.primary.slot(category))
            if token is not None:
                jobs.append(self._load_latest(self.primary, Role.PRIMARY, location, category, token))
            comparison_location = self.comparison.location
            if self.is_comparing and comparison_location is not None:
                token = self._begin_latest_locked(self.comparison.slot(category))
                if token is not None:
                    jobs.append(
                        self._load_latest(self.comparison, Role.COMPARISON, comparison_location, category, token)
                    )
        await self._run(jobs)

    async def enter_comparison(self, location: Location, category: Category) -> None:
        """Start comparing against ``location``.

        Previous comparison state is discarded. The comparison's latest record
        is fetched together with every year currently selected on the primary
        side, so both locations show the same years.
        """
        category = Category(category)
        jobs = []
        async with self._lock:
            self._require_primary_locked()
            self._clear_comparison_locked()
            self.comparison = LocationFetchState(location=location)
            self.is_comparing = True
            state = self.comparison
            slot = state.slot(category)
            years = sorted(self.primary.slot(category).selected_years(), reverse=True)
            latest_token = self._begin_latest_locked(slot)
            if latest_token is not None:
                jobs.append(self._load_latest(state, Role.COMPARISON, location, category, latest_token))
            for year in years:
                token = self._set_year_locked(slot, year, True)
                if token is not None:
                    jobs.append(self._load_year(state, Role.COMPARISON, location, category, year, token))
            logger.info(
                "Entered comparison",
                location=describe_location(location),
                category=category.value,
                years=years,
            )
        await self._run(jobs)

    async def exit_comparison(self) -> None:
        """Drop all comparison state for every category."""
        async with self._lock:
            self._clear_comparison_locked()

    async def show_category(self, category: Category) -> None:
        """Load whatever a category view needs that is not loaded or loading yet.

        Fetches the primary's latest record when missing and, while comparing,
        the comparison's latest record plus any primary-selected year it lacks.
        """
        category = Category(category)
        jobs = []
        async with self._lock:
            location = self._require_primary_locked()
            primary_slot = self.primary.slot(category)
            if primary_slot.latest is None:
                token = self._begin_latest_locked(primary_slot)
                if token is not None:
                    jobs.append(self._load_latest(self.primary, Role.PRIMARY, location, category, token))

            comparison_location = self.comparison.location
            if self.is_comparing and comparison_location is not None:
                state = self.comparison
                slot = state.slot(category)
                if slot.latest is None:
                    token = self._begin_latest_locked(slot)
                    if token is not None:
                        jobs.append(
                            self._load_latest(state, Role.COMPARISON, comparison_location, category, token)
                        )
                for year in sorted(primary_slot.selected_years(), reverse=True):
                    token = self._set_year_locked(slot, year, True)
                    if token is not None:
                        jobs.append(
                            self._load_year(state, Role.COMPARISON, comparison_location, category, year, token)
                        )
        await self._run(jobs)

    # -- published state -----------------------------------------------------

    def snapshot(self, category: Category | None = None) -> dict[str, Any]:
        categories = [Category(category)] if category is not None else list(Category)
        return {
            "is_comparing": self.is_comparing,
            "latest_year": self.latest_year,
            "historical_years": list(self.historical_years),
            "primary": _state_view(self.primary, categories),
            "comparison": _state_view(self.comparison, categories) if self.is_comparing else None,
        }


def _slot_view(slot: CategorySlot) -> dict[str, Any]:
    return {
        "status": slot.status.value,
        "error": slot.error,
        "error_kind": slot.error_kind,
        "latest": slot.latest.as_dict() if slot.latest is not None else None,
        "historical": {str(year): slot.historical[year].as_dict() for year in slot.sorted_years()},
        "loading_years": slot.loading_years,
        "year_errors": {str(year): message for year, message in sorted(slot.year_errors.items(), reverse=True)},
    }


def _state_view(state: LocationFetchState, categories: Sequence[Category]) -> dict[str, Any]:
    return {
        "location": location_to_dict(state.location) if state.location is not None else None,
        "categories": {category.value: _slot_view(state.slot(category)) for category in categories},
    }
