from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator

import httpx
import structlog
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .census_service import ApiConfig, CensusClient
from .config import load_settings
from .errors import CensusError, InvalidRequest, NoDataFound
from .geography import GeographyCatalog
from .logging_config import configure_logging
from .orchestrator import FetchOrchestrator, NoPrimaryLocation
from .presentation import category_view
from .schemas import CategoryRequest, ComparisonRequest, SelectLocationRequest
from .variables import Category

settings = load_settings()
configure_logging(settings.log_format)
logger = structlog.get_logger(__name__)

http_client = httpx.AsyncClient(follow_redirects=True)
census_client = CensusClient(http_client, ApiConfig.from_settings(settings))
catalog = GeographyCatalog(census_client, year=settings.geography_year)
orchestrator = FetchOrchestrator(
    census_client.fetch_record,
    latest_year=settings.latest_year,
    historical_years=settings.historical_years,
)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await http_client.aclose()


app = FastAPI(title="Censusly API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(exc: CensusError) -> HTTPException:
    if isinstance(exc, InvalidRequest):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, NoDataFound):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def _profile_payload(category: Category) -> dict[str, Any]:
    return {**orchestrator.snapshot(category), **category_view(orchestrator, category)}


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/geographies/states")
async def list_states() -> dict:
    try:
        states = await catalog.states()
    except CensusError as exc:
        raise _http_error(exc) from exc
    return {"states": [asdict(state) for state in states]}


@app.get("/api/geographies/states/{state_fips}/counties")
async def list_counties(state_fips: str) -> dict:
    try:
        await catalog.select_state(state_fips)
    except CensusError as exc:
        raise _http_error(exc) from exc
    return {"state_fips": state_fips, "counties": [asdict(county) for county in catalog.counties]}


@app.get("/api/geographies/states/{state_fips}/places")
async def list_places(
    state_fips: str,
    q: str = Query(""),
    limit: int = Query(20, ge=1, le=500),
) -> dict:
    try:
        await catalog.select_state(state_fips)
    except CensusError as exc:
        raise _http_error(exc) from exc
    places = catalog.search_places(q, limit=limit)
    return {"state_fips": state_fips, "query": q, "places": [asdict(place) for place in places]}


@app.get("/api/profile/years")
def profile_years() -> dict:
    return {
        "latest_year": orchestrator.latest_year,
        "historical_years": list(orchestrator.historical_years),
    }


@app.get("/api/profile")
def get_profile(category: Category = Query(Category.OVERVIEW)) -> dict:
    return _profile_payload(category)


@app.post("/api/profile/location")
async def select_location(body: SelectLocationRequest, category: Category = Query(Category.OVERVIEW)) -> dict:
    """Select the primary location and load the requested category for it."""
    await orchestrator.select_location(body.location.to_location())
    await orchestrator.show_category(category)
    return _profile_payload(category)


@app.post("/api/profile/latest")
async def refresh_latest(body: CategoryRequest) -> dict:
    try:
        await orchestrator.refresh_latest(body.category)
    except NoPrimaryLocation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _profile_payload(body.category)


@app.post("/api/profile/categories/{category}")
async def show_category(category: Category) -> dict:
    try:
        await orchestrator.show_category(category)
    except NoPrimaryLocation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _profile_payload(category)


@app.post("/api/profile/years/{year}")
async def toggle_year(year: int, body: CategoryRequest) -> dict:
    try:
        selected = await orchestrator.toggle_year(body.category, year)
    except NoPrimaryLocation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except InvalidRequest as exc:
        raise _http_error(exc) from exc
    return {"year": year, "selected": selected, **_profile_payload(body.category)}


@app.post("/api/profile/comparison")
async def enter_comparison(body: ComparisonRequest) -> dict:
    try:
        await orchestrator.enter_comparison(body.location.to_location(), body.category)
    except NoPrimaryLocation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _profile_payload(body.category)


@app.delete("/api/profile/comparison")
async def exit_comparison(category: Category = Query(Category.OVERVIEW)) -> dict:
    await orchestrator.exit_comparison()
    return _profile_payload(category)
