#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import httpx

from backend.censusly.census_service import ApiConfig, CensusClient
from backend.censusly.config import load_settings
from backend.censusly.errors import InvalidRequest
from backend.censusly.logging_config import configure_logging
from backend.censusly.orchestrator import FetchOrchestrator
from backend.censusly.presentation import category_view
from backend.censusly.query_builder import LEVELS, Location, make_location
from backend.censusly.variables import Category

EXIT_INVALID_ARGS = 2
EXIT_NO_DATA = 3
EXIT_UPSTREAM_FAILURE = 4

_EXIT_BY_ERROR_KIND = {
    "InvalidRequest": EXIT_INVALID_ARGS,
    "NoDataFound": EXIT_NO_DATA,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Look up ACS 5-year Data Profile statistics for a nation, state, county, "
            "city or ZIP code, optionally across years and against a second location."
        )
    )
    parser.add_argument("--level", choices=LEVELS, required=True, help="Geography level.")
    parser.add_argument("--fips", type=str, default=None, help="State, county or place FIPS code.")
    parser.add_argument(
        "--state-fips",
        type=str,
        default=None,
        help="Owning state FIPS code (required for county and city).",
    )
    parser.add_argument("--zip", type=str, default=None, help="ZIP Code Tabulation Area.")
    parser.add_argument("--name", type=str, default=None, help="Display name for the location.")
    parser.add_argument(
        "--category",
        choices=[category.value for category in Category],
        default=Category.OVERVIEW.value,
        help="Statistics category (default: overview).",
    )
    parser.add_argument(
        "--year",
        type=int,
        action="append",
        default=[],
        help="Historical year to include; repeat for several years.",
    )
    parser.add_argument("--compare-level", choices=LEVELS, default=None, help="Comparison geography level.")
    parser.add_argument("--compare-fips", type=str, default=None)
    parser.add_argument("--compare-state-fips", type=str, default=None)
    parser.add_argument("--compare-zip", type=str, default=None)
    parser.add_argument("--compare-name", type=str, default=None)
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output JSON file path. Defaults to scripts/out/profile_<level>_<id>.json",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=20.0,
        help="HTTP timeout in seconds (default: 20).",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print output JSON with indentation.",
    )
    return parser


def _location_errors(prefix: str, level: str | None, fips: str | None, state_fips: str | None, zip_code: str | None) -> list[str]:
    errors: list[str] = []
    if level in {"state", "county", "city"} and not fips:
        errors.append(f"--{prefix}fips is required for level {level}.")
    if level in {"county", "city"} and not state_fips:
        errors.append(f"--{prefix}state-fips is required for level {level}.")
    if level == "zip" and not zip_code:
        errors.append(f"--{prefix}zip is required for level zip.")
    return errors


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    errors = _location_errors("", args.level, args.fips, args.state_fips, args.zip)
    if args.compare_level:
        errors += _location_errors(
            "compare-", args.compare_level, args.compare_fips, args.compare_state_fips, args.compare_zip
        )
    if errors:
        parser.error(errors[0])
    for year in args.year:
        if not 1000 <= year <= 9999:
            parser.error(f"--year must be a four-digit year. Got: {year}")
    if args.timeout <= 0:
        parser.error("--timeout must be > 0.")


def primary_location(args: argparse.Namespace) -> Location:
    return make_location(
        args.level, fips=args.fips, state_fips=args.state_fips, code=args.zip, name=args.name
    )


def comparison_location(args: argparse.Namespace) -> Location | None:
    if not args.compare_level:
        return None
    return make_location(
        args.compare_level,
        fips=args.compare_fips,
        state_fips=args.compare_state_fips,
        code=args.compare_zip,
        name=args.compare_name,
    )


def default_output_path(args: argparse.Namespace) -> Path:
    identifier = args.zip or args.fips or "us"
    if args.state_fips and args.level in {"county", "city"}:
        identifier = f"{args.state_fips}_{identifier}"
    return Path("scripts/out") / f"profile_{args.level}_{identifier}.json"


async def run_lookup(args: argparse.Namespace) -> dict[str, object]:
    settings = load_settings()
    config = ApiConfig(base_url=settings.api_base, api_key=settings.api_key, timeout=args.timeout)
    category = Category(args.category)
    years = sorted(set(args.year), reverse=True)
    location = primary_location(args)

    async with httpx.AsyncClient(follow_redirects=True) as client:
        census = CensusClient(client, config)
        orchestrator = FetchOrchestrator(
            census.fetch_record,
            latest_year=settings.latest_year,
            historical_years=years,
        )
        await orchestrator.select_location(location)
        await asyncio.gather(
            orchestrator.fetch_latest(location, category),
            *(orchestrator.toggle_historical_year(location, category, year) for year in years),
        )
        compare_to = comparison_location(args)
        if compare_to is not None:
            await orchestrator.enter_comparison(compare_to, category)

    return {**orchestrator.snapshot(category), **category_view(orchestrator, category)}


def lookup_profile(args: argparse.Namespace) -> dict[str, object]:
    result = asyncio.run(run_lookup(args))
    result["output_path"] = str(args.out or default_output_path(args))
    return result


def write_output(payload: dict[str, object], output_path: Path, pretty: bool) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        if pretty:
            json.dump(payload, f, indent=2, ensure_ascii=True)
            f.write("\n")
        else:
            json.dump(payload, f, ensure_ascii=True)


def print_summary(result: dict[str, object], output_path: Path) -> None:
    table = result["table"]
    assert isinstance(table, dict)
    years = table.get("years") or []
    comparing = bool(result.get("is_comparing"))

    print(f"Saved: {output_path}")
    print(f"Category: {table.get('category')}")
    header = ["", str(result.get("latest_year"))]
    if comparing:
        header.append("compare")
    header.extend(years)
    print(" | ".join(header))
    for row in table.get("rows", []):
        cells = [row["label"], row["latest"]]
        if comparing:
            cells.append(row.get("comparison_latest", "N/A"))
        cells.extend(row["historical"].get(year, "N/A") for year in years)
        print(" | ".join(cells))

    for role in ("primary", "comparison"):
        state = result.get(role)
        if not isinstance(state, dict):
            continue
        for name, slot in state.get("categories", {}).items():
            if slot.get("error"):
                print(f"- {role} {name}: {slot['error']}", file=sys.stderr)
            for year, message in slot.get("year_errors", {}).items():
                print(f"- {role} {name} {year}: {message}", file=sys.stderr)


def failure_exit_code(result: dict[str, object]) -> int:
    primary = result.get("primary")
    if not isinstance(primary, dict):
        return 0
    for slot in primary.get("categories", {}).values():
        if slot.get("latest") is None and slot.get("error_kind"):
            return _EXIT_BY_ERROR_KIND.get(slot["error_kind"], EXIT_UPSTREAM_FAILURE)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)
    configure_logging("console")

    output_path = args.out or default_output_path(args)

    try:
        result = lookup_profile(args)
    except (InvalidRequest, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    exit_code = failure_exit_code(result)
    if exit_code:
        primary = result["primary"]
        assert isinstance(primary, dict)
        for slot in primary["categories"].values():
            if slot.get("error"):
                print(f"Error: {slot['error']}", file=sys.stderr)
        return exit_code

    write_output(result, output_path, pretty=args.pretty)
    print_summary(result, output_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
