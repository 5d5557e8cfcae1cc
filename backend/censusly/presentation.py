from __future__ import annotations

import math
from typing import Any

from .orchestrator import CategorySlot, FetchOrchestrator
from .records import CategoryRecord
from .variables import Category, ValueFormat, variable_by_field, variables_for

NOT_AVAILABLE = "N/A"

# ACS annotation values (-666666666, -999999999, ...) mark estimates that
# could not be computed; they are never real measurements.
ACS_SENTINEL_CEILING = -111111111


def parse_number(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value) or value <= ACS_SENTINEL_CEILING:
        return None
    return value


def format_value(raw: str | None, fmt: ValueFormat | None = None) -> str:
    value = parse_number(raw)
    if value is None:
        return NOT_AVAILABLE
    if fmt == "number":
        return f"{value:,.0f}"
    if fmt == "currency":
        return f"${value:,.0f}"
    if fmt == "percent":
        return f"{value:.1f}%"
    return f"{value:.1f}"


def _record_value(record: CategoryRecord | None, field: str) -> str | None:
    if record is None:
        return None
    return record.value(field)


def build_table(
    category: Category,
    primary: CategorySlot,
    comparison: CategorySlot | None = None,
) -> dict[str, Any]:
    """Rows of formatted values for one category view.

    Historical columns follow the primary's loaded years, newest first. When a
    comparison slot is given each row carries its latest value and its values
    for the same years.
    """
    category = Category(category)
    years = primary.sorted_years()
    rows = []
    for variable in variables_for(category):
        row: dict[str, Any] = {
            "field": variable.field,
            "code": variable.code,
            "label": variable.label,
            "format": variable.fmt,
            "latest": format_value(_record_value(primary.latest, variable.field), variable.fmt),
            "historical": {
                str(year): format_value(primary.historical[year].value(variable.field), variable.fmt)
                for year in years
            },
        }
        if comparison is not None:
            row["comparison_latest"] = format_value(
                _record_value(comparison.latest, variable.field), variable.fmt
            )
            row["comparison_historical"] = {
                str(year): format_value(
                    _record_value(comparison.historical.get(year), variable.field), variable.fmt
                )
                for year in years
            }
        rows.append(row)
    return {"category": category.value, "years": [str(year) for year in years], "rows": rows}


def build_chart_series(
    category: Category,
    field: str,
    primary: CategorySlot,
    comparison: CategorySlot | None = None,
    *,
    latest_year: int,
) -> list[dict[str, Any]]:
    """Numeric points for a line chart of one field across loaded years."""
    variable = variable_by_field(Category(category), field)
    points: list[dict[str, Any]] = []
    sides = [("Primary", primary)]
    if comparison is not None:
        sides.append(("Comparison", comparison))
    for label, slot in sides:
        by_year: dict[int, CategoryRecord] = dict(slot.historical)
        if slot.latest is not None:
            by_year[latest_year] = slot.latest
        for year in sorted(by_year):
            value = parse_number(by_year[year].value(variable.field))
            if value is None:
                continue
            points.append({"year": str(year), "value": value, "location": label})
    return points


def category_view(orchestrator: FetchOrchestrator, category: Category) -> dict[str, Any]:
    category = Category(category)
    primary = orchestrator.primary.slot(category)
    comparison = orchestrator.comparison.slot(category) if orchestrator.is_comparing else None
    return {
        "table": build_table(category, primary, comparison),
        "charts": {
            variable.field: build_chart_series(
                category,
                variable.field,
                primary,
                comparison,
                latest_year=orchestrator.latest_year,
            )
            for variable in variables_for(category)
        },
    }
