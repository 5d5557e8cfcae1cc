"""Typed category records and the positional decoder that builds them."""
from __future__ import annotations

from typing import Any, ClassVar, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .errors import DecodeError
from .variables import Category, field_names, variable_codes

NULL_MARKERS = ("", "null")


class CategoryRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    category: ClassVar[Category]

    state_fips: Optional[str] = None

    @classmethod
    def value_fields(cls) -> tuple[str, ...]:
        return tuple(name for name in cls.model_fields if name != "state_fips")

    def value(self, field: str) -> str | None:
        if field not in self.value_fields():
            raise KeyError(f"{self.category.value} has no field named {field!r}")
        return getattr(self, field)

    def as_dict(self) -> dict[str, str | None]:
        return self.model_dump()

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class OverviewRecord(CategoryRecord):
    category: ClassVar[Category] = Category.OVERVIEW

    total_population: Optional[str] = None
    median_age: Optional[str] = None
    median_household_income: Optional[str] = None
    high_school_grad_pct: Optional[str] = None
    poverty_pct: Optional[str] = None
    owner_occupied_pct: Optional[str] = None
    mean_commute_minutes: Optional[str] = None
    median_home_value: Optional[str] = None
    unemployment_pct: Optional[str] = None
    foreign_born: Optional[str] = None
    veterans: Optional[str] = None
    households_with_computer_pct: Optional[str] = None
    bachelors_or_higher_pct: Optional[str] = None
    median_gross_rent: Optional[str] = None


class DemographicRecord(CategoryRecord):
    category: ClassVar[Category] = Category.DEMOGRAPHIC

    total_population: Optional[str] = None
    male_population: Optional[str] = None
    female_population: Optional[str] = None
    median_age: Optional[str] = None
    under_18: Optional[str] = None
    over_65: Optional[str] = None
    white_pct: Optional[str] = None
    black_pct: Optional[str] = None
    native_pct: Optional[str] = None
    asian_pct: Optional[str] = None
    pacific_islander_pct: Optional[str] = None
    one_race_pct: Optional[str] = None
    two_or_more_races_pct: Optional[str] = None
    hispanic_pct: Optional[str] = None
    white_non_hispanic_pct: Optional[str] = None
    sex_ratio: Optional[str] = None
    born_in_us_pct: Optional[str] = None
    pop_21_and_over_pct: Optional[str] = None
    pop_18_and_over_pct: Optional[str] = None
    english_only_pct: Optional[str] = None


class SocialRecord(CategoryRecord):
    category: ClassVar[Category] = Category.SOCIAL

    total_households: Optional[str] = None
    households_with_under_18_pct: Optional[str] = None
    households_with_over_65_pct: Optional[str] = None
    avg_household_size: Optional[str] = None
    cohabiting_couple_pct: Optional[str] = None
    avg_family_size: Optional[str] = None
    married_couple_pct: Optional[str] = None
    high_school_enrolled_pct: Optional[str] = None
    high_school_grad_pct: Optional[str] = None
    bachelors_or_higher_pct: Optional[str] = None
    disabled_pct: Optional[str] = None
    veteran_pct: Optional[str] = None
    other_language_pct: Optional[str] = None
    has_computer_pct: Optional[str] = None
    has_broadband_pct: Optional[str] = None
    unmarried_women_births_pct: Optional[str] = None
    foreign_born_pct: Optional[str] = None
    us_born_pct: Optional[str] = None
    grandparents_responsible_pct: Optional[str] = None
    american_ancestry_pct: Optional[str] = None


class EconomicRecord(CategoryRecord):
    category: ClassVar[Category] = Category.ECONOMIC

    employed_pct: Optional[str] = None
    unemployment_pct: Optional[str] = None
    mean_travel_time: Optional[str] = None
    management_occupations_pct: Optional[str] = None
    construction_occupations_pct: Optional[str] = None
    education_health_care_pct: Optional[str] = None
    government_workers_pct: Optional[str] = None
    per_capita_income: Optional[str] = None
    median_household_income: Optional[str] = None
    mean_household_income: Optional[str] = None
    social_security_pct: Optional[str] = None
    snap_pct: Optional[str] = None
    health_insurance_pct: Optional[str] = None
    private_insurance_pct: Optional[str] = None
    public_coverage_pct: Optional[str] = None
    below_poverty_pct: Optional[str] = None
    drove_alone_pct: Optional[str] = None
    carpooled_pct: Optional[str] = None
    public_transportation_pct: Optional[str] = None
    walked_pct: Optional[str] = None


class HousingRecord(CategoryRecord):
    category: ClassVar[Category] = Category.HOUSING

    total_housing_units: Optional[str] = None
    occupied_pct: Optional[str] = None
    vacant_pct: Optional[str] = None
    owner_occupied_pct: Optional[str] = None
    renter_occupied_pct: Optional[str] = None
    avg_household_size_owner: Optional[str] = None
    avg_household_size_renter: Optional[str] = None
    one_unit_detached_pct: Optional[str] = None
    twenty_plus_units_pct: Optional[str] = None
    built_2020_or_later_pct: Optional[str] = None
    three_bedrooms_pct: Optional[str] = None
    overcrowded_pct: Optional[str] = None
    median_value: Optional[str] = None
    with_mortgage_pct: Optional[str] = None
    owner_costs_with_mortgage: Optional[str] = None
    owner_costs_without_mortgage: Optional[str] = None
    median_gross_rent: Optional[str] = None
    rent_burden_35_pct: Optional[str] = None
    no_vehicles_pct: Optional[str] = None
    utility_gas_pct: Optional[str] = None


RECORD_TYPES: dict[Category, type[CategoryRecord]] = {
    record_type.category: record_type
    for record_type in (
        OverviewRecord,
        DemographicRecord,
        SocialRecord,
        EconomicRecord,
        HousingRecord,
    )
}


def expected_length(category: Category) -> int:
    """Cells in one data row: one per requested variable plus the echoed FIPS."""
    return len(field_names(category)) + 1


def _cell(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw)
    if text.strip() in NULL_MARKERS:
        return None
    return text


def decode_record(category: Category, row: Sequence[Any], *, stage: str = "decode") -> CategoryRecord:
    """Map one response row onto the category's record by position.

    The row must hold exactly one cell per variable plus the trailing FIPS
    cell. Anything else raises DecodeError; there is no partial fill.
    """
    category = Category(category)
    expected = expected_length(category)
    if len(row) != expected:
        raise DecodeError(expected, len(row), stage=stage)

    names = field_names(category)
    values: dict[str, str | None] = {name: _cell(row[index]) for index, name in enumerate(names)}
    values["state_fips"] = _cell(row[-1])
    return RECORD_TYPES[category](**values)


def placeholder(category: Category) -> CategoryRecord:
    return RECORD_TYPES[Category(category)]()


def _check_record_types() -> None:
    for category in Category:
        record_type = RECORD_TYPES.get(category)
        if record_type is None:
            raise RuntimeError(f"No record type for category {category.value!r}")
        declared = record_type.value_fields()
        configured = field_names(category)
        if declared != configured:
            raise RuntimeError(
                f"{record_type.__name__} fields do not match the {category.value} "
                f"variable table order: {declared} != {configured}"
            )
        if len(variable_codes(category)) + 1 != expected_length(category):
            raise RuntimeError(f"{category.value} decoder length is out of sync with its variables")


_check_record_types()
