"""Category -> ordered ACS Data Profile variables.

This table is the single definition of the positional contract between the
query builder (which sends the codes in this order) and the record decoder
(which reads the response cells back in the same order).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

ValueFormat = Literal["number", "currency", "percent", "decimal"]


class Category(str, Enum):
    OVERVIEW = "overview"
    DEMOGRAPHIC = "demographic"
    SOCIAL = "social"
    ECONOMIC = "economic"
    HOUSING = "housing"


@dataclass(frozen=True)
class ProfileVariable:
    field: str
    code: str
    label: str
    fmt: ValueFormat


def _v(field: str, code: str, label: str, fmt: ValueFormat) -> ProfileVariable:
    return ProfileVariable(field=field, code=code, label=label, fmt=fmt)


CATEGORY_VARIABLES: dict[Category, tuple[ProfileVariable, ...]] = {
    Category.OVERVIEW: (
        _v("total_population", "DP05_0001E", "Total Population", "number"),
        _v("median_age", "DP05_0018E", "Median Age", "decimal"),
        _v("median_household_income", "DP03_0062E", "Median Household Income", "currency"),
        _v("high_school_grad_pct", "DP02_0067PE", "High School Grad+", "percent"),
        _v("poverty_pct", "DP03_0119PE", "Poverty Rate", "percent"),
        _v("owner_occupied_pct", "DP04_0046PE", "Owner-Occupied Housing", "percent"),
        _v("mean_commute_minutes", "DP03_0025E", "Avg. Commute", "decimal"),
        _v("median_home_value", "DP04_0089E", "Median Home Value", "currency"),
        _v("unemployment_pct", "DP03_0009PE", "Unemployment Rate", "percent"),
        _v("foreign_born", "DP02_0094E", "Foreign-Born", "number"),
        _v("veterans", "DP02_0070E", "Veterans", "number"),
        _v("households_with_computer_pct", "DP02_0153PE", "Households w/ Computer", "percent"),
        _v("bachelors_or_higher_pct", "DP02_0068PE", "Bachelor's Degree+", "percent"),
        _v("median_gross_rent", "DP04_0134E", "Median Gross Rent", "currency"),
    ),
    Category.DEMOGRAPHIC: (
        _v("total_population", "DP05_0001E", "Total Population", "number"),
        _v("male_population", "DP05_0002E", "Male Population", "number"),
        _v("female_population", "DP05_0003E", "Female Population", "number"),
        _v("median_age", "DP05_0018E", "Median Age", "decimal"),
        _v("under_18", "DP05_0019E", "Under 18", "number"),
        _v("over_65", "DP05_0024E", "65 and Over", "number"),
        _v("white_pct", "DP05_0037PE", "White", "percent"),
        _v("black_pct", "DP05_0038PE", "Black", "percent"),
        _v("native_pct", "DP05_0039PE", "Native American/Alaska", "percent"),
        _v("asian_pct", "DP05_0047PE", "Asian", "percent"),
        _v("pacific_islander_pct", "DP05_0055PE", "Pacific Islander", "percent"),
        _v("one_race_pct", "DP05_0034PE", "One Race", "percent"),
        _v("two_or_more_races_pct", "DP05_0061PE", "Two or More Races", "percent"),
        _v("hispanic_pct", "DP05_0076PE", "Hispanic", "percent"),
        _v("white_non_hispanic_pct", "DP05_0082PE", "White (Non-Hispanic)", "percent"),
        _v("sex_ratio", "DP05_0004E", "Sex Ratio (M / 100 F)", "decimal"),
        _v("born_in_us_pct", "DP02_0090PE", "Born in USA", "percent"),
        _v("pop_21_and_over_pct", "DP05_0022PE", "Population 21+", "percent"),
        _v("pop_18_and_over_pct", "DP05_0021PE", "Population 18+", "percent"),
        _v("english_only_pct", "DP02_0113PE", "English-language only households", "percent"),
    ),
    Category.SOCIAL: (
        _v("total_households", "DP02_0001E", "Total Households", "number"),
        _v("households_with_under_18_pct", "DP02_0014PE", "Households with <18", "percent"),
        _v("households_with_over_65_pct", "DP02_0015PE", "Households with 65+", "percent"),
        _v("avg_household_size", "DP02_0016E", "Avg. Household Size", "decimal"),
        _v("cohabiting_couple_pct", "DP02_0004PE", "Cohabiting couple household", "percent"),
        _v("avg_family_size", "DP02_0017E", "Avg. Family Size", "decimal"),
        _v("married_couple_pct", "DP02_0002PE", "Married-couple Families", "percent"),
        _v("high_school_enrolled_pct", "DP02_0057PE", "Enrolled in High School", "percent"),
        _v("high_school_grad_pct", "DP02_0067PE", "High School Grad+", "percent"),
        _v("bachelors_or_higher_pct", "DP02_0068PE", "Bachelor's Degree+", "percent"),
        _v("disabled_pct", "DP02_0072PE", "Disabled Population", "percent"),
        _v("veteran_pct", "DP02_0070PE", "Veteran Population", "percent"),
        _v("other_language_pct", "DP02_0114PE", "Speaks non-English Language", "percent"),
        _v("has_computer_pct", "DP02_0153PE", "Has Computer", "percent"),
        _v("has_broadband_pct", "DP02_0154PE", "Has Broadband", "percent"),
        _v("unmarried_women_births_pct", "DP02_0038PE", "Unmarried Women Births", "percent"),
        _v("foreign_born_pct", "DP02_0094PE", "Foreign-born Population", "percent"),
        _v("us_born_pct", "DP02_0090PE", "US-born Population", "percent"),
        _v("grandparents_responsible_pct", "DP02_0045PE", "Grandparents Responsible", "percent"),
        _v("american_ancestry_pct", "DP02_0125PE", "American-ancestry Population", "percent"),
    ),
    Category.ECONOMIC: (
        _v("employed_pct", "DP03_0004PE", "Employed", "percent"),
        _v("unemployment_pct", "DP03_0009PE", "Unemployment Rate", "percent"),
        _v("mean_travel_time", "DP03_0025E", "Mean Travel Time to Work", "decimal"),
        _v("management_occupations_pct", "DP03_0027PE", "Management/Sci/Arts Occ.", "percent"),
        _v("construction_occupations_pct", "DP03_0030PE", "Construction/Maint. Occ.", "percent"),
        _v("education_health_care_pct", "DP03_0042PE", "Educational, Health Care Svcs", "percent"),
        _v("government_workers_pct", "DP03_0048PE", "Government Workers", "percent"),
        _v("per_capita_income", "DP03_0088E", "Per capita Income", "currency"),
        _v("median_household_income", "DP03_0062E", "Median Household Income", "currency"),
        _v("mean_household_income", "DP03_0063E", "Mean Household Income", "currency"),
        _v("social_security_pct", "DP03_0066PE", "With Social Security", "percent"),
        _v("snap_pct", "DP03_0074PE", "With SNAP, Food Stamps", "percent"),
        _v("health_insurance_pct", "DP03_0096PE", "With Health Insurance", "percent"),
        _v("private_insurance_pct", "DP03_0097PE", "With Private Insurance", "percent"),
        _v("public_coverage_pct", "DP03_0098PE", "With Public Coverage", "percent"),
        _v("below_poverty_pct", "DP03_0119PE", "Below Poverty Level", "percent"),
        _v("drove_alone_pct", "DP03_0019PE", "Drove Alone", "percent"),
        _v("carpooled_pct", "DP03_0020PE", "Carpooled", "percent"),
        _v("public_transportation_pct", "DP03_0021PE", "Public Transportation", "percent"),
        _v("walked_pct", "DP03_0022PE", "Walked to Work", "percent"),
    ),
    Category.HOUSING: (
        _v("total_housing_units", "DP04_0001E", "Total Housing Units", "number"),
        _v("occupied_pct", "DP04_0002PE", "Occupied Housing Units", "percent"),
        _v("vacant_pct", "DP04_0003PE", "Vacant Housing Units", "percent"),
        _v("owner_occupied_pct", "DP04_0046PE", "Owner-Occupied", "percent"),
        _v("renter_occupied_pct", "DP04_0047PE", "Renter-Occupied", "percent"),
        _v("avg_household_size_owner", "DP04_0048E", "Avg. Household Size (Owner)", "decimal"),
        _v("avg_household_size_renter", "DP04_0049E", "Avg. Household Size (Renter)", "decimal"),
        _v("one_unit_detached_pct", "DP04_0007PE", "1-Unit, Detached", "percent"),
        _v("twenty_plus_units_pct", "DP04_0013PE", "20+ Units", "percent"),
        _v("built_2020_or_later_pct", "DP04_0017PE", "Built 2020 or Later", "percent"),
        _v("three_bedrooms_pct", "DP04_0042PE", "3 Bedrooms", "percent"),
        _v("overcrowded_pct", "DP04_0079PE", "Occupants > 1.5/Room", "percent"),
        _v("median_value", "DP04_0089E", "Median Value", "currency"),
        _v("with_mortgage_pct", "DP04_0091PE", "With Mortgage", "percent"),
        _v("owner_costs_with_mortgage", "DP04_0101E", "Median Monthly Costs (Mortgage)", "currency"),
        _v("owner_costs_without_mortgage", "DP04_0109E", "Median Monthly Costs (No Mort.)", "currency"),
        _v("median_gross_rent", "DP04_0134E", "Median Gross Rent", "currency"),
        _v("rent_burden_35_pct", "DP04_0142PE", "Gross Rent > 35% of Income", "percent"),
        _v("no_vehicles_pct", "DP04_0058PE", "No Vehicles", "percent"),
        _v("utility_gas_pct", "DP04_0063PE", "Utility Gas", "percent"),
    ),
}

# The API caps a single request at 50 variables; the categories stay well under.
MAX_VARIABLES_PER_CATEGORY = 20


def variables_for(category: Category) -> tuple[ProfileVariable, ...]:
    return CATEGORY_VARIABLES[Category(category)]


def variable_codes(category: Category) -> tuple[str, ...]:
    return tuple(variable.code for variable in variables_for(category))


def field_names(category: Category) -> tuple[str, ...]:
    return tuple(variable.field for variable in variables_for(category))


def variable_by_field(category: Category, field: str) -> ProfileVariable:
    for variable in variables_for(category):
        if variable.field == field:
            return variable
    raise KeyError(f"{category.value} has no field named {field!r}")


def _check_table() -> None:
    for category in Category:
        variables = CATEGORY_VARIABLES.get(category)
        if not variables:
            raise RuntimeError(f"No variables configured for category {category.value!r}")
        if len(variables) > MAX_VARIABLES_PER_CATEGORY:
            raise RuntimeError(
                f"{category.value} requests {len(variables)} variables; "
                f"limit is {MAX_VARIABLES_PER_CATEGORY}"
            )
        fields = [variable.field for variable in variables]
        if len(set(fields)) != len(fields):
            raise RuntimeError(f"Duplicate field names in category {category.value!r}")
        codes = [variable.code for variable in variables]
        if len(set(codes)) != len(codes):
            raise RuntimeError(f"Duplicate variable codes in category {category.value!r}")


_check_table()
