from __future__ import annotations

import pytest

from backend.censusly.errors import InvalidRequest
from backend.censusly.query_builder import (
    CityLocation,
    CountyLocation,
    NationLocation,
    StateLocation,
    ZipLocation,
    build_request,
    geography_query_string,
    make_location,
)
from backend.censusly.variables import Category, variable_codes

OVERVIEW_CODES = (
    "DP05_0001E",
    "DP05_0018E",
    "DP03_0062E",
    "DP02_0067PE",
    "DP03_0119PE",
    "DP04_0046PE",
    "DP03_0025E",
    "DP04_0089E",
    "DP03_0009PE",
    "DP02_0094E",
    "DP02_0070E",
    "DP02_0153PE",
    "DP02_0068PE",
    "DP04_0134E",
)


def test_state_request_params():
    request = build_request(StateLocation(fips="06"), 2023, Category.OVERVIEW)

    assert request.variables == OVERVIEW_CODES
    assert request.params() == [("get", ",".join(OVERVIEW_CODES)), ("for", "state:06")]
    assert geography_query_string(request) == "for=state:06"
    assert request.url() == "https://api.census.gov/data/2023/acs/acs5/profile"


def test_county_request_includes_owning_state():
    request = build_request(CountyLocation(fips="037", state_fips="06"), 2023, Category.OVERVIEW)

    assert request.geography_clause == (("for", "county:037"), ("in", "state:06"))
    assert geography_query_string(request) == "for=county:037&in=state:06"


def test_city_request_uses_place_predicate():
    request = build_request(CityLocation(fips="44000", state_fips="06"), 2021, Category.HOUSING)

    assert geography_query_string(request) == "for=place:44000&in=state:06"
    assert request.path == "2021/acs/acs5/profile"


def test_nation_and_zip_clauses():
    nation = build_request(NationLocation(), 2023, Category.ECONOMIC)
    zcta = build_request(ZipLocation(code="53711"), 2023, Category.SOCIAL)

    assert geography_query_string(nation) == "for=us:1"
    assert geography_query_string(zcta) == "for=zip code tabulation area:53711"


def test_params_order_and_api_key():
    request = build_request(CountyLocation(fips="025", state_fips="55"), 2022, Category.DEMOGRAPHIC)

    params = request.params("secret")
    assert [key for key, _ in params] == ["get", "for", "in", "key"]
    assert params[-1] == ("key", "secret")
    assert params[0][1].split(",") == list(variable_codes(Category.DEMOGRAPHIC))


@pytest.mark.parametrize(
    "location",
    [
        CountyLocation(fips="037"),
        CityLocation(fips="44000"),
        CountyLocation(fips="", state_fips="06"),
        StateLocation(fips=""),
        ZipLocation(code=""),
    ],
)
def test_incomplete_locations_are_rejected(location):
    with pytest.raises(InvalidRequest):
        build_request(location, 2023, Category.OVERVIEW)


@pytest.mark.parametrize("year", [23, 20233, "2023", True])
def test_year_must_be_four_digits(year):
    with pytest.raises(InvalidRequest):
        build_request(StateLocation(fips="06"), year, Category.OVERVIEW)


def test_locations_compare_by_value_not_name():
    assert CountyLocation(fips="037", state_fips="06", name="Los Angeles County") == CountyLocation(
        fips="037", state_fips="06"
    )
    assert CountyLocation(fips="037", state_fips="06") != CityLocation(fips="037", state_fips="06")
    assert len({StateLocation(fips="06"), StateLocation(fips="06", name="CA")}) == 1


def test_make_location_from_loose_fields():
    assert make_location("county", fips=" 037 ", state_fips="06") == CountyLocation(fips="037", state_fips="06")
    assert make_location("zip", code="53711") == ZipLocation(code="53711")
    assert make_location("nation").name == "United States"
    assert make_location("city", fips="44000", state_fips="").state_fips is None

    with pytest.raises(InvalidRequest):
        make_location("tract", fips="001704")
