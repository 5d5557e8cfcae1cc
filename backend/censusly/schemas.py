from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .query_builder import Location, make_location
from .variables import Category


class LocationBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["nation", "state", "county", "city", "zip"]
    fips: Optional[str] = Field(default=None, max_length=10)
    state_fips: Optional[str] = Field(default=None, max_length=2)
    code: Optional[str] = Field(default=None, max_length=10)
    name: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def validate_identifiers(self) -> "LocationBody":
        for label, value in (("fips", self.fips), ("state_fips", self.state_fips), ("code", self.code)):
            if value is not None and value.strip() and not value.strip().isdigit():
                raise ValueError(f"{label} must contain only digits. Got: {value!r}")
        return self

    def to_location(self) -> Location:
        return make_location(
            self.level,
            fips=self.fips,
            state_fips=self.state_fips,
            code=self.code,
            name=self.name,
        )


class SelectLocationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: LocationBody


class CategoryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: Category = Category.OVERVIEW


class ComparisonRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: LocationBody
    category: Category = Category.OVERVIEW