"""Shared pydantic base for the rule script wire format."""

from __future__ import annotations
from typing import Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Counter values and thresholds stay ints when the document uses ints
Number = Union[int, float]


class WireModel(BaseModel):
    """
    Base for every wire-format model.

    Keys are camelCase on the wire and snake_case in Python. Fields not
    declared by a variant are dropped, so a condition or action only ever
    carries the fields that belong to its own type.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Point(WireModel):
    """A normalized stage coordinate (0.0 - 1.0 on both axes when valid)."""
    x: float
    y: float


class Region(WireModel):
    """A rectangular stage region used by position conditions."""
    x: float
    y: float
    width: float | None = None
    height: float | None = None
