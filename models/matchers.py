"""
Matcher data models for the Slot Hunter.

A Matcher is an immutable predicate over one canonical value (an employee
name, a day or a time). Three closed variants exist:
1. Point   - exact match after canonicalization.
2. Span    - inclusive range between two canonical bounds.
3. Weekend - date-only test for Saturday/Sunday.

Span and Weekend carry a scan direction that only matters when the matcher
sits in a `prefer` list (DESC means "prefer the latest match").
"""

import logging
from enum import Enum
from typing import Annotated, Callable, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .values import canonical_date, canonical_employee, canonical_time, parse_canonical_date

logger = logging.getLogger(__name__)


class ValueAxis(str, Enum):
    """The three selection axes of a reservation target."""
    EMPLOYEE = "employee"
    DATE = "date"
    TIME = "time"


class Direction(str, Enum):
    """Scan order of a preferred matcher."""
    ASC = "asc"
    DESC = "desc"


CANONICALIZERS: Dict[ValueAxis, Callable[[str], str]] = {
    ValueAxis.EMPLOYEE: canonical_employee,
    ValueAxis.DATE: canonical_date,
    ValueAxis.TIME: canonical_time,
}


def canonicalize(axis: ValueAxis, value: str) -> str:
    return CANONICALIZERS[axis](value)


class BaseMatcher(BaseModel):
    """Shared behaviour: canonicalize the input, then test it."""

    model_config = ConfigDict(frozen=True)

    axis: ValueAxis = Field(description="Which kind of value this matcher reads")

    @property
    def scan_direction(self) -> Direction:
        return Direction.ASC

    def matches(self, value: str) -> bool:
        """
        Malformed upstream values are reported and treated as non-matches,
        never raised into the round.
        """
        try:
            return self._test(canonicalize(self.axis, value))
        except ValueError as e:
            logger.warning(f"{type(self).__name__} skipped malformed {self.axis.value} value: {e}")
            return False

    def _test(self, canonical: str) -> bool:
        raise NotImplementedError


def _canonical_bound(value: str, info: ValidationInfo) -> str:
    axis = info.data.get("axis")
    if axis is None:
        raise ValueError("Matcher axis must be valid before its bounds can be checked")
    return canonicalize(axis, value)


class PointMatcher(BaseMatcher):
    """Exact match against one declared literal."""

    kind: Literal["point"] = "point"
    target: str = Field(description="Declared literal, stored in canonical form")

    @field_validator("target")
    @classmethod
    def canonicalize_target(cls, v, info: ValidationInfo):
        return _canonical_bound(v, info)

    def _test(self, canonical: str) -> bool:
        return canonical == self.target


class SpanMatcher(BaseMatcher):
    """Inclusive range `lower <= value <= upper` on canonical strings."""

    kind: Literal["span"] = "span"
    lower: str = Field(description="Inclusive lower bound, canonical form")
    upper: str = Field(description="Inclusive upper bound, canonical form")
    direction: Direction = Field(default=Direction.ASC)

    @field_validator("axis")
    @classmethod
    def validate_axis(cls, v):
        if v == ValueAxis.EMPLOYEE:
            raise ValueError("Span matchers apply to dates and times only")
        return v

    @field_validator("lower", "upper")
    @classmethod
    def canonicalize_bounds(cls, v, info: ValidationInfo):
        return _canonical_bound(v, info)

    @model_validator(mode="after")
    def validate_range(self):
        if self.lower >= self.upper:
            raise ValueError(
                f"Invalid {self.axis.value} span: lower bound '{self.lower}' "
                f"must be strictly before upper bound '{self.upper}'"
            )
        return self

    @property
    def scan_direction(self) -> Direction:
        return self.direction

    def asc(self) -> "SpanMatcher":
        return self.model_copy(update={"direction": Direction.ASC})

    def desc(self) -> "SpanMatcher":
        return self.model_copy(update={"direction": Direction.DESC})

    def _test(self, canonical: str) -> bool:
        return self.lower <= canonical <= self.upper


class WeekendMatcher(BaseMatcher):
    """Matches days falling on Saturday or Sunday."""

    kind: Literal["weekend"] = "weekend"
    axis: ValueAxis = ValueAxis.DATE
    direction: Direction = Field(default=Direction.ASC)

    @field_validator("axis")
    @classmethod
    def validate_axis(cls, v):
        if v != ValueAxis.DATE:
            raise ValueError("Weekend matchers apply to dates only")
        return v

    @property
    def scan_direction(self) -> Direction:
        return self.direction

    def asc(self) -> "WeekendMatcher":
        return self.model_copy(update={"direction": Direction.ASC})

    def desc(self) -> "WeekendMatcher":
        return self.model_copy(update={"direction": Direction.DESC})

    def _test(self, canonical: str) -> bool:
        # date() rejects impossible days such as 31.02 with ValueError
        return parse_canonical_date(canonical).weekday() >= 5


Matcher = Annotated[
    Union[PointMatcher, SpanMatcher, WeekendMatcher],
    Field(discriminator="kind"),
]


# --- Configuration helpers ---

def employee_point(name: str) -> PointMatcher:
    return PointMatcher(axis=ValueAxis.EMPLOYEE, target=name)


def date_point(value: str) -> PointMatcher:
    return PointMatcher(axis=ValueAxis.DATE, target=value)


def date_span(lower: str, upper: str) -> SpanMatcher:
    return SpanMatcher(axis=ValueAxis.DATE, lower=lower, upper=upper)


def weekend() -> WeekendMatcher:
    return WeekendMatcher()


def time_point(value: str) -> PointMatcher:
    return PointMatcher(axis=ValueAxis.TIME, target=value)


def time_span(lower: str, upper: str) -> SpanMatcher:
    return SpanMatcher(axis=ValueAxis.TIME, lower=lower, upper=upper)
