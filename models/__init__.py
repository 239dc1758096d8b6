"""
Data models package for the Slot Hunter.

This package exports the three pillars of the data architecture:
1. Values & Matchers (canonical forms, Point/Span/Weekend predicates)
2. Demand (RuleSet, Entry, StrategyConfig)
3. Supply (Provider, Employee, Day, Time, Person)
"""

from .values import (
    build_fingerprint,
    build_provider_fingerprint,
    canonical_date,
    canonical_employee,
    canonical_time,
    normalize_display,
    normalize_provider_name
)

from .matchers import (
    Direction,
    Matcher,
    PointMatcher,
    SpanMatcher,
    ValueAxis,
    WeekendMatcher,
    date_point,
    date_span,
    employee_point,
    time_point,
    time_span,
    weekend
)

from .rules import (
    Entry,
    RuleSet,
    StrategyConfig
)

from .slots import (
    AppointmentTarget,
    Category,
    Day,
    Employee,
    Person,
    Provider,
    Time,
    VisitType
)

__all__ = [
    # --- Canonical Values ---
    "build_fingerprint",
    "build_provider_fingerprint",
    "canonical_date",
    "canonical_employee",
    "canonical_time",
    "normalize_display",
    "normalize_provider_name",

    # --- Matchers ---
    "Direction",
    "Matcher",
    "PointMatcher",
    "SpanMatcher",
    "ValueAxis",
    "WeekendMatcher",
    "date_point",
    "date_span",
    "employee_point",
    "time_point",
    "time_span",
    "weekend",

    # --- Demand Models ---
    "Entry",
    "RuleSet",
    "StrategyConfig",

    # --- Supply Models ---
    "AppointmentTarget",
    "Category",
    "Day",
    "Employee",
    "Person",
    "Provider",
    "Time",
    "VisitType",
]
