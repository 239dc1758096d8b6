from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from models import (
    Direction,
    Entry,
    PointMatcher,
    RuleSet,
    SpanMatcher,
    ValueAxis,
    WeekendMatcher,
    build_fingerprint,
    build_provider_fingerprint,
    canonical_date,
    canonical_employee,
    canonical_time,
    date_point,
    date_span,
    employee_point,
    normalize_provider_name,
    time_point,
    time_span,
    weekend,
)
from tests.utils import ONLINE, YEAR, first_saturday, plain_date


def test_canonical_date_accepts_both_orders() -> None:
    assert canonical_date(f"7.3.{YEAR}") == f"{YEAR}.03.07"
    assert canonical_date(f"{YEAR}.3.7") == f"{YEAR}.03.07"


@pytest.mark.parametrize("literal", [
    "07/03/2024",
    f"32.01.{YEAR}",
    f"01.13.{YEAR}",
    f"01.01.{YEAR + 2}",
    f"01.01.{YEAR - 2}",
])
def test_canonical_date_rejects_bad_literals(literal: str) -> None:
    with pytest.raises(ValueError):
        canonical_date(literal)


def test_canonical_time_pads_and_validates() -> None:
    assert canonical_time("9:5") == "09:05"
    for bad in ("24:00", "10:60", "1000", "ab:cd"):
        with pytest.raises(ValueError):
            canonical_time(bad)


def test_canonical_employee_keeps_letters_only() -> None:
    assert canonical_employee("Сильченко В.А.") == "сильченкова"
    assert canonical_employee("Сёмин  Ё.") == canonical_employee("семин е")


def test_fingerprint_matches_java_string_hash() -> None:
    assert build_fingerprint("abc") == 96354
    assert build_fingerprint("hello") == 99162322
    assert build_fingerprint("polygenelubricants") == -2147483648
    assert build_fingerprint("Dr. Smith") == build_fingerprint("dr smith")


@pytest.mark.parametrize("raw, expected", [
    ("\"Городская поликлиника N 8\"", "Городская поликлиника №8"),
    ("гуз  городская поликлиника №  8", "ГУЗ городская поликлиника №8"),
    ("Больница им.С.Р.Миротворцева г.Саратов", "Больница им. С.Р. Миротворцева г. Саратов"),
    ("Больница им. С. Р. Миротворцева г. Саратов", "Больница им. С.Р. Миротворцева г. Саратов"),
    ("Гузеевская больница", "Гузеевская больница"),
])
def test_provider_names_are_normalized(raw: str, expected: str) -> None:
    assert normalize_provider_name(raw) == expected


def test_provider_fingerprint_ignores_legal_prefix_and_numbering() -> None:
    listed = build_provider_fingerprint("ГУЗ Городская поликлиника №8")

    assert build_provider_fingerprint("Городская поликлиника N8") == listed
    assert build_provider_fingerprint("«Городская поликлиника № 8»") == listed
    assert build_provider_fingerprint("Городская поликлиника №9") != listed


def test_literal_round_trips_through_its_own_matcher() -> None:
    assert date_point(f"5.7.{YEAR}").matches(f"5.7.{YEAR}")
    assert time_point("9:00").matches("9:00")
    assert employee_point("Smith J.A.").matches("Smith J.A.")
    assert date_span(plain_date(1, 7), plain_date(9, 7)).matches(plain_date(1, 7))
    assert time_span("9:00", "11:00").matches("11:00")


def test_point_compares_canonical_forms() -> None:
    matcher = date_point(plain_date(7, 7))
    assert matcher.target == f"{YEAR}.07.07"
    assert matcher.matches(f"7.7.{YEAR}")
    assert not matcher.matches(plain_date(8, 7))


def test_span_is_inclusive_and_ordered() -> None:
    span = time_span("9:00", "11:00")
    assert span.matches("09:00")
    assert span.matches("10:59")
    assert not span.matches("11:01")
    assert not span.matches("8:59")


@pytest.mark.parametrize("lower,upper", [
    (plain_date(10, 7), plain_date(5, 7)),
    (plain_date(5, 7), plain_date(5, 7)),
])
def test_inverted_date_span_fails_at_construction(lower: str, upper: str) -> None:
    with pytest.raises(ValidationError):
        date_span(lower, upper)


def test_invalid_literal_fails_at_construction() -> None:
    with pytest.raises(ValidationError):
        time_point("25:00")
    with pytest.raises(ValidationError):
        date_point("yesterday")


def test_malformed_input_is_a_logged_non_match(caplog) -> None:
    matcher = time_span("9:00", "11:00")
    with caplog.at_level(logging.WARNING, logger="models.matchers"):
        assert matcher.matches("nine o'clock") is False
    assert "malformed time value" in caplog.text


def test_weekend_matcher() -> None:
    saturday = first_saturday()
    sunday = saturday.replace(day=saturday.day + 1)
    monday = saturday.replace(day=saturday.day + 2)
    matcher = weekend()

    assert matcher.matches(saturday.strftime("%d.%m.%Y"))
    assert matcher.matches(sunday.strftime("%Y.%m.%d"))
    assert not matcher.matches(monday.strftime("%d.%m.%Y"))


def test_weekend_impossible_calendar_day_is_non_match() -> None:
    assert weekend().matches(plain_date(31, 2)) is False


def test_direction_defaults_and_copies() -> None:
    span = time_span("9:00", "11:00")
    reversed_span = span.desc()

    assert span.scan_direction == Direction.ASC
    assert reversed_span.scan_direction == Direction.DESC
    assert reversed_span.asc().scan_direction == Direction.ASC
    assert weekend().desc().direction == Direction.DESC
    assert time_point("9:00").scan_direction == Direction.ASC


def test_matchers_are_frozen() -> None:
    span = time_span("9:00", "11:00")
    with pytest.raises(ValidationError):
        span.direction = Direction.DESC


def test_axis_restrictions() -> None:
    with pytest.raises(ValidationError):
        SpanMatcher(axis=ValueAxis.EMPLOYEE, lower="a", upper="b")
    with pytest.raises(ValidationError):
        WeekendMatcher(axis=ValueAxis.TIME)


def test_entry_rejects_matcher_on_wrong_axis() -> None:
    with pytest.raises(ValidationError):
        Entry(categories=[ONLINE], time=RuleSet(prefer=[date_point(plain_date(1, 7))]))


def test_entry_parses_config_dicts_and_fills_axes() -> None:
    entry = Entry.model_validate({
        "type": ONLINE,
        "date": {"ignore": [{"kind": "point", "target": plain_date(7, 7)}, {"kind": "weekend"}]},
        "time": {
            "strict": True,
            "prefer": [{"kind": "span", "lower": "9:00", "upper": "11:00", "direction": "desc"}],
        },
    })

    assert entry.categories == [ONLINE]
    assert isinstance(entry.date.ignore[0], PointMatcher)
    assert entry.date.ignore[0].axis == ValueAxis.DATE
    assert isinstance(entry.date.ignore[1], WeekendMatcher)
    assert entry.time.prefer[0].axis == ValueAxis.TIME
    assert entry.time.prefer[0].direction == Direction.DESC
    assert entry.unsatisfiable_axes() == []


def test_strict_without_prefer_is_flagged() -> None:
    entry = Entry(categories=[ONLINE], date=RuleSet(strict=True))
    assert entry.unsatisfiable_axes() == [ValueAxis.DATE]
