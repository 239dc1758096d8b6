from __future__ import annotations

import json
from pathlib import Path

import pytest

from models import Direction, ValueAxis
from scheduler.errors import ConfigurationError
from scheduler.settings import DEFAULT_VISIT_TYPES, Settings, load_strategy_file
from tests.utils import ONLINE, plain_date


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "strategies.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def _strategy(**overrides) -> dict:
    data = {
        "provider": "City Clinic 8",
        "source": "src",
        "person": "Doe  John Alan",
        "entries": {
            "General practitioner": [{
                "type": ONLINE,
                "date": {"ignore": [{"kind": "point", "target": plain_date(7, 7)}]},
                "time": {
                    "strict": True,
                    "prefer": [
                        {"kind": "span", "lower": "9:00", "upper": "11:00", "direction": "desc"},
                        {"kind": "span", "lower": "11:00", "upper": "20:00"},
                    ],
                },
            }]
        },
    }
    data.update(overrides)
    return data


def test_settings_defaults() -> None:
    settings = Settings.from_env({})

    assert settings.interval == 10.0
    assert settings.auto_complete_timeout is None
    assert settings.shutdown_on_complete is False
    assert settings.debug is True


def test_settings_from_environment() -> None:
    settings = Settings.from_env({
        "SLOT_HUNTER_INTERVAL": "2.5",
        "SLOT_HUNTER_AUTO_COMPLETE_TIMEOUT": "3600",
        "SLOT_HUNTER_SHUTDOWN_ON_COMPLETE": "true",
        "SLOT_HUNTER_DEBUG": "false",
        "UNRELATED": "x",
    })

    assert settings.interval == 2.5
    assert settings.auto_complete_timeout == 3600
    assert settings.shutdown_on_complete is True
    assert settings.debug is False


def test_invalid_settings_raise_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        Settings.from_env({"SLOT_HUNTER_INTERVAL": "-1"})


def test_loads_strategy_file(tmp_path: Path) -> None:
    loaded = load_strategy_file(_write(tmp_path, {"strategies": [_strategy()]}))

    assert loaded.visit_types == DEFAULT_VISIT_TYPES
    strategy = loaded.strategies[0]
    assert strategy.person == "Doe John Alan"
    entry = strategy.entries["General practitioner"][0]
    assert entry.date.ignore[0].axis == ValueAxis.DATE
    assert [m.direction for m in entry.time.prefer] == [Direction.DESC, Direction.ASC]


def test_custom_visit_types(tmp_path: Path) -> None:
    payload = {
        "visit_types": {"Walk-in": ["Same day"]},
        "strategies": [_strategy(entries={"Dentist": [{"type": ["Walk-in"]}]})],
    }
    loaded = load_strategy_file(_write(tmp_path, payload))

    assert loaded.visit_types == {"Walk-in": ["Same day"]}


def test_unknown_visit_category_is_rejected(tmp_path: Path) -> None:
    payload = {"strategies": [_strategy(entries={"Dentist": [{"type": "Teleport visit"}]})]}
    with pytest.raises(ConfigurationError, match="Teleport visit"):
        load_strategy_file(_write(tmp_path, payload))


def test_invalid_literal_is_rejected_at_load(tmp_path: Path) -> None:
    bad = _strategy(entries={"Dentist": [{
        "type": ONLINE,
        "date": {"prefer": [{"kind": "span", "lower": plain_date(10, 7), "upper": plain_date(5, 7)}]},
    }]})
    with pytest.raises(ConfigurationError):
        load_strategy_file(_write(tmp_path, {"strategies": [bad]}))


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_strategy_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_strategy_file(broken)
