"""
Rule and Strategy configuration models for the Slot Hunter.

This module defines the 'Demand' side: what a person wants reserved and the
declarative rules that pick the slot.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .matchers import Matcher, ValueAxis


class RuleSet(BaseModel):
    """
    Strict/prefer/ignore configuration for one selection axis.

    `prefer` is ordered: the first matcher that finds a candidate wins.
    With `strict` set, nothing outside `prefer` is ever chosen.
    """

    model_config = ConfigDict(frozen=True)

    strict: bool = False
    prefer: List[Matcher] = Field(default_factory=list)
    ignore: List[Matcher] = Field(default_factory=list)

    @property
    def unsatisfiable(self) -> bool:
        """A strict rule set with nothing to prefer can never pick anything."""
        return self.strict and not self.prefer

    def check_axis(self, axis: ValueAxis) -> None:
        for matcher in [*self.prefer, *self.ignore]:
            if matcher.axis != axis:
                raise ValueError(
                    f"{type(matcher).__name__} on axis '{matcher.axis.value}' "
                    f"cannot be used in the {axis.value} rules"
                )


def _inject_axis(rules, axis: ValueAxis):
    """Let config files omit `axis` on matchers: the rule slot implies it."""
    if not isinstance(rules, dict):
        return rules
    rules = dict(rules)
    for key in ("prefer", "ignore"):
        items = rules.get(key)
        if isinstance(items, list):
            rules[key] = [
                {"axis": axis.value, **item} if isinstance(item, dict) else item
                for item in items
            ]
    return rules


class Entry(BaseModel):
    """
    One rule combination tried for a category.
    The day filter keeps only days whose visit type belongs to `categories`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    categories: List[str] = Field(alias="type", min_length=1, description="Visit-type categories")
    employee: RuleSet = Field(default_factory=RuleSet)
    date: RuleSet = Field(default_factory=RuleSet)
    time: RuleSet = Field(default_factory=RuleSet)

    @model_validator(mode="before")
    @classmethod
    def fill_matcher_axes(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for axis in ValueAxis:
            if axis.value in data:
                data[axis.value] = _inject_axis(data[axis.value], axis)
        return data

    @field_validator("categories", mode="before")
    @classmethod
    def accept_single_category(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @model_validator(mode="after")
    def validate_axes(self):
        for axis in ValueAxis:
            self.rules_for(axis).check_axis(axis)
        return self

    def rules_for(self, axis: ValueAxis) -> RuleSet:
        return getattr(self, axis.value)

    def unsatisfiable_axes(self) -> List[ValueAxis]:
        return [axis for axis in ValueAxis if self.rules_for(axis).unsatisfiable]


class StrategyConfig(BaseModel):
    """
    One person's reservation intent at one provider.
    `entries` maps a staff category name to the entries tried for it, in order.
    """

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "provider": "City Clinic 8",
            "source": "https://slots.example/region/gm/poli",
            "person": "Doe John Alan",
            "notify": ["Doe Jane Ann"],
            "entries": {
                "General practitioner": [
                    {
                        "type": "Online visit",
                        "employee": {"strict": False, "prefer": [], "ignore": []},
                        "date": {
                            "strict": False,
                            "prefer": [],
                            "ignore": [{"kind": "point", "target": "07.07.2026"}]
                        },
                        "time": {
                            "strict": True,
                            "prefer": [
                                {"kind": "span", "lower": "9:00", "upper": "11:00", "direction": "desc"},
                                {"kind": "span", "lower": "11:00", "upper": "20:00"}
                            ],
                            "ignore": []
                        }
                    }
                ]
            }
        }
    })

    provider: str = Field(min_length=1, description="Provider display name")
    source: str = Field(default="", description="Listing the provider is published in")
    person: str = Field(min_length=1, description="Full name of the person to reserve for")
    notify: List[str] = Field(default_factory=list, description="Full names to notify on success")
    entries: Dict[str, List[Entry]] = Field(min_length=1)

    @field_validator("provider", "person", "source")
    @classmethod
    def collapse_whitespace(cls, v):
        return " ".join(v.split())

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, v):
        for category, entries in v.items():
            if not entries:
                raise ValueError(f"Category '{category}' declares no entries")
        return v
