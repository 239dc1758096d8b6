"""
External entity models for the Slot Hunter.

This module defines the 'Supply' side, owned by the slot source:
1. Providers and their staff (Employee, Category)
2. Open days (each tagged with a VisitType) and open times
3. People who hold a reservation or get notified about one

The engine only reads these. Every entity carries the opaque `id` the source
uses plus a `fingerprint` of its normalized display string for cheap
equality and category filtering.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .values import build_fingerprint, build_provider_fingerprint, normalize_display, normalize_provider_name


class FingerprintedModel(BaseModel):
    """Fills `fingerprint` from the display string when the source omits it."""

    model_config = ConfigDict(frozen=True)

    fingerprint: int = Field(default=0, description="Hash of the normalized display string")

    @model_validator(mode="before")
    @classmethod
    def fill_fingerprint(cls, data):
        if isinstance(data, dict) and not data.get("fingerprint"):
            data = dict(data)
            display = data.get(cls._display_field())
            if display is not None:
                data["fingerprint"] = build_fingerprint(display)
        return data

    @classmethod
    def _display_field(cls) -> str:
        return "name"


class Category(FingerprintedModel):
    """Staff speciality as shown by the source (e.g. 'General practitioner')."""
    name: str = Field(min_length=1)

    @classmethod
    def from_name(cls, name: str) -> "Category":
        return cls(name=normalize_display(name))


class Provider(FingerprintedModel):
    """An institution publishing reservable slots."""
    id: str
    name: str = Field(min_length=1)
    source: str = Field(default="", description="Listing the provider was found in")
    site_url: Optional[str] = None
    online_reservation_url: Optional[str] = Field(
        default=None,
        description="None when the provider does not take online reservations"
    )

    @model_validator(mode="before")
    @classmethod
    def fill_fingerprint(cls, data):
        if isinstance(data, dict) and data.get("name"):
            data = dict(data)
            data["name"] = normalize_provider_name(data["name"])
            if not data.get("fingerprint"):
                data["fingerprint"] = build_provider_fingerprint(data["name"])
        return data


class Employee(FingerprintedModel):
    """A staff member whose calendar can be reserved."""
    id: str
    name: str = Field(min_length=1, description="Display name, e.g. 'Smith J.A.'")
    details: str = Field(default="", description="Free-text notes, e.g. room or speciality details")
    category: Category

    @field_validator("name", "details")
    @classmethod
    def collapse_whitespace(cls, v):
        return normalize_display(v)

    @property
    def last_name(self) -> str:
        return self.name.split()[0]

    @property
    def initials(self) -> str:
        parts = self.name.split()
        return parts[1] if len(parts) > 1 else ""


class VisitType(FingerprintedModel):
    """Kind of visit an open day is published for."""
    id: str
    value: str = Field(min_length=1)

    @classmethod
    def _display_field(cls) -> str:
        return "value"


class Day(BaseModel):
    """One open day in an employee's calendar. `value` is a plain date."""
    model_config = ConfigDict(frozen=True)

    id: str
    value: str
    visit_type: VisitType


class Time(BaseModel):
    """One open time on a day. `value` is a plain time."""
    model_config = ConfigDict(frozen=True)

    id: str
    value: str


class Person(FingerprintedModel):
    """Someone a reservation is made for, or who is told about it."""
    id: str
    first_name: str
    middle_name: str = ""
    last_name: str
    contact: Optional[str] = Field(default=None, description="Messaging handle; None if unreachable")

    @model_validator(mode="before")
    @classmethod
    def fill_fingerprint(cls, data):
        if isinstance(data, dict) and not data.get("fingerprint"):
            data = dict(data)
            full = " ".join(
                data.get(part, "") for part in ("last_name", "first_name", "middle_name")
            )
            data["fingerprint"] = build_fingerprint(full)
        return data

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.last_name, self.first_name, self.middle_name) if p)

    @property
    def short_name(self) -> str:
        initials = "".join(f"{p[0]}." for p in (self.first_name, self.middle_name) if p)
        return f"{self.last_name} {initials}".strip()


class AppointmentTarget(BaseModel):
    """The resolved employee/day/time triple a round tries to commit."""
    model_config = ConfigDict(frozen=True)

    employee: Employee
    day: Day
    time: Time
