"""
Snapshot-backed slot gateway.

Serves people, providers, staff, open days and open times from a JSON
snapshot instead of the live source, for dry runs and local testing.
A committed time is removed from the snapshot, so a second commit of the
same slot is rejected just like upstream would.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Union

from pydantic import BaseModel, Field, ValidationError

from models import Day, Employee, Person, Provider, Time
from scheduler.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """Frozen view of the slot source. Keys are source ids."""
    people: List[Person] = Field(default_factory=list)
    providers: List[Provider] = Field(default_factory=list)
    employees: Dict[str, List[Employee]] = Field(default_factory=dict, description="provider id -> staff")
    days: Dict[str, List[Day]] = Field(default_factory=dict, description="employee id -> open days")
    times: Dict[str, Dict[str, List[Time]]] = Field(
        default_factory=dict,
        description="employee id -> day id -> open times"
    )


class SnapshotGateway:
    """In-memory SlotGateway over a Snapshot."""

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self.reservations: List[Dict[str, str]] = []
        self.sent: List[Dict[str, str]] = []

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SnapshotGateway":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            snapshot = Snapshot.model_validate(data)
        except (FileNotFoundError, json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Snapshot {path} cannot be loaded: {e}") from e

        logger.info(
            f"Loaded snapshot from {path}: {len(snapshot.providers)} providers, "
            f"{sum(len(v) for v in snapshot.employees.values())} employees"
        )
        return cls(snapshot)

    async def list_people(self) -> List[Person]:
        return list(self.snapshot.people)

    async def list_providers(self, source: str) -> List[Provider]:
        return [p for p in self.snapshot.providers if not source or p.source == source]

    async def list_employees(self, provider: Provider) -> List[Employee]:
        return list(self.snapshot.employees.get(provider.id, []))

    async def list_open_days(self, employee: Employee) -> List[Day]:
        # Days whose times are all taken disappear, as they do upstream
        day_times = self.snapshot.times.get(employee.id, {})
        return [d for d in self.snapshot.days.get(employee.id, []) if day_times.get(d.id)]

    async def list_open_times(self, employee: Employee, day: Day) -> List[Time]:
        return list(self.snapshot.times.get(employee.id, {}).get(day.id, []))

    async def commit_reservation(self, employee: Employee, day: Day, time: Time, person: Person) -> bool:
        open_times = self.snapshot.times.get(employee.id, {}).get(day.id, [])
        if time not in open_times:
            logger.warning(f"Snapshot has no open time {time.value} on {day.value} for {employee.name}")
            return False

        open_times.remove(time)
        self.reservations.append({
            "employee": employee.name,
            "day": day.value,
            "time": time.value,
            "person": person.full_name,
        })
        return True

    async def notify(self, person: Person, message: str) -> bool:
        if not person.contact:
            return False
        self.sent.append({"to": person.contact, "message": message})
        logger.info(f"Message for {person.full_name} ({person.contact}):\n{message}")
        return True
