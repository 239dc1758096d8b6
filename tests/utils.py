"""Fakes and builders shared by the engine tests."""
from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from models import Category, Day, Employee, Entry, Person, Provider, RuleSet, Time, VisitType
from scheduler.context import SchedulerContext
from scheduler.settings import Settings
from scheduler.state import EntriesStackItem, StrategiesStackItem

YEAR = date.today().year
ONLINE = "Приём через интернет"
PREGNANCY = "Приём беременных через интернет"
SAME_DAY_VISIT = "Запись в день приёма"
PREGNANCY_VISIT = "Приём беременных"


def plain_date(day: int, month: int, year: int = YEAR) -> str:
    return f"{day:02d}.{month:02d}.{year}"


def first_saturday(year: int = YEAR, month: int = 7) -> date:
    d = date(year, month, 1)
    return d + timedelta(days=(5 - d.weekday()) % 7)


def make_category(name: str = "General practitioner") -> Category:
    return Category.from_name(name)


def make_employee(eid: str, name: str, category: Optional[Category] = None, details: str = "") -> Employee:
    return Employee(id=eid, name=name, details=details, category=category or make_category())


def make_day(did: str, value: str, visit: str = SAME_DAY_VISIT) -> Day:
    return Day(id=did, value=value, visit_type=VisitType(id=f"vt-{did}", value=visit))


def make_times(*values: str) -> List[Time]:
    return [Time(id=f"t-{v}", value=v) for v in values]


def make_person(pid: str, last: str, first: str, middle: str = "", contact: Optional[str] = "@handle") -> Person:
    return Person(id=pid, last_name=last, first_name=first, middle_name=middle, contact=contact)


def make_provider(pid: str = "p1", name: str = "City Clinic 8", source: str = "src",
                  online: Optional[str] = "https://slots.example/p1", site: Optional[str] = None) -> Provider:
    return Provider(id=pid, name=name, source=source, site_url=site, online_reservation_url=online)


def make_entry(employee: Optional[RuleSet] = None, day: Optional[RuleSet] = None,
               time: Optional[RuleSet] = None, categories: Sequence[str] = (ONLINE,)) -> Entry:
    return Entry(
        categories=list(categories),
        employee=employee or RuleSet(),
        date=day or RuleSet(),
        time=time or RuleSet()
    )


class FakeGateway:
    """SlotGateway double with scripted results and a call log."""

    def __init__(
        self,
        people: Sequence[Person] = (),
        providers: Sequence[Provider] = (),
        employees: Optional[Dict[str, List[Employee]]] = None,
        days: Optional[Dict[str, List[Day]]] = None,
        times: Optional[Dict[Tuple[str, str], List[Time]]] = None,
    ):
        self.people = list(people)
        self.providers = list(providers)
        self.employees = employees or {}
        self.days = days or {}
        self.times = times or {}

        self.commit_results: Dict[str, List[bool]] = {}
        self.notify_results: List[bool] = []
        self.failing_employees: Set[str] = set()
        self.days_delay: float = 0.0
        self.on_commit: Optional[Callable[[Person], None]] = None
        self.on_notify: Optional[Callable[[Person, bool], None]] = None

        self.calls: List[Tuple] = []
        self.commits: List[Tuple[str, str, str, str]] = []
        self.messages: List[Tuple[str, str]] = []

    async def list_people(self) -> List[Person]:
        self.calls.append(("people",))
        return list(self.people)

    async def list_providers(self, source: str) -> List[Provider]:
        self.calls.append(("providers", source))
        return [p for p in self.providers if p.source == source]

    async def list_employees(self, provider: Provider) -> List[Employee]:
        self.calls.append(("employees", provider.id))
        return list(self.employees.get(provider.id, []))

    async def list_open_days(self, employee: Employee) -> List[Day]:
        self.calls.append(("days", employee.id))
        if self.days_delay:
            await asyncio.sleep(self.days_delay)
        if employee.id in self.failing_employees:
            raise RuntimeError(f"upstream exploded for {employee.id}")
        return list(self.days.get(employee.id, []))

    async def list_open_times(self, employee: Employee, day: Day) -> List[Time]:
        self.calls.append(("times", employee.id, day.value))
        return list(self.times.get((employee.id, day.id), []))

    async def commit_reservation(self, employee: Employee, day: Day, time: Time, person: Person) -> bool:
        self.calls.append(("commit", employee.id, day.value, time.value))
        if self.on_commit is not None:
            self.on_commit(person)
        queued = self.commit_results.get(person.id)
        accepted = queued.pop(0) if queued else True
        if accepted:
            self.commits.append((person.id, employee.id, day.value, time.value))
        return accepted

    async def notify(self, person: Person, message: str) -> bool:
        delivered = self.notify_results.pop(0) if self.notify_results else True
        if self.on_notify is not None:
            self.on_notify(person, delivered)
        if delivered:
            self.messages.append((person.id, message))
        return delivered

    def calls_of(self, kind: str) -> List[Tuple]:
        return [c for c in self.calls if c[0] == kind]


class FakeSystem:
    def __init__(self):
        self.calls: List[Tuple[int, str]] = []

    def power_off(self, delay_seconds: int, message: str) -> None:
        self.calls.append((delay_seconds, message))


def make_context(gateway: FakeGateway, **settings) -> SchedulerContext:
    return SchedulerContext(gateway, settings=Settings(**settings))


def make_strategy(context: SchedulerContext, person: Person, provider: Provider,
                  items: Dict[str, List[Entry]], notify: Sequence[Person] = ()) -> StrategiesStackItem:
    return StrategiesStackItem(
        id=context.generate_id(),
        person=person,
        notify_list=list(notify),
        provider=provider,
        entries_stack=[
            EntriesStackItem(id=context.generate_id(), category=make_category(name), entries=entries)
            for name, entries in items.items()
        ]
    )
