"""
Target Resolution.

Turns one Entry into a concrete employee/day/time triple by running the
Candidate Resolver three times, with a network lookup between each pick:

    employee --(open days)--> day --(open times)--> time

Dead ends feed skip-lists so the search backtracks: a day with no usable
time is skipped for the rest of the round, and an employee with no usable
day likewise. The calls are strictly sequential since each depends on the
previous pick.
"""

import logging
from typing import Callable, List, Optional

from models import AppointmentTarget, Day, Employee, Entry, Time
from .context import SchedulerContext
from .resolver import resolve_candidate

logger = logging.getLogger(__name__)


def employee_value(employee: Employee) -> str:
    return employee.name


def day_value(day: Day) -> str:
    return day.value


def time_value(time: Time) -> str:
    return time.value


class TargetResolver:
    """
    Resolves entries against live slot data.
    `should_stop` is the shutdown latch, polled before every step.
    """

    def __init__(self, context: SchedulerContext, should_stop: Callable[[], bool] = lambda: False):
        self.context = context
        self.should_stop = should_stop

    def _day_filter(self, entry: Entry) -> Callable[[Day], bool]:
        accepted = self.context.visit_type_fingerprints(entry.categories)
        return lambda day: day.visit_type.fingerprint not in accepted

    async def resolve(self, entry: Entry, employees: List[Employee]) -> Optional[AppointmentTarget]:
        """
        Search for a target satisfying `entry`, or return None.
        Entries with an unsatisfiable rule set are skipped without any lookup.
        """
        if self.should_stop() or entry.unsatisfiable_axes():
            return None

        gateway = self.context.gateway
        ignore_day = self._day_filter(entry)
        employee_skip: List[str] = []

        while not self.should_stop():
            employee = resolve_candidate(employees, entry.employee, employee_value, skip_list=employee_skip)
            if employee is None:
                return None

            days = await gateway.list_open_days(employee)
            if self.should_stop():
                return None
            if not days:
                employee_skip.append(employee_value(employee))
                continue

            day_skip: List[str] = []
            while True:
                day = resolve_candidate(days, entry.date, day_value, skip_list=day_skip, is_ignored=ignore_day)
                if day is None:
                    employee_skip.append(employee_value(employee))
                    break

                times = await gateway.list_open_times(employee, day)
                if self.should_stop():
                    return None
                if not times:
                    day_skip.append(day_value(day))
                    continue

                time = resolve_candidate(times, entry.time, time_value)
                if time is None:
                    day_skip.append(day_value(day))
                    continue

                logger.debug(f"Resolved {employee.name} / {day.value} / {time.value}")
                return AppointmentTarget(employee=employee, day=day, time=time)

        return None

    async def resolve_first(self, entries: List[Entry], employees: List[Employee]) -> Optional[AppointmentTarget]:
        """First entry (in declared order) that yields a target wins."""
        for entry in entries:
            target = await self.resolve(entry, employees)
            if target is not None:
                return target
            if self.should_stop():
                break
        return None
