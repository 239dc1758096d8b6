"""
Collaborator contracts.

The engine never talks to the slot source directly. Everything it needs is
behind `SlotGateway` (lookups + reservation + messaging) and
`SystemController` (optional host power-off after the run).
"""

import logging
import platform
import subprocess
from typing import List, Protocol

from models import Day, Employee, Person, Provider, Time

logger = logging.getLogger(__name__)


class SlotGateway(Protocol):
    """
    Async access to the slot source. Retrying on rate limits and
    deduplicating upstream data is the gateway's job, not the engine's.
    """

    async def list_people(self) -> List[Person]:
        ...

    async def list_providers(self, source: str) -> List[Provider]:
        ...

    async def list_employees(self, provider: Provider) -> List[Employee]:
        ...

    async def list_open_days(self, employee: Employee) -> List[Day]:
        ...

    async def list_open_times(self, employee: Employee, day: Day) -> List[Time]:
        ...

    async def commit_reservation(self, employee: Employee, day: Day, time: Time, person: Person) -> bool:
        """True when the source accepted the reservation."""
        ...

    async def notify(self, person: Person, message: str) -> bool:
        ...


class SystemController(Protocol):
    def power_off(self, delay_seconds: int, message: str) -> None:
        ...


class HostShutdownController:
    """Schedules a host power-off through the platform `shutdown` command."""

    def power_off(self, delay_seconds: int, message: str) -> None:
        if platform.system() == "Windows":
            args = ["shutdown", "/s", "/t", str(delay_seconds), "/c", message]
        else:
            minutes = max(1, -(-delay_seconds // 60))
            args = ["shutdown", "-h", f"+{minutes}", message]

        logger.warning(f"Scheduling host power-off: {' '.join(args[:-1])}")
        subprocess.Popen(args)
