"""
Scheduler Context.

The one object every part of the engine shares, built once and passed in:
1. The gateway to the slot source.
2. Freshness-windowed caches for people, providers and staff lists.
3. The visit-type registry (category -> accepted visit-type fingerprints).
4. A unique id generator for demand stack items.
"""

import logging
import secrets
import string
import time as time_module
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, List, Optional, Set, TypeVar

from models import Category, Employee, Person, Provider, build_fingerprint, build_provider_fingerprint
from .gateway import SlotGateway
from .settings import DEFAULT_VISIT_TYPES, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_ALPHABET = string.ascii_letters + string.digits + "-_"
ID_LENGTH = 10


@dataclass
class CacheItem(Generic[T]):
    loaded_at: float
    value: T


class SchedulerContext:
    """Cached, injected access to slot-source lookups."""

    def __init__(
        self,
        gateway: SlotGateway,
        settings: Optional[Settings] = None,
        visit_types: Optional[Dict[str, List[str]]] = None,
        clock: Callable[[], float] = time_module.monotonic
    ):
        self.gateway = gateway
        self.settings = settings or Settings()
        self.clock = clock

        self.visit_type_codes: Dict[str, Set[int]] = {
            category: {build_fingerprint(value) for value in values}
            for category, values in (visit_types or DEFAULT_VISIT_TYPES).items()
        }

        self._people: Optional[List[Person]] = None
        self._providers: Dict[str, CacheItem[List[Provider]]] = {}
        self._employees: Dict[str, CacheItem[List[Employee]]] = {}
        self._ids: Set[str] = set()

    def _is_fresh(self, item: Optional[CacheItem], ttl: float) -> bool:
        return item is not None and self.clock() - item.loaded_at <= ttl

    # --- People ---

    async def get_people(self) -> List[Person]:
        if self._people is None:
            self._people = await self.gateway.list_people()
        return self._people

    async def find_person(self, full_name: str) -> Optional[Person]:
        code = build_fingerprint(full_name)
        for person in await self.get_people():
            if person.fingerprint == code:
                return person
        return None

    # --- Providers ---

    async def get_providers(self, source: str) -> List[Provider]:
        cached = self._providers.get(source)
        if self._is_fresh(cached, self.settings.providers_update_interval):
            return cached.value

        value = await self.gateway.list_providers(source)
        self._providers[source] = CacheItem(loaded_at=self.clock(), value=value)
        return value

    async def find_provider(self, source: str, name: str) -> Optional[Provider]:
        """Match by provider fingerprint, so quoting, numbering and the `ГУЗ` prefix do not matter."""
        code = build_provider_fingerprint(name)
        for provider in await self.get_providers(source):
            if provider.fingerprint == code:
                return provider
        return None

    # --- Staff ---

    async def get_employees(self, provider: Provider) -> List[Employee]:
        cached = self._employees.get(provider.id)
        if self._is_fresh(cached, self.settings.employees_update_interval):
            return cached.value

        value = await self.gateway.list_employees(provider)
        self._employees[provider.id] = CacheItem(loaded_at=self.clock(), value=value)
        logger.debug(f"Refreshed staff list of {provider.name}: {len(value)} employees")
        return value

    async def get_employees_by_category(self, provider: Provider, category: Category) -> List[Employee]:
        employees = await self.get_employees(provider)
        return [e for e in employees if e.category.fingerprint == category.fingerprint]

    # --- Visit Types ---

    def visit_type_fingerprints(self, categories: Iterable[str]) -> Set[int]:
        codes: Set[int] = set()
        for category in categories:
            codes |= self.visit_type_codes.get(category, set())
        return codes

    # --- Ids ---

    def generate_id(self) -> str:
        while True:
            candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in self._ids:
                self._ids.add(candidate)
                return candidate
