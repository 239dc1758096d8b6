"""
Demand stack builders.

Turns validated StrategyConfig objects into the runtime stack the engine
drives. Everything that cannot work at all (unknown person, unknown
provider, provider without online reservations) is reported here, before
any round runs.
"""

import logging
from typing import List

from models import Category, Entry, Person, StrategyConfig
from .context import SchedulerContext
from .errors import StartupError
from .state import EntriesStackItem, StrategiesStackItem

logger = logging.getLogger(__name__)


def build_entries_stack(context: SchedulerContext, strategy: StrategyConfig) -> List[EntriesStackItem]:
    stack = []
    for category_name, entries in strategy.entries.items():
        item = EntriesStackItem(
            id=context.generate_id(),
            category=Category.from_name(category_name),
            entries=list(entries)
        )
        _diagnose_entries(strategy, item.category, item.entries)
        stack.append(item)
    return stack


def _diagnose_entries(strategy: StrategyConfig, category: Category, entries: List[Entry]) -> None:
    """Report strict-without-prefer rule sets once; the engine then skips those entries."""
    for index, entry in enumerate(entries, start=1):
        for axis in entry.unsatisfiable_axes():
            logger.warning(
                f"Strategy for '{strategy.person}' at '{strategy.provider}', category '{category.name}', "
                f"entry #{index}: {axis.value} rules are strict but prefer nothing, so this entry can never "
                f"resolve. Add a prefer rule or drop strict mode."
            )


async def _require_person(context: SchedulerContext, name: str, role: str) -> Person:
    person = await context.find_person(name)
    if person is None:
        raise StartupError(f"Cannot build strategy: {role} '{name}' was not found")
    if not person.contact:
        raise StartupError(f"Cannot build strategy: {role} '{name}' cannot be contacted")
    return person


async def build_strategy(context: SchedulerContext, strategy: StrategyConfig) -> StrategiesStackItem:
    person = await _require_person(context, strategy.person, "person")
    notify_list = [await _require_person(context, name, "notify recipient") for name in strategy.notify]

    provider = await context.find_provider(strategy.source, strategy.provider)
    if provider is None:
        raise StartupError(
            f"Cannot build strategy: provider '{strategy.provider}' was not found in '{strategy.source}'"
        )
    if not provider.online_reservation_url:
        hint = f"; check {provider.site_url} for other ways to book" if provider.site_url else ""
        raise StartupError(f"Provider '{provider.name}' does not take online reservations{hint}")

    return StrategiesStackItem(
        id=context.generate_id(),
        person=person,
        notify_list=notify_list,
        provider=provider,
        entries_stack=build_entries_stack(context, strategy)
    )


async def build_strategies_stack(
    context: SchedulerContext,
    strategies: List[StrategyConfig]
) -> List[StrategiesStackItem]:
    """Build every strategy in order. Any unresolvable reference aborts startup."""
    if not strategies:
        raise StartupError("No strategies configured; add at least one to the strategy file")

    stack = []
    for strategy in strategies:
        stack.append(await build_strategy(context, strategy))
    logger.info(f"Built {len(stack)} strategies with {sum(len(s.entries_stack) for s in stack)} categories")
    return stack
