"""
The Round Scheduling Engine.

This module drives every configured strategy to completion:
1. Supervision - one task per strategy, rounds on a drift-corrected cadence.
2. Isolation   - the items of a round run concurrently; one failing never
                 aborts its siblings.
3. Shutdown    - a single latch, set when every strategy is complete or the
                 auto-complete timer fires, stops all further work.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from models import AppointmentTarget, Person
from .context import SchedulerContext
from .errors import StartupError
from .gateway import SystemController
from .settings import Settings
from .state import AttemptLedger, EntriesStackItem, OutcomeKind, PendingNotice, StrategiesStackItem
from .targets import TargetResolver

logger = logging.getLogger(__name__)


def next_round_delay(interval: float, elapsed: float) -> float:
    """Fixed cadence: a slow round shortens the wait, never stacks it."""
    return max(0.0, interval - elapsed)


def build_reservation_notice(
    strategy: StrategiesStackItem,
    item: EntriesStackItem,
    target: AppointmentTarget,
    attempt: int,
    recipient: Person
) -> str:
    person = strategy.person
    greeting = (
        f"Hello, {recipient.first_name}!" if recipient.fingerprint == person.fingerprint
        else f"Hello, {recipient.first_name}! A reservation was made for {person.full_name}."
    )
    lines = [
        greeting,
        "",
        f"Provider: {strategy.provider.name}",
        f"Specialist: {target.employee.name} ({item.category.name})",
    ]
    if target.employee.details:
        lines.append(f"Details: {target.employee.details}")
    lines += [
        f"Date: {target.day.value}",
        f"Time: {target.time.value}",
        f"Visit type: {target.day.visit_type.value}",
        "",
        f"Reserved on attempt {attempt}.",
    ]
    return "\n".join(lines)


class RoundScheduler:
    """
    Main execution engine.
    Ingests the strategy stack, outputs the ledger of what happened.
    """

    def __init__(
        self,
        context: SchedulerContext,
        strategies: List[StrategiesStackItem],
        ledger: Optional[AttemptLedger] = None,
        system: Optional[SystemController] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if not strategies:
            raise StartupError("Nothing to run: no strategies configured")

        self.context = context
        self.settings: Settings = context.settings
        self.strategies = strategies
        self.ledger = ledger or AttemptLedger()
        self.system = system
        self._sleep = sleep

        self._shutdown = asyncio.Event()
        self.shutdown_reason: Optional[str] = None
        self._powered_off = False
        self.resolver = TargetResolver(context, should_stop=self.is_stopping)

    # --- Shutdown Latch ---

    def is_stopping(self) -> bool:
        return self._shutdown.is_set()

    def request_shutdown(self, reason: str) -> None:
        if self._shutdown.is_set():
            return
        logger.info(f"Shutting down: {reason}")
        self.shutdown_reason = reason
        self._shutdown.set()

    # --- Main Loop ---

    async def run(self) -> AttemptLedger:
        """
        Start a supervisor per strategy and return once shutdown was
        requested and every supervisor has settled.
        """
        logger.info(f"Starting rounds for {len(self.strategies)} strategies every {self.settings.interval}s")

        supervisors = [
            asyncio.create_task(self._supervise(strategy), name=f"strategy-{strategy.id}")
            for strategy in self.strategies
        ]
        watchdog = None
        if self.settings.auto_complete_timeout:
            watchdog = asyncio.create_task(self._watchdog(self.settings.auto_complete_timeout))

        await self._shutdown.wait()

        if watchdog is not None:
            watchdog.cancel()
        # In-flight lookups are allowed to finish; their results are dropped.
        await asyncio.gather(*supervisors, return_exceptions=True)
        await self._flush_undelivered(final=True)
        await self._power_off()
        return self.ledger

    async def _watchdog(self, timeout: float) -> None:
        await asyncio.sleep(timeout)
        self.request_shutdown("auto-complete timer fired")

    async def _supervise(self, strategy: StrategiesStackItem) -> None:
        loop = asyncio.get_running_loop()

        while not self.is_stopping():
            started = loop.time()
            await self._flush_undelivered(strategy_id=strategy.id)

            items = strategy.pending_items
            results = await asyncio.gather(
                *(self._run_round(strategy, item) for item in items),
                return_exceptions=True
            )
            for item, result in zip(items, results):
                if isinstance(result, BaseException):
                    logger.error(
                        f"Round for {item.category.name} of {strategy.person.short_name} crashed: {result!r}",
                        exc_info=result
                    )
                    self.ledger.record(OutcomeKind.ERROR, repr(result), strategy.id, item.id)

            if self.is_stopping():
                return
            if strategy.completed:
                logger.info(f"Strategy for {strategy.person.full_name} at {strategy.provider.name} is complete")
                self._check_global_completion()
                await self._redeliver_until_sent(strategy, loop.time() - started)
                return

            await self._wait(next_round_delay(self.settings.interval, loop.time() - started))

    async def _wait(self, delay: float) -> None:
        """Sleep until the next round, waking early if shutdown begins."""
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _redeliver_until_sent(self, strategy: StrategiesStackItem, elapsed: float) -> None:
        """A completed strategy keeps the round cadence only to resend its failed notices."""
        loop = asyncio.get_running_loop()
        while self.ledger.has_undelivered(strategy.id) and not self.is_stopping():
            await self._wait(next_round_delay(self.settings.interval, elapsed))
            if self.is_stopping():
                return
            started = loop.time()
            await self._flush_undelivered(strategy_id=strategy.id)
            elapsed = loop.time() - started

    def _check_global_completion(self) -> None:
        if all(strategy.completed for strategy in self.strategies):
            self.request_shutdown("all strategies completed")

    # --- One Round ---

    async def _run_round(self, strategy: StrategiesStackItem, item: EntriesStackItem) -> None:
        if self.is_stopping():
            return

        attempt = self.ledger.next_attempt(strategy.id, item.id)
        label = f"{item.category.name} for {strategy.person.short_name} - attempt {attempt}"

        entries = item.viable_entries()
        if not entries:
            self.ledger.record(OutcomeKind.CONFIGURATION, "no entry can ever resolve", strategy.id, item.id)
            return

        employees = await self.context.get_employees_by_category(strategy.provider, item.category)
        if self.is_stopping():
            return
        if not employees:
            logger.warning(
                f"{label}: no staff found in category '{item.category.name}' at {strategy.provider.name}. "
                f"Check the category spelling against {strategy.provider.online_reservation_url}"
            )
            self.ledger.record(OutcomeKind.NO_EMPLOYEES, "category has no staff", strategy.id, item.id)
            return

        target = await self.resolver.resolve_first(entries, employees)
        if self.is_stopping():
            return
        if target is None:
            logger.info(f"{label} (no suitable slots)")
            self.ledger.record(OutcomeKind.EXHAUSTION, "candidate chain exhausted", strategy.id, item.id)
            return

        logger.info(
            f"{label} (found {target.employee.last_name} {target.employee.initials} "
            f"on {target.day.value} at {target.time.value})"
        )
        accepted = await self.context.gateway.commit_reservation(
            target.employee, target.day, target.time, strategy.person
        )
        if not accepted:
            logger.warning(f"{label}: reservation was rejected by the source")
            self.ledger.record(OutcomeKind.REJECTION, "reservation rejected", strategy.id, item.id)
            return

        item.complete()
        self.ledger.record_reservation(strategy.id, item.id, target)
        logger.info(
            f"{strategy.person.short_name} is booked with {target.employee.name} "
            f"on {target.day.value} at {target.time.value}"
        )
        await self._notify_all(strategy, item, target, attempt)

    # --- Notifications ---

    async def _notify_all(
        self,
        strategy: StrategiesStackItem,
        item: EntriesStackItem,
        target: AppointmentTarget,
        attempt: int
    ) -> None:
        for recipient in [strategy.person, *strategy.notify_list]:
            notice = PendingNotice(
                strategy_id=strategy.id,
                item_id=item.id,
                recipient=recipient,
                message=build_reservation_notice(strategy, item, target, attempt, recipient),
                attempt=attempt
            )
            if self.is_stopping():
                self.ledger.queue_notice(notice)
                continue
            if not await self._deliver(notice):
                self.ledger.queue_notice(notice)

    async def _deliver(self, notice: PendingNotice) -> bool:
        try:
            delivered = await self.context.gateway.notify(notice.recipient, notice.message)
        except Exception as e:
            logger.error(f"Notice to {notice.recipient.full_name} failed: {e!r}")
            delivered = False

        if delivered:
            logger.info(f"Notice delivered to {notice.recipient.full_name}")
        else:
            self.ledger.record(
                OutcomeKind.NOTIFICATION,
                f"notice to {notice.recipient.full_name} not delivered",
                notice.strategy_id,
                notice.item_id
            )
        return delivered

    async def _flush_undelivered(self, strategy_id: Optional[str] = None, final: bool = False) -> None:
        for notice in self.ledger.take_undelivered(strategy_id):
            if await self._deliver(notice):
                continue
            if final:
                logger.error(f"Giving up on notice to {notice.recipient.full_name}")
            self.ledger.queue_notice(notice)

    # --- Host Power-off ---

    async def _power_off(self) -> None:
        if not self.settings.shutdown_on_complete or self._powered_off:
            return
        self._powered_off = True

        timeout = self.settings.shutdown_timeout
        message = f"{self.shutdown_reason or 'Run finished'}. The host powers off in {timeout} seconds."
        if self.settings.debug:
            logger.warning("Debug mode: host power-off is simulated, no command is run")
        elif self.system is not None:
            self.system.power_off(timeout, message)

        for remaining in range(timeout, 0, -1):
            logger.warning(f"The host powers off in {remaining} seconds!")
            await self._sleep(1)
