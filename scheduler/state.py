"""
Scheduler State Management.

This module acts as the 'Memory' of the system. It tracks:
1. The Demand stack (Strategies -> EntriesStackItems) and their completion.
2. Attempt counters per (strategy, item), for reporting only.
3. Round outcomes, including notifications waiting for redelivery.
"""

import time as time_module
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from models import AppointmentTarget, Category, Entry, Person, Provider


class OutcomeKind:
    """Labels for what a round ended with."""
    SUCCESS = "Success"
    CONFIGURATION = "Configuration"
    NO_EMPLOYEES = "NoEmployees"
    EXHAUSTION = "Exhaustion"
    REJECTION = "Rejection"
    NOTIFICATION = "Notification"
    ERROR = "Error"

    FAILURES = (CONFIGURATION, NO_EMPLOYEES, EXHAUSTION, REJECTION, NOTIFICATION, ERROR)


@dataclass
class RoundOutcome:
    """Detailed record of one round (or one notification) result."""
    kind: str
    reason: str
    strategy_id: str
    item_id: str
    attempt: int
    recorded_at: float = field(default_factory=time_module.time)


@dataclass
class EntriesStackItem:
    """
    One category a strategy wants a reservation in, with the entries tried
    for it. `completed` flips once, after a confirmed commit, and never back.
    """
    id: str
    category: Category
    entries: List[Entry]
    completed: bool = False

    def viable_entries(self) -> List[Entry]:
        return [entry for entry in self.entries if not entry.unsatisfiable_axes()]

    def complete(self) -> None:
        self.completed = True


@dataclass
class StrategiesStackItem:
    """
    One person's demand at one provider. Completion is derived from its
    items on every read.
    """
    id: str
    person: Person
    notify_list: List[Person]
    provider: Provider
    entries_stack: List[EntriesStackItem]

    @property
    def pending_items(self) -> List[EntriesStackItem]:
        return [item for item in self.entries_stack if not item.completed]

    @property
    def completed(self) -> bool:
        return not self.pending_items


@dataclass
class PendingNotice:
    """A reservation notice that could not be delivered yet."""
    strategy_id: str
    item_id: str
    recipient: Person
    message: str
    attempt: int


class AttemptLedger:
    """
    Mutable bookkeeping shared by all supervisors.
    Each (strategy, item) key has a single writer because rounds of one
    strategy never overlap.
    """

    def __init__(self):
        self.attempts: Dict[Tuple[str, str], int] = defaultdict(int)
        self.outcomes: Dict[Tuple[str, str], List[RoundOutcome]] = defaultdict(list)
        self.reservations: Dict[Tuple[str, str], AppointmentTarget] = {}
        self.undelivered: List[PendingNotice] = []

    def next_attempt(self, strategy_id: str, item_id: str) -> int:
        key = (strategy_id, item_id)
        self.attempts[key] += 1
        return self.attempts[key]

    def get_attempts(self, strategy_id: str, item_id: str) -> int:
        return self.attempts.get((strategy_id, item_id), 0)

    def record(self, kind: str, reason: str, strategy_id: str, item_id: str) -> RoundOutcome:
        outcome = RoundOutcome(
            kind=kind,
            reason=reason,
            strategy_id=strategy_id,
            item_id=item_id,
            attempt=self.get_attempts(strategy_id, item_id)
        )
        self.outcomes[(strategy_id, item_id)].append(outcome)
        return outcome

    def record_reservation(self, strategy_id: str, item_id: str, target: AppointmentTarget) -> None:
        self.reservations[(strategy_id, item_id)] = target
        self.record(OutcomeKind.SUCCESS, _describe(target), strategy_id, item_id)

    def queue_notice(self, notice: PendingNotice) -> None:
        self.undelivered.append(notice)

    def has_undelivered(self, strategy_id: str) -> bool:
        return any(n.strategy_id == strategy_id for n in self.undelivered)

    def take_undelivered(self, strategy_id: Optional[str] = None) -> List[PendingNotice]:
        """Remove and return queued notices (all, or one strategy's)."""
        taken = [n for n in self.undelivered if strategy_id is None or n.strategy_id == strategy_id]
        self.undelivered = [n for n in self.undelivered if n not in taken]
        return taken

    # --- Reporting Methods ---

    def get_statistics(self) -> Dict[str, Any]:
        total_rounds = sum(self.attempts.values())
        kind_counts: Dict[str, int] = defaultdict(int)
        for outcomes in self.outcomes.values():
            for outcome in outcomes:
                kind_counts[outcome.kind] += 1

        return {
            "tracked_items": len(self.attempts),
            "total_rounds": total_rounds,
            "reservations": len(self.reservations),
            "undelivered_notices": len(self.undelivered),
            "outcome_breakdown": dict(kind_counts),
        }

    def get_failure_report(self) -> List[Dict]:
        """
        Per-item summary of failed rounds for items that never got a
        reservation. Items saved by a later success are left out.
        """
        report = []
        for key, outcomes in self.outcomes.items():
            if key in self.reservations:
                continue
            failures = [o for o in outcomes if o.kind in OutcomeKind.FAILURES]
            if not failures:
                continue

            breakdown: Dict[str, int] = defaultdict(int)
            for outcome in failures:
                breakdown[outcome.kind] += 1

            report.append({
                "strategy_id": key[0],
                "item_id": key[1],
                "total_attempts": self.attempts.get(key, 0),
                "primary_failure_cause": max(breakdown, key=breakdown.get),
                "failure_breakdown": dict(breakdown),
                "latest_reason": failures[-1].reason
            })

        report.sort(key=lambda x: x["total_attempts"], reverse=True)
        return report


def _describe(target: AppointmentTarget) -> str:
    return f"{target.employee.name} on {target.day.value} at {target.time.value}"
