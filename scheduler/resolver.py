"""
Candidate Resolution.

This module answers one question: "Which single item of this list do the
rules pick?" It is generic over the item type; the caller supplies an
accessor that turns an item into its canonical-comparable string.

Steps:
1. Strict rules with nothing preferred pick nothing.
2. Tag items ignored (skip-list, derived predicate, `ignore` matchers).
3. Walk `prefer` in declared order; DESC matchers scan the list backwards.
4. Fallback: first non-ignored item, unless strict.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from models import Direction, RuleSet

T = TypeVar("T")


@dataclass
class Candidate(Generic[T]):
    """An input item plus its comparable value and ignore tag."""
    ref: T
    value: str
    ignored: bool = False


def tag_candidates(
    items: Iterable[T],
    rules: RuleSet,
    get_value: Callable[[T], str],
    skip_list: Optional[Iterable[str]] = None,
    is_ignored: Optional[Callable[[T], bool]] = None
) -> List[Candidate[T]]:
    """Wrap items and mark every one the rules exclude."""
    skipped = set(skip_list or ())
    candidates = [Candidate(ref=item, value=get_value(item)) for item in items]

    for candidate in candidates:
        if candidate.value in skipped:
            candidate.ignored = True
        elif is_ignored is not None and is_ignored(candidate.ref):
            candidate.ignored = True
        elif any(matcher.matches(candidate.value) for matcher in rules.ignore):
            candidate.ignored = True

    return candidates


def resolve_candidate(
    items: Iterable[T],
    rules: RuleSet,
    get_value: Callable[[T], str],
    skip_list: Optional[Iterable[str]] = None,
    is_ignored: Optional[Callable[[T], bool]] = None
) -> Optional[T]:
    """
    Pick one item under strict/prefer/ignore rules, or None.

    `items` must already be in source order (chronological or collation).
    """
    if rules.unsatisfiable:
        return None

    candidates = tag_candidates(items, rules, get_value, skip_list, is_ignored)

    for matcher in rules.prefer:
        ordered = list(candidates)
        if matcher.scan_direction == Direction.DESC:
            ordered.reverse()
        for candidate in ordered:
            if not candidate.ignored and matcher.matches(candidate.value):
                return candidate.ref

    if rules.strict:
        return None

    for candidate in candidates:
        if not candidate.ignored:
            return candidate.ref
    return None
