"""Expansion of recurring expense rules into concrete ledger entries.

Both functions here are pure: the caller supplies ``today`` so that one
lifecycle call sees a single, consistent "now".

Dates are day-granular. An occurrence dated ``d`` counts as already elapsed
when ``d <= today``; fast-forward skips exactly those occurrences, which is
the same boundary the ledger store uses when it keeps history on a partial
update or delete.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Protocol

from .models import IntervalKind, new_id

logger = logging.getLogger(__name__)


class RuleLike(Protocol):
    id: Any
    name: str
    amount: Any
    currency: str
    category: str
    start_date: date
    interval: Any
    occurrences: int
    tags: Any


@dataclass(frozen=True)
class EntryDraft:
    """A ledger entry computed from a rule but not yet persisted."""

    id: str
    recurring_id: str | None
    name: str
    category: str
    amount: float
    currency: str
    date: date
    tags: list[str] = field(default_factory=list)

    def as_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "recurring_id": self.recurring_id,
            "name": self.name,
            "category": self.category,
            "subcategory": None,
            "amount": self.amount,
            "currency": self.currency,
            "date": self.date,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class ExpansionResult:
    entries: list[EntryDraft]
    # True when the stepper could not continue (unknown interval or date.max)
    truncated: bool = False

    @property
    def dates(self) -> list[date]:
        return [entry.date for entry in self.entries]


def _add_months(value: date, months: int) -> date:
    # Overflow days roll into the following month (Jan 31 + 1 month = Mar 3 in
    # a 28-day February). Existing data was generated this way, so the drift
    # across short months is kept.
    total = value.year * 12 + (value.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    days_in_month = calendar.monthrange(year, month)[1]
    if value.day <= days_in_month:
        return date(year, month, value.day)
    return date(year, month, days_in_month) + timedelta(days=value.day - days_in_month)


def _interval_value(interval: Any) -> str:
    if isinstance(interval, IntervalKind):
        return interval.value
    return str(interval or "").strip().lower()


def step(current: date, interval: Any) -> date | None:
    """Return the occurrence after ``current``.

    ``None`` means the sequence cannot continue: the interval is unknown or
    the next occurrence would fall after ``date.max``.
    """
    kind = _interval_value(interval)
    try:
        if kind == IntervalKind.DAILY.value:
            return current + timedelta(days=1)
        if kind == IntervalKind.WEEKLY.value:
            return current + timedelta(days=7)
        if kind == IntervalKind.MONTHLY.value:
            return _add_months(current, 1)
        if kind == IntervalKind.YEARLY.value:
            return _add_months(current, 12)
    except (OverflowError, ValueError):
        # timedelta overflow or a year past 9999
        return None
    return None


def _draft(rule: RuleLike, on: date) -> EntryDraft:
    return EntryDraft(
        id=new_id(),
        recurring_id=rule.id,
        name=rule.name,
        category=rule.category,
        amount=float(rule.amount),
        currency=rule.currency,
        date=on,
        tags=list(rule.tags or []),
    )


def expand(rule: RuleLike, fast_forward: bool, *, today: date) -> ExpansionResult:
    """Materialize the entries implied by ``rule``.

    With ``fast_forward`` the cursor first skips every occurrence dated on or
    before ``today``; each skipped occurrence consumes one unit of a bounded
    budget. The remaining budget is then the number of entries emitted.

    An open-ended rule (``occurrences == 0``) therefore emits nothing. That is
    the established behaviour and is kept until an explicit horizon is chosen.
    """
    budget = int(rule.occurrences or 0)
    remaining = budget
    cursor: date = rule.start_date
    entries: list[EntryDraft] = []

    if fast_forward:
        while cursor <= today and (budget == 0 or remaining > 0):
            following = step(cursor, rule.interval)
            if following is None:
                return _truncated(rule, entries, cursor)
            cursor = following
            if budget > 0:
                remaining -= 1

    for index in range(remaining):
        if index:
            following = step(cursor, rule.interval)
            if following is None:
                return _truncated(rule, entries, cursor)
            cursor = following
        entries.append(_draft(rule, cursor))

    return ExpansionResult(entries=entries)


def _truncated(rule: RuleLike, entries: list[EntryDraft], last: date) -> ExpansionResult:
    logger.warning(
        "Recurring expense %s cannot step past %s with interval %r; expansion stopped after %d entries",
        rule.id,
        last,
        rule.interval,
        len(entries),
    )
    return ExpansionResult(entries=entries, truncated=True)
