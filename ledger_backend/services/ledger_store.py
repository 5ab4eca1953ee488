"""
Ledger store: recurring rules and the entries materialized from them.

Every lifecycle operation is one unit of work. The rule row and the entry set
it owns are written together or not at all; any failure rolls the whole
session back and surfaces as ``LedgerTransactionError`` naming the phase that
failed. A rule id that is already taken surfaces as ``DuplicateIdError``.

Update and remove start with the statement that touches the rule row. That
write takes the row lock (PostgreSQL) or the database write lock (SQLite), so
two lifecycle calls against the same rule are serialized and the second one
only sees the first one's committed entry set.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterator, Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_backend import models
from ledger_backend.exceptions import DuplicateIdError, LedgerTransactionError, NotFoundError
from ledger_backend.recurrence import ExpansionResult, expand

logger = logging.getLogger(__name__)

RULE_COLUMNS = ("name", "amount", "currency", "category", "start_date", "interval", "occurrences", "tags")


@dataclass(frozen=True)
class RuleChange:
    """Outcome of one lifecycle operation."""

    rule_id: str
    inserted: int = 0
    removed: int = 0
    truncated: bool = False


class LedgerStore:
    def __init__(self, db: Session, clock: Callable[[], datetime] = models.now_local_naive) -> None:
        self.db = db
        self.clock = clock

    # ---- Queries -----------------------------------------------------------
    def list_rules(self) -> list[models.RecurringRule]:
        return (
            self.db.query(models.RecurringRule)
            .order_by(models.RecurringRule.start_date, models.RecurringRule.name)
            .all()
        )

    def get_rule(self, rule_id: str) -> Optional[models.RecurringRule]:
        return self.db.get(models.RecurringRule, rule_id)

    def list_entries(self, recurring_id: Optional[str] = None) -> list[models.LedgerEntry]:
        q = self.db.query(models.LedgerEntry)
        if recurring_id is not None:
            q = q.filter(models.LedgerEntry.recurring_id == recurring_id)
        return q.order_by(models.LedgerEntry.date.desc(), models.LedgerEntry.name).all()

    def get_entry(self, entry_id: str) -> Optional[models.LedgerEntry]:
        return self.db.get(models.LedgerEntry, entry_id)

    def preview(self, fields: dict[str, Any], *, default_currency: str, fast_forward: bool = False) -> ExpansionResult:
        """Expand a rule payload without persisting anything."""
        values = _rule_values(fields, default_currency)
        rule = models.RecurringRule(id=fields.get("id"), **values)
        return expand(rule, fast_forward, today=self._today())

    # ---- Lifecycle ---------------------------------------------------------
    def create_rule(self, fields: dict[str, Any], *, default_currency: str) -> RuleChange:
        today = self._today()
        values = _rule_values(fields, default_currency)
        rule_id = fields.get("id") or models.new_id()
        rule = models.RecurringRule(id=rule_id, **values)

        with self._unit_of_work(rule_id):
            with self._phase(LedgerTransactionError.RULE_WRITE, rule_id):
                try:
                    self.db.execute(insert(models.RecurringRule).values(id=rule_id, **values))
                except IntegrityError as exc:
                    raise DuplicateIdError("recurring expense", rule_id) from exc
            result = expand(rule, False, today=today)
            with self._phase(LedgerTransactionError.ENTRY_INSERT, rule_id):
                self._insert_entries(result)

        logger.debug("Created recurring expense %s with %d entries", rule_id, len(result.entries))
        return RuleChange(rule_id=rule_id, inserted=len(result.entries), truncated=result.truncated)

    def update_rule(
        self,
        rule_id: str,
        fields: dict[str, Any],
        *,
        apply_to_all: bool,
        default_currency: str,
    ) -> RuleChange:
        today = self._today()
        values = _rule_values(fields, default_currency)
        rule = models.RecurringRule(id=rule_id, **values)

        with self._unit_of_work(rule_id):
            with self._phase(LedgerTransactionError.RULE_WRITE, rule_id):
                matched = self.db.execute(
                    update(models.RecurringRule)
                    .where(models.RecurringRule.id == rule_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                ).rowcount
            if not matched:
                raise NotFoundError("recurring expense", rule_id)
            with self._phase(LedgerTransactionError.ENTRY_DELETE, rule_id):
                removed = self._delete_entries(rule_id, after=None if apply_to_all else today)
            result = expand(rule, not apply_to_all, today=today)
            with self._phase(LedgerTransactionError.ENTRY_INSERT, rule_id):
                self._insert_entries(result)

        return RuleChange(
            rule_id=rule_id,
            inserted=len(result.entries),
            removed=removed,
            truncated=result.truncated,
        )

    def remove_rule(self, rule_id: str, *, remove_all: bool) -> RuleChange:
        today = self._today()
        with self._unit_of_work(rule_id):
            with self._phase(LedgerTransactionError.RULE_WRITE, rule_id):
                matched = self.db.execute(
                    delete(models.RecurringRule)
                    .where(models.RecurringRule.id == rule_id)
                    .execution_options(synchronize_session=False)
                ).rowcount
            if not matched:
                raise NotFoundError("recurring expense", rule_id)
            with self._phase(LedgerTransactionError.ENTRY_DELETE, rule_id):
                removed = self._delete_entries(rule_id, after=None if remove_all else today)
        return RuleChange(rule_id=rule_id, removed=removed)

    # ---- Internals ---------------------------------------------------------
    def _today(self) -> date:
        return self.clock().date()

    def _delete_entries(self, rule_id: str, *, after: Optional[date]) -> int:
        stmt = delete(models.LedgerEntry).where(models.LedgerEntry.recurring_id == rule_id)
        if after is not None:
            stmt = stmt.where(models.LedgerEntry.date > after)
        return self.db.execute(stmt.execution_options(synchronize_session=False)).rowcount

    def _insert_entries(self, result: ExpansionResult) -> None:
        if not result.entries:
            return
        self.db.execute(insert(models.LedgerEntry), [entry.as_row() for entry in result.entries])

    @contextmanager
    def _unit_of_work(self, rule_id: str) -> Iterator[None]:
        try:
            yield
            with self._phase(LedgerTransactionError.COMMIT, rule_id):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def _phase(self, phase: str, rule_id: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Recurring expense %s: %s failed: %s", rule_id, phase, exc)
            raise LedgerTransactionError(phase, rule_id, exc) from exc


def _rule_values(fields: dict[str, Any], default_currency: str) -> dict[str, Any]:
    values = {key: fields.get(key) for key in RULE_COLUMNS}
    interval = values["interval"]
    values["interval"] = getattr(interval, "value", interval)
    values["currency"] = (values["currency"] or default_currency).upper()
    values["occurrences"] = int(values["occurrences"] or 0)
    values["tags"] = list(values["tags"] or [])
    return values
