from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ledger_backend import models, schemas
from ledger_backend.exceptions import NotFoundError, RecurringRuleNotFound
from ledger_backend.recurrence import ExpansionResult
from ledger_backend.services.config_service import ConfigService
from ledger_backend.services.ledger_store import LedgerStore, RuleChange

logger = logging.getLogger(__name__)


class RecurringRuleService:
    """Create, edit and delete recurring expenses.

    Callers validate categories and currencies first (``ConfigService``). This
    class supplies the configured currency as the explicit default and turns
    store-level misses into ``RecurringRuleNotFound``.
    """

    def __init__(
        self,
        db: Session,
        store: LedgerStore | None = None,
        config_service: ConfigService | None = None,
    ) -> None:
        self.db = db
        self.store = store or LedgerStore(db)
        self.config_service = config_service or ConfigService(db)

    def list_rules(self) -> list[models.RecurringRule]:
        return self.store.list_rules()

    def get(self, rule_id: str) -> models.RecurringRule:
        rule = self.store.get_rule(rule_id)
        if rule is None:
            raise RecurringRuleNotFound(rule_id)
        return rule

    def preview(self, payload: schemas.RecurringRuleCreate) -> ExpansionResult:
        return self.store.preview(payload.model_dump(), default_currency=self._default_currency())

    def create(self, payload: schemas.RecurringRuleCreate) -> models.RecurringRule:
        change = self.store.create_rule(payload.model_dump(), default_currency=self._default_currency())
        self._log("Created", change)
        return self.get(change.rule_id)

    def update(
        self,
        rule_id: str,
        payload: schemas.RecurringRuleUpdate,
        *,
        update_all: bool = False,
    ) -> models.RecurringRule:
        try:
            change = self.store.update_rule(
                rule_id,
                payload.model_dump(),
                apply_to_all=bool(update_all),
                default_currency=self._default_currency(),
            )
        except NotFoundError as exc:
            raise RecurringRuleNotFound(rule_id) from exc
        self._log("Updated", change)
        return self.get(rule_id)

    def remove(self, rule_id: str, *, remove_all: bool = False) -> RuleChange:
        try:
            change = self.store.remove_rule(rule_id, remove_all=bool(remove_all))
        except NotFoundError as exc:
            raise RecurringRuleNotFound(rule_id) from exc
        self._log("Removed", change)
        return change

    # ---- Helpers ---------------------------------------------------------
    def _default_currency(self) -> str:
        return self.config_service.get_currency()

    def _log(self, action: str, change: RuleChange) -> None:
        logger.info(
            "%s recurring expense %s (entries inserted=%d removed=%d)",
            action,
            change.rule_id,
            change.inserted,
            change.removed,
        )
        if change.truncated:
            logger.warning("Recurring expense %s was only partially materialized", change.rule_id)
