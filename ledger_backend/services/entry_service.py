from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_backend import models, schemas
from ledger_backend.exceptions import DuplicateIdError, EntryNotFound, LinkedEntryError
from ledger_backend.services.config_service import ConfigService
from ledger_backend.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class EntryService:
    """One-off ledger entries entered by hand.

    Entries generated from a recurring expense are read-only here; they change
    only through ``RecurringRuleService``.
    """

    def __init__(
        self,
        db: Session,
        config_service: ConfigService | None = None,
        clock: Callable[[], datetime] = models.now_local_naive,
    ) -> None:
        self.db = db
        self.config_service = config_service or ConfigService(db)
        self.store = LedgerStore(db, clock)
        self.clock = clock

    def list_entries(self, recurring_id: Optional[str] = None) -> list[models.LedgerEntry]:
        return self.store.list_entries(recurring_id)

    def get(self, entry_id: str) -> models.LedgerEntry:
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    def create(self, payload: schemas.EntryCreate) -> models.LedgerEntry:
        data = payload.model_dump()
        entry_id = data.pop("id") or models.new_id()
        if self.store.get_entry(entry_id) is not None:
            raise DuplicateIdError("expense", entry_id)
        entry = models.LedgerEntry(id=entry_id, recurring_id=None, **self._normalize(data))
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # lost a race with a concurrent insert of the same id
            self.db.rollback()
            raise DuplicateIdError("expense", entry_id) from exc
        self.db.refresh(entry)
        logger.info("Added expense %s", entry_id)
        return entry

    def update(self, entry_id: str, payload: schemas.EntryUpdate) -> models.LedgerEntry:
        entry = self._freestanding(entry_id)
        data = payload.model_dump()
        if data.get("date") is None:
            data.pop("date", None)
        for key, value in self._normalize(data, fill_date=False).items():
            setattr(entry, key, value)
        self.db.commit()
        self.db.refresh(entry)
        logger.info("Updated expense %s", entry_id)
        return entry

    def remove(self, entry_id: str) -> None:
        entry = self._freestanding(entry_id)
        self.db.delete(entry)
        self.db.commit()
        logger.info("Removed expense %s", entry_id)

    def remove_many(self, entry_ids: list[str]) -> int:
        """Delete freestanding entries by id; unknown ids are ignored."""
        ids = list(dict.fromkeys(entry_ids))
        linked = (
            self.db.query(models.LedgerEntry.id, models.LedgerEntry.recurring_id)
            .filter(models.LedgerEntry.id.in_(ids), models.LedgerEntry.recurring_id.isnot(None))
            .first()
        )
        if linked is not None:
            raise LinkedEntryError(linked[0], linked[1])
        removed = self.db.execute(
            delete(models.LedgerEntry)
            .where(models.LedgerEntry.id.in_(ids))
            .execution_options(synchronize_session=False)
        ).rowcount
        self.db.commit()
        logger.info("Removed %d expenses", removed)
        return removed

    # ---- Helpers ---------------------------------------------------------
    def _freestanding(self, entry_id: str) -> models.LedgerEntry:
        entry = self.get(entry_id)
        if entry.recurring_id:
            raise LinkedEntryError(entry_id, entry.recurring_id)
        return entry

    def _normalize(self, data: dict, *, fill_date: bool = True) -> dict:
        data = dict(data)
        data["currency"] = (data.get("currency") or self.config_service.get_currency()).upper()
        if fill_date and data.get("date") is None:
            data["date"] = self.clock().date()
        return data
