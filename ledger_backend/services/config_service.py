from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ledger_backend import models
from ledger_backend.core.config import DEFAULT_CATEGORIES, SUPPORTED_CURRENCIES, settings
from ledger_backend.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_ROW_ID = "default"


class ConfigService:
    """Persisted user configuration: categories, currency, start-of-month day.

    Also validates rule/entry payloads against that configuration before the
    lifecycle services are invoked.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self) -> models.AppConfig:
        row = self.db.get(models.AppConfig, CONFIG_ROW_ID)
        if row is None:
            row = models.AppConfig(
                id=CONFIG_ROW_ID,
                categories=list(DEFAULT_CATEGORIES),
                currency=settings.DEFAULT_CURRENCY.upper(),
                start_date=settings.DEFAULT_START_DATE,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info("Initialized default configuration")
        return row

    def get_categories(self) -> list[str]:
        return list(self.get().categories or [])

    def update_categories(self, categories: list[str]) -> list[str]:
        cleaned: list[str] = []
        for raw in categories:
            name = (raw or "").strip()
            if not name:
                raise ConfigValidationError("category names must not be empty")
            if name not in cleaned:
                cleaned.append(name)
        row = self.get()
        row.categories = cleaned
        self.db.commit()
        return cleaned

    def get_currency(self) -> str:
        return self.get().currency

    def update_currency(self, currency: str) -> str:
        code = (currency or "").strip().upper()
        if code not in SUPPORTED_CURRENCIES:
            raise ConfigValidationError(f"invalid currency: {currency}")
        row = self.get()
        row.currency = code
        self.db.commit()
        return code

    def get_start_date(self) -> int:
        return self.get().start_date

    def update_start_date(self, start_date: int) -> int:
        if start_date < 1 or start_date > 31:
            raise ConfigValidationError(f"invalid start date: {start_date}")
        row = self.get()
        row.start_date = start_date
        self.db.commit()
        return start_date

    # ---- Payload validation ----------------------------------------------
    def validate_fields(self, *, category: str, currency: str | None) -> None:
        if category not in self.get_categories():
            raise ConfigValidationError(f"unknown category: {category}")
        if currency and currency.upper() not in SUPPORTED_CURRENCIES:
            raise ConfigValidationError(f"unsupported currency: {currency}")
