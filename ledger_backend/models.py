from __future__ import annotations

import uuid
import datetime as dt
from datetime import datetime
from zoneinfo import ZoneInfo
from enum import Enum
from typing import Any

from sqlalchemy import (
    Date,
    DateTime,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "UTC"))
except Exception:
    LOCAL_ZONE = ZoneInfo("UTC")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class IntervalKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurringRule(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # plain string: rows with an unknown interval must still load
    interval: Mapped[str] = mapped_column(String(50), nullable=False)
    occurrences: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 0 = open-ended
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class LedgerEntry(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # weak reference: no FK, entries may outlive their rule
    recurring_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    subcategory: Mapped[str | None] = mapped_column(String(255))
    amount: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("ix_ledgerentry_recurring_id", "recurring_id"),
        Index("ix_ledgerentry_date", "date"),
    )


class AppConfig(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default="default")
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    start_date: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": list(self.categories or []),
            "currency": self.currency,
            "start_date": self.start_date,
        }
