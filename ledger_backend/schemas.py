from __future__ import annotations

import math
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import IntervalKind


def _clean_tags(v: list[str] | None) -> list[str]:
    seen: list[str] = []
    for tag in v or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class _AmountMixin(BaseModel):
    @field_validator("amount", check_fields=False)
    def amount_finite(cls, v: float):
        if not math.isfinite(v):
            raise ValueError("amount must be finite")
        if v == 0:
            raise ValueError("amount must not be zero")
        return round(v, 2)

    @field_validator("currency", check_fields=False)
    def currency_len(cls, v: str | None):
        if v is None or v == "":
            return None
        if len(v) != 3:
            raise ValueError("currency must be 3-letter code")
        return v.upper()

    @field_validator("name", "category", check_fields=False)
    def not_blank(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("tags", check_fields=False)
    def normalize_tags(cls, v: list[str] | None):
        return _clean_tags(v)


# RecurringRule Schemas
class RecurringRuleUpdate(_AmountMixin):
    name: str = Field(..., max_length=255)
    amount: float
    currency: Optional[str] = None
    category: str = Field(..., max_length=255)
    start_date: dt.date
    interval: IntervalKind
    occurrences: int = Field(0, ge=0)
    tags: list[str] = Field(default_factory=list)


class RecurringRuleCreate(RecurringRuleUpdate):
    id: Optional[str] = Field(default=None, max_length=36)


class RecurringRuleOut(BaseModel):
    id: str
    name: str
    amount: float
    currency: str
    category: str
    start_date: dt.date
    interval: str
    occurrences: int
    tags: list[str]
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class RecurringRulePreviewItem(BaseModel):
    name: str
    category: str
    amount: float
    currency: str
    date: dt.date
    tags: list[str]


class RecurringRulePreviewOut(BaseModel):
    items: list[RecurringRulePreviewItem]
    total_count: int
    truncated: bool


# Ledger entry Schemas
class EntryUpdate(_AmountMixin):
    name: str = Field(..., max_length=255)
    category: str = Field(..., max_length=255)
    subcategory: Optional[str] = Field(default=None, max_length=255)
    amount: float
    currency: Optional[str] = None
    date: Optional[dt.date] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("subcategory")
    def blank_subcategory(cls, v: str | None):
        if v is None:
            return v
        return v.strip() or None


class EntryCreate(EntryUpdate):
    id: Optional[str] = Field(default=None, max_length=36)


class EntryOut(BaseModel):
    id: str
    recurring_id: Optional[str]
    name: str
    category: str
    subcategory: Optional[str]
    amount: float
    currency: str
    date: dt.date
    tags: list[str]

    model_config = ConfigDict(from_attributes=True)


class EntriesBulkDelete(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class EntriesBulkDeleteResult(BaseModel):
    removed: int


# Config Schemas
class ConfigOut(BaseModel):
    categories: list[str]
    currency: str
    start_date: int
