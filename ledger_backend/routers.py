from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from .core.database import get_db
from .exceptions import (
    ConfigValidationError,
    DuplicateIdError,
    LedgerTransactionError,
    LinkedEntryError,
    NotFoundError,
)
from .schemas import (
    ConfigOut,
    EntriesBulkDelete,
    EntriesBulkDeleteResult,
    EntryCreate,
    EntryOut,
    EntryUpdate,
    RecurringRuleCreate,
    RecurringRuleOut,
    RecurringRulePreviewItem,
    RecurringRulePreviewOut,
    RecurringRuleUpdate,
)
from .services import ConfigService, EntryService, RecurringRuleService

logger = logging.getLogger(__name__)

router = APIRouter()


def _validate_payload(db: Session, *, category: str, currency: str | None) -> None:
    try:
        ConfigService(db).validate_fields(category=category, currency=currency)
    except ConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _transaction_failed(exc: LedgerTransactionError) -> HTTPException:
    logger.error("API ERROR: %s", exc)
    return HTTPException(status_code=500, detail=f"Failed to save recurring expense ({exc.phase})")


# ===== Config =====
@router.get("/config", response_model=ConfigOut)
def get_config(db: Session = Depends(get_db)):
    return ConfigService(db).get().to_dict()


@router.get("/categories", response_model=list[str])
def get_categories(db: Session = Depends(get_db)):
    return ConfigService(db).get_categories()


@router.put("/categories", response_model=list[str])
def update_categories(categories: list[str] = Body(...), db: Session = Depends(get_db)):
    try:
        return ConfigService(db).update_categories(categories)
    except ConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/currency", response_model=str)
def get_currency(db: Session = Depends(get_db)):
    return ConfigService(db).get_currency()


@router.put("/currency", response_model=str)
def update_currency(currency: str = Body(...), db: Session = Depends(get_db)):
    try:
        return ConfigService(db).update_currency(currency)
    except ConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/start-date", response_model=int)
def get_start_date(db: Session = Depends(get_db)):
    return ConfigService(db).get_start_date()


@router.put("/start-date", response_model=int)
def update_start_date(start_date: int = Body(...), db: Session = Depends(get_db)):
    try:
        return ConfigService(db).update_start_date(start_date)
    except ConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ===== Expenses =====
@router.get("/expenses", response_model=list[EntryOut])
def list_expenses(
    recurring_id: Optional[str] = Query(None, description="Only entries generated by this recurring expense"),
    db: Session = Depends(get_db),
):
    return EntryService(db).list_entries(recurring_id)


@router.get("/expenses/{entry_id}", response_model=EntryOut)
def get_expense(entry_id: str, db: Session = Depends(get_db)):
    try:
        return EntryService(db).get(entry_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Expense not found") from exc


@router.post("/expenses", response_model=EntryOut, status_code=201)
def create_expense(payload: EntryCreate, db: Session = Depends(get_db)):
    _validate_payload(db, category=payload.category, currency=payload.currency)
    try:
        return EntryService(db).create(payload)
    except DuplicateIdError as exc:
        raise HTTPException(status_code=409, detail="Expense already exists") from exc


@router.put("/expenses/{entry_id}", response_model=EntryOut)
def update_expense(entry_id: str, payload: EntryUpdate, db: Session = Depends(get_db)):
    _validate_payload(db, category=payload.category, currency=payload.currency)
    try:
        return EntryService(db).update(entry_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Expense not found") from exc
    except LinkedEntryError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.delete("/expenses/{entry_id}", status_code=204)
def delete_expense(entry_id: str, db: Session = Depends(get_db)):
    try:
        EntryService(db).remove(entry_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Expense not found") from exc
    except LinkedEntryError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return Response(status_code=204)


@router.post("/expenses/bulk-delete", response_model=EntriesBulkDeleteResult)
def delete_expenses_bulk(payload: EntriesBulkDelete, db: Session = Depends(get_db)):
    try:
        removed = EntryService(db).remove_many(payload.ids)
    except LinkedEntryError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return EntriesBulkDeleteResult(removed=removed)


# ===== Recurring Expenses =====
@router.get("/recurring-expenses", response_model=list[RecurringRuleOut])
def list_recurring_expenses(db: Session = Depends(get_db)):
    return RecurringRuleService(db).list_rules()


@router.post("/recurring-expenses/preview", response_model=RecurringRulePreviewOut)
def preview_recurring_expense(payload: RecurringRuleCreate, db: Session = Depends(get_db)):
    _validate_payload(db, category=payload.category, currency=payload.currency)
    result = RecurringRuleService(db).preview(payload)
    items = [
        RecurringRulePreviewItem(
            name=entry.name,
            category=entry.category,
            amount=entry.amount,
            currency=entry.currency,
            date=entry.date,
            tags=entry.tags,
        )
        for entry in result.entries
    ]
    return RecurringRulePreviewOut(items=items, total_count=len(items), truncated=result.truncated)


@router.get("/recurring-expenses/{rule_id}", response_model=RecurringRuleOut)
def get_recurring_expense(rule_id: str, db: Session = Depends(get_db)):
    try:
        return RecurringRuleService(db).get(rule_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recurring expense not found") from exc


@router.post("/recurring-expenses", response_model=RecurringRuleOut, status_code=201)
def create_recurring_expense(payload: RecurringRuleCreate, db: Session = Depends(get_db)):
    _validate_payload(db, category=payload.category, currency=payload.currency)
    try:
        return RecurringRuleService(db).create(payload)
    except DuplicateIdError as exc:
        raise HTTPException(status_code=409, detail="Recurring expense already exists") from exc
    except LedgerTransactionError as exc:
        raise _transaction_failed(exc) from exc


@router.put("/recurring-expenses/{rule_id}", response_model=RecurringRuleOut)
def update_recurring_expense(
    rule_id: str,
    payload: RecurringRuleUpdate,
    update_all: bool = Query(False, description="Regenerate past entries too"),
    db: Session = Depends(get_db),
):
    _validate_payload(db, category=payload.category, currency=payload.currency)
    try:
        return RecurringRuleService(db).update(rule_id, payload, update_all=update_all)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recurring expense not found") from exc
    except LedgerTransactionError as exc:
        raise _transaction_failed(exc) from exc


@router.delete("/recurring-expenses/{rule_id}", status_code=204)
def delete_recurring_expense(
    rule_id: str,
    remove_all: bool = Query(False, description="Delete past entries too"),
    db: Session = Depends(get_db),
):
    try:
        RecurringRuleService(db).remove(rule_id, remove_all=remove_all)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recurring expense not found") from exc
    except LedgerTransactionError as exc:
        raise _transaction_failed(exc) from exc
    return Response(status_code=204)
