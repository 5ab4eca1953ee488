"""Typed failures raised by the ledger services.

Routers translate these into HTTP responses; nothing here is retried
automatically.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures."""


class NotFoundError(LedgerError):
    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class RecurringRuleNotFound(NotFoundError):
    def __init__(self, rule_id: str) -> None:
        super().__init__("recurring expense", rule_id)


class EntryNotFound(NotFoundError):
    def __init__(self, entry_id: str) -> None:
        super().__init__("expense", entry_id)


class DuplicateIdError(LedgerError):
    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} already exists")


class LinkedEntryError(LedgerError):
    """A rule-generated entry was targeted by a freestanding edit/delete."""

    def __init__(self, entry_id: str, recurring_id: str) -> None:
        self.entry_id = entry_id
        self.recurring_id = recurring_id
        super().__init__(
            f"expense {entry_id} belongs to recurring expense {recurring_id}; "
            "change it through the recurring expense instead"
        )


class ConfigValidationError(LedgerError, ValueError):
    pass


class LedgerTransactionError(LedgerError):
    """Persistence failure inside a multi-step unit of work.

    The unit of work has already been rolled back when this is raised.
    """

    RULE_WRITE = "rule_write"
    ENTRY_DELETE = "entry_delete"
    ENTRY_INSERT = "entry_insert"
    COMMIT = "commit"

    def __init__(self, phase: str, rule_id: str | None, cause: BaseException | None = None) -> None:
        self.phase = phase
        self.rule_id = rule_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{phase} failed for recurring expense {rule_id}{detail}")
