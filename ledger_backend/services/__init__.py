"""
Services package

Business logic for the ledger: configuration, freestanding entries and the
recurring expense lifecycle.
"""

from .config_service import ConfigService
from .entry_service import EntryService
from .ledger_store import LedgerStore, RuleChange
from .recurring_service import RecurringRuleService

__all__ = [
    "ConfigService",
    "EntryService",
    "LedgerStore",
    "RuleChange",
    "RecurringRuleService",
]
