"""Durable stores used across runs."""

from .ledger import Ledger, LedgerPersistenceError, LedgerStore, generation_timestamp

__all__ = ["Ledger", "LedgerPersistenceError", "LedgerStore", "generation_timestamp"]
