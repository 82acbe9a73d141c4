"""System-of-record adapters (users and todos)."""

from app.adapters.records.base import AbstractRecordStore, OwnerRef, TodoRecord, UserRecord
from app.adapters.records.in_memory import InMemoryRecordStore

__all__ = [
    "AbstractRecordStore",
    "InMemoryRecordStore",
    "OwnerRef",
    "TodoRecord",
    "UserRecord",
]
