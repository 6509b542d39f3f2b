"""Event records and their storage adapters."""

from .models import START_TABLE, EventRecord, EventRecordFactory, Room
from .store import EventStore, MemoryEventStore, SQLiteEventStore, open_store
