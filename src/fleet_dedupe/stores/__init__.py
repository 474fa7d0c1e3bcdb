from fleet_dedupe.stores.memory import InMemoryRecordStore
from fleet_dedupe.stores.postgrest import PostgrestRecordStore

__all__ = ["InMemoryRecordStore", "PostgrestRecordStore"]
