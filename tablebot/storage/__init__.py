from tablebot.storage.state_store import (
    InMemoryStateStore,
    SQLiteStateStore,
    StateStore,
    create_state_store,
)

__all__ = ["StateStore", "InMemoryStateStore", "SQLiteStateStore", "create_state_store"]
