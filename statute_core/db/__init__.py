from .store import (
    StatuteStore,
    SQLiteStatuteStore,
    init_database,
)

__all__ = [
    "StatuteStore",
    "SQLiteStatuteStore",
    "init_database",
]
