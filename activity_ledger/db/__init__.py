from activity_ledger.db.database import (
    create_engine,
    create_session_maker,
    create_worker_session_maker,
    get_db,
    init_db,
)

__all__ = [
    "create_engine",
    "create_session_maker",
    "create_worker_session_maker",
    "get_db",
    "init_db",
]
