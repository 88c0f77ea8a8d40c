from collections.abc import Callable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.core.exceptions import ConfigurationError

# Both dialect inserts support on_conflict_do_update/do_nothing and excluded
_INSERTS: dict[str, Callable] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession) -> Callable:
    """Return the ON CONFLICT-capable ``insert`` for the session's backend."""
    name = db.get_bind().dialect.name
    try:
        return _INSERTS[name]
    except KeyError:
        raise ConfigurationError(
            f"Database backend '{name}' does not support upserts; use PostgreSQL or SQLite"
        ) from None
