from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def dialect_insert(connection: Connection, table: Table):
    """INSERT supporting ON CONFLICT clauses for the connection's dialect."""
    dialect = connection.dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Conflict-aware inserts are not supported for dialect {dialect}")
    return insert(table)
