from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session


def dialect_insert(session: Session):
    """Return the ON CONFLICT capable `insert` for the session's backend.

    Production runs on Postgres; the sqlite variant keeps local runs and the
    test suite on the same upsert statements.
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"No upsert support for dialect {name!r}")


def chunked(rows: list, size: int):
    for i in range(0, len(rows), size):
        yield rows[i : i + size]
