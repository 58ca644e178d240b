"""
core/db.py -- SQLAlchemy engine construction shared by every repository.

SQLite specifics handled here:
  check_same_thread=False: FastAPI runs sync route handlers in a thread pool,
      so one pooled connection may be used from several threads.

  WAL journal mode: readers proceed without blocking during writes. Set
      per-connection because SQLite PRAGMAs are not inherited by new
      connections from the pool.

  foreign_keys=ON: SQLite ignores FOREIGN KEY clauses unless this PRAGMA is
      set on every connection.

  Explicit BEGIN: the sqlite3 driver delays BEGIN until the first write, which
      would leave the SELECTs of a validate-then-commit sequence outside the
      transaction. The driver's own transaction handling is switched off and
      SQLAlchemy emits BEGIN itself (the recipe from the SQLAlchemy SQLite
      dialect docs).

Layer rule: no imports from api/, auth/, or inventory/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _on_sqlite_connect(dbapi_conn, connection_record) -> None:
    dbapi_conn.isolation_level = None
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def _on_sqlite_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def create_store_engine(db_url: str) -> Engine:
    """Create an Engine for db_url, applying SQLite connection settings when needed."""
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)
    return engine
