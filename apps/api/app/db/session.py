from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from apps.api.app.core.config import settings

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def make_engine(database_url: str, **engine_kwargs):
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {}
    if is_sqlite:
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS
    eng = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            # pysqlite's own BEGIN handling is turned off; "begin" below takes over
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(eng, "begin")
        def _sqlite_begin_immediate(conn):
            # Write lock up front, so concurrent read-modify-write on the same
            # file (API workers, bot) queue instead of losing updates.
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return eng


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
