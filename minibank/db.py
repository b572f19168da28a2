from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, SQLModel, Session

from .config import DATABASE_URL


def _sqlite_immediate_transactions(engine):
    # pysqlite defers BEGIN until the first write, so a read-then-update in a
    # unit of work would run unlocked. Take the write lock at BEGIN instead.
    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(url: str = DATABASE_URL):
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=False, **kwargs)
    if url.startswith("sqlite"):
        _sqlite_immediate_transactions(engine)
    return engine


def init_db(engine):
    from . import models  # noqa
    SQLModel.metadata.create_all(engine)


@contextmanager
def unit_of_work(engine):
    """Yield a session bound to one database transaction.

    The transaction commits when the block exits normally and rolls back when
    it raises, so every write made through the session lands together or not
    at all. Objects stay readable after the block closes.

    Rows read through the session are write-locked until the end of the
    block: ``FOR UPDATE`` on servers that support it, and the whole database
    via ``BEGIN IMMEDIATE`` on SQLite.
    """
    with Session(engine, expire_on_commit=False) as session:
        with session.begin():
            yield session
