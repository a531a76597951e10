from __future__ import annotations

from pathlib import Path
from typing import Iterable

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlmodel import SQLModel, Session, create_engine, select

# Connections opened with this execution option begin with BEGIN IMMEDIATE
# (SQLite only), taking the write lock up front.
IMMEDIATE = "catalog_immediate"

# SQL function folding case the way str.casefold does; SQLite lower() only folds ASCII.
CASEFOLD = "casefold"

# Seeded at startup when unknown categories are not created on demand.
DEFAULT_CATEGORIES = ("fashion", "food", "electronics", "books", "other")


def _ensure_sqlite_dir(url: str) -> None:
    db = make_url(url).database
    if db and db != ":memory:" and not db.startswith("file:"):
        Path(db).parent.mkdir(parents=True, exist_ok=True)


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "do_connect")
    def _on_do_connect(dialect, conn_rec, cargs, cparams):
        # created on first connect, not when the engine is built
        _ensure_sqlite_dir(str(engine.url))

    # pysqlite emits BEGIN lazily and breaks SAVEPOINT; take over transaction control.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()
        dbapi_connection.create_function(CASEFOLD, 1, _casefold, deterministic=True)

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def make_engine(database_url: str) -> Engine:
    # SQLite needs check_same_thread=False for typical FastAPI usage
    connect_args = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = {"check_same_thread": False}

    engine = create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
    )
    if is_sqlite:
        _install_sqlite_hooks(engine)
    return engine


def init_db(engine: Engine) -> None:
    """
    Dev convenience ONLY. In real environments, use Alembic migrations.
    Controlled by AUTO_CREATE_TABLES=true.
    """
    from item_catalog import models  # noqa: F401  ensure metadata loaded
    SQLModel.metadata.create_all(engine)


def seed_categories(engine: Engine, names: Iterable[str]) -> None:
    """Insert the given category names that do not exist yet."""
    from item_catalog.models import Category

    with Session(engine) as session:
        for name in names:
            exists = session.exec(select(Category).where(Category.name == name)).first()
            if not exists:
                session.add(Category(name=name))
        session.commit()
