from __future__ import annotations

import os
from typing import List

from sqlalchemy import MetaData, event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_postgres(database_url: str) -> bool:
    return database_url.startswith("postgresql")


def _ensure_sqlite_dir(database_url: str) -> None:
    """
    Ensure the parent folder exists for SQLite file-based DB URLs like:
      sqlite:///./data/bot.db
      sqlite:////absolute/path/to/bot.db
    """
    if not database_url.startswith("sqlite:///"):
        return

    path = database_url.replace("sqlite:///", "", 1)
    if not path or path == ":memory:":
        return
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)


def _sqlite_pragmas(engine: Engine, *, foreign_keys: bool) -> None:
    """
    Connection pragmas + transactional DDL for SQLite.

    pysqlite opens transactions implicitly and only around DML, so a
    CREATE/INSERT/DROP/ALTER sequence would not be atomic. We switch the
    driver to autocommit and emit BEGIN ourselves whenever SQLAlchemy starts
    a transaction (the recipe from the SQLAlchemy SQLite dialect docs).
    """

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.execute(f"PRAGMA foreign_keys={'ON' if foreign_keys else 'OFF'};")
        cursor.execute("PRAGMA busy_timeout=5000;")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def _postgres_session_settings(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_postgres_settings(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("SET statement_timeout = 30000;")
        cursor.close()


def create_db_engine(database_url: str, *, foreign_keys: bool = True) -> Engine:
    """
    Create the SQLAlchemy engine for a resolved database URL.

    - SQLite gets pragmas + transactional DDL
    - foreign_keys=False is for schema rebuilds, where SQLite requires
      foreign key enforcement off while tables are dropped and renamed
    """
    if _is_sqlite(database_url):
        _ensure_sqlite_dir(database_url)

    connect_args = {"check_same_thread": False} if _is_sqlite(database_url) else {}

    engine = create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
    )

    if _is_sqlite(database_url):
        _sqlite_pragmas(engine, foreign_keys=foreign_keys)

    if _is_postgres(database_url):
        _postgres_session_settings(engine)

    return engine


def register_models() -> None:
    """
    Central place to import ALL models so SQLModel registers them.
    """
    from .models.user import User  # noqa: F401
    from .models.redeemable_role import RedeemableRole  # noqa: F401
    from .models.user_role import UserRole  # noqa: F401


def init_db(engine: Engine) -> None:
    """
    Register models, then create missing tables.
    Non-destructive: create_all will not drop or alter existing tables;
    column changes on existing tables go through arcade_bot.migrations.
    """
    register_models()
    SQLModel.metadata.create_all(engine)


def drop_all_tables(engine: Engine) -> List[str]:
    """
    Drop every user table in one transaction (reflected, so tables the
    models no longer know about go too). Returns the dropped table names.
    SQLite's internal sqlite_* tables are never reflected.
    """
    meta = MetaData()
    with engine.begin() as conn:
        meta.reflect(bind=conn)
        names = [t.name for t in meta.sorted_tables]
        meta.drop_all(bind=conn)
    return names
