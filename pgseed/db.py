from __future__ import annotations

import re

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from pgseed.errors import SeederConnectionError, SetupError
from pgseed.settings import SeederSettings


DRIVER = "postgresql+psycopg"
ADMIN_DATABASE = "postgres"
ADMIN_SCHEMA = "public"

DEFAULT_HOST = "localhost"
DEFAULT_PORT = "5432"
DEFAULT_USER = "kabestan"
DEFAULT_PASSWORD = "kabestan"
DEFAULT_DATABASE = "kabestan"
DEFAULT_SCHEMA = "public"

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]{0,62}$")


def quote_ident(name: str) -> str:
    # Identifiers are interpolated into DDL, so only plain names are accepted.
    if not _IDENT_RE.match(name or ""):
        raise SetupError(f"invalid identifier: {name!r}")
    return name


def schema_name(settings: SeederSettings) -> str:
    return settings.val_or_def("pg.schema", DEFAULT_SCHEMA)


def database_name(settings: SeederSettings) -> str:
    return settings.val_or_def("pg.database", DEFAULT_DATABASE)


def _url(settings: SeederSettings, database: str, schema: str) -> sa.URL:
    return sa.URL.create(
        DRIVER,
        username=settings.val_or_def("pg.user", DEFAULT_USER),
        password=settings.val_or_def("pg.password", DEFAULT_PASSWORD),
        host=settings.val_or_def("pg.host", DEFAULT_HOST),
        port=int(settings.val_or_def("pg.port", DEFAULT_PORT)),
        database=database,
        query={"sslmode": "disable", "options": f"-csearch_path={schema}"},
    )


def admin_url(settings: SeederSettings) -> sa.URL:
    """
    URL of the administrative connection: the default `postgres` database, used
    to check for and create the target database.
    """
    return _url(settings, ADMIN_DATABASE, ADMIN_SCHEMA)


def database_url(settings: SeederSettings) -> sa.URL:
    return _url(settings, database_name(settings), schema_name(settings))


def create_engine(url: sa.URL | str, *, autocommit: bool = False) -> Engine:
    if autocommit:
        # CREATE DATABASE cannot run inside a transaction block.
        return sa.create_engine(url, pool_pre_ping=True, poolclass=NullPool, isolation_level="AUTOCOMMIT")
    return sa.create_engine(url, pool_pre_ping=True)


def ping(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(sa.text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise SeederConnectionError(f"connection error: {exc}") from exc
