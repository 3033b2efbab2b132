from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine, Transaction
from sqlalchemy.exc import SQLAlchemyError

from pgseed import db
from pgseed.errors import CommitError, SeedError, SetupError, TransactionError
from pgseed.logging import get_logger
from pgseed.seed import Seed, SeedExec, fx_name
from pgseed.settings import SETTINGS, SeederSettings


SEEDER_TABLE = "seeds"

# Bookkeeping column widths (VARCHAR(64)).
NAME_MAX = 64

PG_CREATE_DB_ST = "CREATE DATABASE {db};"

PG_CREATE_SEEDER_ST = """CREATE TABLE {schema}.{table} (
  id UUID PRIMARY KEY,
  name VARCHAR(64),
  fx VARCHAR(64),
  is_applied BOOLEAN,
  created_at TIMESTAMP
);"""

PG_DROP_SEEDER_ST = "DROP TABLE {schema}.{table};"

PG_SEL_SEEDER_ST = "SELECT is_applied FROM {schema}.{table} WHERE name = :name AND is_applied = true"

PG_INS_SEEDER_ST = (
    "INSERT INTO {schema}.{table} (id, name, fx, is_applied, created_at) "
    "VALUES (:id, :name, :fx, :is_applied, :created_at)"
)

PG_DEL_SEEDER_ST = "DELETE FROM {schema}.{table} WHERE name = :name AND is_applied = true"

PG_LIST_SEEDER_ST = (
    "SELECT name, fx, created_at FROM {schema}.{table} WHERE is_applied = true ORDER BY created_at, name"
)

PG_DB_EXISTS_ST = (
    "SELECT EXISTS ("
    "SELECT datname FROM pg_catalog.pg_database WHERE lower(datname) = lower(:db)"
    ")"
)

PG_TABLE_EXISTS_ST = (
    "SELECT EXISTS ("
    "SELECT 1 FROM pg_catalog.pg_class c "
    "JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace "
    "WHERE n.nspname = :schema AND c.relname = :table AND c.relkind = 'r'"
    ")"
)


def _utcnow() -> datetime:
    # created_at is a TIMESTAMP without time zone; store naive UTC.
    return datetime.now(tz=UTC).replace(tzinfo=None)


@dataclass(frozen=True)
class AppliedSeed:
    name: str
    fx: str
    created_at: datetime | None


@dataclass
class SeedReport:
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class Seeder:
    """
    Applies registered seed steps in registration order, one transaction per
    step, stopping at the first failure.

    `engine` is the operational connection to the target database. Existence
    checks for the database itself and `CREATE DATABASE` go through
    `admin_engine` (the `postgres` database); it defaults to `engine`.

    With `track_applied` on, every committed step is recorded in
    `<schema>.seeds` within its own transaction and skipped on later runs.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        settings: SeederSettings | None = None,
        logger: Any = None,
        name: str = "seeder",
        admin_engine: Engine | None = None,
        track_applied: bool = True,
    ) -> None:
        settings = settings or SETTINGS
        self.name = name
        self.engine = engine
        self.admin_engine = admin_engine or engine
        self.schema = db.quote_ident(db.schema_name(settings))
        self.db_name = db.quote_ident(db.database_name(settings))
        self.track_applied = track_applied
        self._log = (logger or get_logger("pgseed")).bind(seeder=name)
        self._seeds: list[Seed] = []

    @classmethod
    def from_settings(
        cls,
        settings: SeederSettings | None = None,
        *,
        logger: Any = None,
        name: str = "seeder",
        track_applied: bool = True,
    ) -> Seeder:
        settings = settings or SETTINGS
        admin_engine = db.create_engine(db.admin_url(settings), autocommit=True)
        # Connectivity failures are fatal; the operational engine connects lazily,
        # after pre_setup has had a chance to create the database.
        db.ping(admin_engine)
        engine = db.create_engine(db.database_url(settings))
        return cls(
            engine,
            settings=settings,
            logger=logger,
            name=name,
            admin_engine=admin_engine,
            track_applied=track_applied,
        )

    def close(self) -> None:
        self.engine.dispose()
        if self.admin_engine is not self.engine:
            self.admin_engine.dispose()

    @property
    def seeds(self) -> tuple[Seed, ...]:
        return tuple(self._seeds)

    def add_seed(self, executor: SeedExec) -> None:
        self._seeds.append(Seed(executor=executor))

    def begin(self) -> tuple[Connection, Transaction]:
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as exc:
            raise TransactionError(f"cannot begin transaction: {exc}") from exc
        try:
            tx = conn.begin()
        except SQLAlchemyError as exc:
            conn.close()
            raise TransactionError(f"cannot begin transaction: {exc}") from exc
        return conn, tx

    def _st(self, template: str) -> sa.TextClause:
        return sa.text(template.format(schema=self.schema, table=SEEDER_TABLE))

    # Setup

    def pre_setup(self) -> None:
        if not self.db_exists():
            self.create_db()

        if not self.seed_table_exists():
            self.create_seeder_table()

    def db_exists(self) -> bool:
        try:
            with self.admin_engine.connect() as conn:
                exists = conn.execute(sa.text(PG_DB_EXISTS_ST), {"db": self.db_name}).scalar()
        except SQLAlchemyError as exc:
            self._log.error("db_exists_check_failed", database=self.db_name, error=str(exc))
            return False
        return bool(exists)

    def seed_table_exists(self) -> bool:
        try:
            with self.engine.connect() as conn:
                exists = conn.execute(
                    sa.text(PG_TABLE_EXISTS_ST), {"schema": self.schema, "table": SEEDER_TABLE}
                ).scalar()
        except SQLAlchemyError as exc:
            self._log.error("seed_table_check_failed", schema=self.schema, error=str(exc))
            return False
        return bool(exists)

    def create_db(self) -> str:
        st = sa.text(PG_CREATE_DB_ST.format(db=self.db_name))
        try:
            with self.admin_engine.connect() as conn:
                conn.execution_options(isolation_level="AUTOCOMMIT").execute(st)
        except SQLAlchemyError as exc:
            raise SetupError(f"cannot create database '{self.db_name}': {exc}") from exc
        self._log.info("database_created", database=self.db_name)
        return self.db_name

    def create_seeder_table(self) -> str:
        conn, tx = self.begin()
        try:
            try:
                conn.execute(self._st(PG_CREATE_SEEDER_ST))
                tx.commit()
            except SQLAlchemyError as exc:
                tx.rollback()
                raise SetupError(f"cannot create table '{self.schema}.{SEEDER_TABLE}': {exc}") from exc
        finally:
            conn.close()
        self._log.info("seed_table_created", schema=self.schema, table=SEEDER_TABLE)
        return SEEDER_TABLE

    def drop_seeder_table(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(self._st(PG_DROP_SEEDER_ST))
        except SQLAlchemyError as exc:
            raise SetupError(f"cannot drop table '{self.schema}.{SEEDER_TABLE}': {exc}") from exc
        self._log.info("seed_table_dropped", schema=self.schema, table=SEEDER_TABLE)

    # Bookkeeping

    def _is_applied(self, conn: Connection, name: str) -> bool:
        row = conn.execute(self._st(PG_SEL_SEEDER_ST), {"name": name[:NAME_MAX]}).first()
        return row is not None

    def _mark_applied(self, conn: Connection, name: str, fx: str) -> None:
        conn.execute(
            self._st(PG_INS_SEEDER_ST),
            {
                "id": uuid.uuid4(),
                "name": name[:NAME_MAX],
                "fx": fx[:NAME_MAX],
                "is_applied": True,
                "created_at": _utcnow(),
            },
        )

    def is_applied(self, name: str) -> bool:
        try:
            with self.engine.connect() as conn:
                return self._is_applied(conn, name)
        except SQLAlchemyError as exc:
            raise SetupError(f"cannot read seed bookkeeping: {exc}") from exc

    def unmark(self, name: str) -> int:
        try:
            with self.engine.begin() as conn:
                res = conn.execute(self._st(PG_DEL_SEEDER_ST), {"name": name[:NAME_MAX]})
        except SQLAlchemyError as exc:
            raise SetupError(f"cannot unmark seed '{name}': {exc}") from exc
        self._log.info("seed_unmarked", seed=name, rows=res.rowcount)
        return res.rowcount

    def applied(self) -> list[AppliedSeed]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(self._st(PG_LIST_SEEDER_ST)).mappings().all()
        except SQLAlchemyError as exc:
            raise SetupError(f"cannot read seed bookkeeping: {exc}") from exc
        return [AppliedSeed(name=r["name"], fx=r["fx"], created_at=r["created_at"]) for r in rows]

    # Run

    def seed(self) -> SeedReport:
        self.pre_setup()

        report = SeedReport()
        for s in self._seeds:
            self._apply(s, report)
        return report

    def _apply(self, s: Seed, report: SeedReport) -> None:
        executor = s.executor
        try:
            fx = executor.get_seed()
        except Exception as exc:
            raise SetupError(f"seed '{s.name}' has no work function: {exc}") from exc
        fn = fx_name(fx)

        conn, tx = self.begin()
        try:
            if self.track_applied:
                try:
                    applied = self._is_applied(conn, s.name)
                except SQLAlchemyError as exc:
                    tx.rollback()
                    raise SetupError(f"cannot read seed bookkeeping: {exc}") from exc
                if applied:
                    tx.rollback()
                    self._log.info("seed_step_skipped", seed=s.name, fx=fn)
                    report.skipped.append(s.name)
                    return

            executor.set_tx(conn)
            try:
                fx()
                if self.track_applied:
                    self._mark_applied(conn, s.name, fn)
            except Exception as exc:
                self._log.error("seed_step_failed", seed=s.name, fx=fn, error=str(exc))
                tx.rollback()
                raise SeedError(fn, exc, seed_name=s.name) from exc

            try:
                tx.commit()
            except SQLAlchemyError as exc:
                self._log.error("seed_commit_failed", seed=s.name, fx=fn, error=str(exc))
                self._rollback_quietly(tx)
                raise CommitError(fn, exc) from exc
        finally:
            executor.set_tx(None)
            conn.close()

        self._log.info("seed_step_executed", seed=s.name, fx=fn)
        report.applied.append(s.name)

    def _rollback_quietly(self, tx: Transaction) -> None:
        try:
            tx.rollback()
        except SQLAlchemyError as exc:
            self._log.warning("seed_rollback_failed", error=str(exc))
