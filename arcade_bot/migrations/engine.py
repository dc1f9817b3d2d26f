from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import MigrationError

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
REBUILT = "rebuilt"
CREATED = "created"
FAILED = "failed"


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type_sql: str
    constraints_sql: str = ""

    def ddl(self, quote) -> str:
        return " ".join(p for p in (quote(self.name), self.type_sql, self.constraints_sql) if p)


@dataclass(frozen=True)
class SqlExpr:
    """Marks a backfill as a SQL expression instead of a bound value."""

    sql: str


@dataclass(frozen=True)
class MigrationStep:
    """
    Target shape of one table.

    columns is the full desired column list (existing + new), in order.
    backfill maps newly introduced columns to the value (or SqlExpr) that
    pre-existing rows receive. Columns without a backfill fall back to their
    DDL default.
    """

    table_name: str
    columns: Tuple[ColumnSpec, ...]
    backfill: Mapping[str, Any] = field(default_factory=dict)
    unique_together: Tuple[Tuple[str, ...], ...] = ()
    table_constraints: Tuple[str, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def shadow_name(self) -> str:
        return f"{self.table_name}_new"


@dataclass
class MigrationResult:
    table: str
    action: str
    added_columns: List[str] = field(default_factory=list)
    copied_rows: int = 0
    ignored_rows: int = 0
    recovered: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.action != FAILED


def _dialect(conn: Connection) -> str:
    return conn.dialect.name.lower()


def _sqlite_columns(conn: Connection, table: str) -> List[str]:
    rows = conn.execute(text(f"PRAGMA table_info({conn.dialect.identifier_preparer.quote(table)})")).all()
    # PRAGMA table_info returns: cid, name, type, notnull, dflt_value, pk
    return [str(r[1]) for r in rows]


def _postgres_columns(conn: Connection, table: str) -> List[str]:
    rows = conn.execute(
        text(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = current_schema() AND table_name = :t
            ORDER BY ordinal_position
            """
        ),
        {"t": table},
    ).all()
    return [str(r[0]) for r in rows]


def get_columns(conn: Connection, table: str) -> List[str]:
    """Current column names of a table, [] when the table does not exist."""
    d = _dialect(conn)
    if d == "sqlite":
        return _sqlite_columns(conn, table)
    if d in ("postgresql", "postgres"):
        return _postgres_columns(conn, table)
    insp = inspect(conn)
    if not insp.has_table(table):
        return []
    return [str(c["name"]) for c in insp.get_columns(table)]


class MigrationEngine:
    """
    Brings tables to a desired column set by rebuilding them.

    Per table: inspect -> skip | (recover) -> create shadow -> backfill copy
    -> drop original + rename shadow. The rebuild runs in one transaction,
    so a failure leaves the original table untouched.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def inspect_columns(self, table: str) -> List[str]:
        with self._engine.connect() as conn:
            return get_columns(conn, table)

    def _table_exists(self, conn: Connection, table: str) -> bool:
        return inspect(conn).has_table(table)

    def _recover(self, step: MigrationStep) -> bool:
        """
        Resolve leftovers of an interrupted non-transactional rebuild.

        - shadow + original present: the swap never happened, drop the shadow
        - shadow present, original missing: the drop happened, finish the rename
        """
        with self._engine.begin() as conn:
            q = conn.dialect.identifier_preparer.quote
            if not self._table_exists(conn, step.shadow_name):
                return False

            if self._table_exists(conn, step.table_name):
                logger.warning(
                    "migration %s: stale shadow table %s found; dropping it and restarting",
                    step.table_name,
                    step.shadow_name,
                )
                conn.execute(text(f"DROP TABLE {q(step.shadow_name)}"))
            else:
                logger.warning(
                    "migration %s: original table missing but shadow %s present; resuming swap",
                    step.table_name,
                    step.shadow_name,
                )
                conn.execute(text(f"ALTER TABLE {q(step.shadow_name)} RENAME TO {q(step.table_name)}"))
        return True

    def _create_sql(self, conn: Connection, step: MigrationStep, name: str) -> str:
        q = conn.dialect.identifier_preparer.quote
        parts = [c.ddl(q) for c in step.columns]
        for cols in step.unique_together:
            parts.append(f"UNIQUE({', '.join(q(c) for c in cols)})")
        parts.extend(step.table_constraints)
        body = ",\n  ".join(parts)
        return f"CREATE TABLE {q(name)} (\n  {body}\n)"

    def _copy_sql(
        self, conn: Connection, step: MigrationStep, current: Sequence[str]
    ) -> Tuple[str, Dict[str, Any]]:
        q = conn.dialect.identifier_preparer.quote
        targets: List[str] = []
        sources: List[str] = []
        params: Dict[str, Any] = {}

        for name in step.column_names:
            if name in current:
                targets.append(q(name))
                sources.append(q(name))
            elif name in step.backfill:
                value = step.backfill[name]
                targets.append(q(name))
                if isinstance(value, SqlExpr):
                    sources.append(value.sql)
                else:
                    key = f"backfill_{len(params)}"
                    params[key] = value
                    sources.append(f":{key}")

        cols = ", ".join(targets)
        select = f"SELECT {', '.join(sources)} FROM {q(step.table_name)}"
        if _dialect(conn) in ("postgresql", "postgres"):
            return f"INSERT INTO {q(step.shadow_name)} ({cols}) {select} ON CONFLICT DO NOTHING", params
        return f"INSERT OR IGNORE INTO {q(step.shadow_name)} ({cols}) {select}", params

    def apply(self, step: MigrationStep) -> MigrationResult:
        """
        Apply one step. Raises MigrationError on failure (transaction rolled back).
        A step whose columns already exist is a logged no-op.
        """
        table = step.table_name
        try:
            recovered = self._recover(step)
        except SQLAlchemyError as exc:
            raise MigrationError(table, "recover", str(exc)) from exc

        current = self.inspect_columns(table)
        desired = step.column_names

        if current and set(desired) <= set(current):
            logger.info("migration %s: schema already up to date (%s); nothing to do", table, ", ".join(desired))
            return MigrationResult(table=table, action=SKIPPED, recovered=recovered)

        dropped = [c for c in current if c not in desired]
        if dropped:
            raise MigrationError(table, "plan", f"desired schema would drop columns: {', '.join(dropped)}")

        added = [c for c in desired if c not in current]
        result = MigrationResult(table=table, action=REBUILT if current else CREATED, added_columns=added, recovered=recovered)

        stage = "create shadow"
        try:
            with self._engine.begin() as conn:
                q = conn.dialect.identifier_preparer.quote
                conn.execute(text(self._create_sql(conn, step, step.shadow_name)))
                logger.info("migration %s: created shadow table %s", table, step.shadow_name)

                stage = "backfill copy"
                if current:
                    before = int(conn.execute(text(f"SELECT COUNT(*) FROM {q(table)}")).scalar_one())
                    sql, params = self._copy_sql(conn, step, current)
                    copied = conn.execute(text(sql), params).rowcount
                    result.copied_rows = int(copied if copied is not None and copied >= 0 else before)
                    result.ignored_rows = max(0, before - result.copied_rows)
                    if result.ignored_rows:
                        logger.warning(
                            "migration %s: %s row(s) conflicted with the new uniqueness constraints and were not copied",
                            table,
                            result.ignored_rows,
                        )
                else:
                    logger.info("migration %s: source table absent; skipping copy (fresh install)", table)

                stage = "swap"
                conn.execute(text(f"DROP TABLE IF EXISTS {q(table)}"))
                conn.execute(text(f"ALTER TABLE {q(step.shadow_name)} RENAME TO {q(table)}"))
        except SQLAlchemyError as exc:
            raise MigrationError(table, stage, str(exc)) from exc

        logger.info(
            "migration %s: %s (added=%s, copied_rows=%s)",
            table,
            result.action,
            ", ".join(added) or "-",
            result.copied_rows,
        )
        return result

    def apply_all(self, steps: Sequence[MigrationStep]) -> List[MigrationResult]:
        """
        Apply steps independently: one table failing does not stop the others.
        Callers must treat any failed result as fatal.
        """
        results: List[MigrationResult] = []
        for step in steps:
            try:
                results.append(self.apply(step))
            except MigrationError as exc:
                logger.error("migration %s failed: %s", step.table_name, exc)
                results.append(MigrationResult(table=step.table_name, action=FAILED, error=str(exc)))
        return results


def backfill_blank(engine: Engine, table: str, column: str, value: Any) -> int:
    """
    Fill NULL or empty values of an existing column. Returns rows updated.
    """
    with engine.begin() as conn:
        q = conn.dialect.identifier_preparer.quote
        if column not in get_columns(conn, table):
            raise MigrationError(table, "backfill", f"column {column} does not exist; run add_guild_columns first")
        r = conn.execute(
            text(f"UPDATE {q(table)} SET {q(column)} = :v WHERE {q(column)} IS NULL OR {q(column)} = ''"),
            {"v": value},
        )
        updated = int(r.rowcount or 0)

    logger.info("backfill %s.%s: %s row(s) updated", table, column, updated)
    return updated


def count_blank(engine: Engine, table: str, column: str) -> int:
    """Rows whose column is NULL or empty (what backfill_blank would touch)."""
    with engine.connect() as conn:
        q = conn.dialect.identifier_preparer.quote
        if column not in get_columns(conn, table):
            raise MigrationError(table, "inspect", f"column {column} does not exist; run add_guild_columns first")
        return int(
            conn.execute(
                text(f"SELECT COUNT(*) FROM {q(table)} WHERE {q(column)} IS NULL OR {q(column)} = ''")
            ).scalar_one()
        )
