"""
Online schema rebuilds.

SQLite cannot add a NOT NULL column with a computed backfill or a new
composite UNIQUE constraint in place, so tables are rebuilt through a
shadow copy inside one transaction.
"""

from .engine import (
    CREATED,
    FAILED,
    REBUILT,
    SKIPPED,
    ColumnSpec,
    MigrationEngine,
    MigrationResult,
    MigrationStep,
    SqlExpr,
    backfill_blank,
    count_blank,
    get_columns,
)
from .steps import guild_scope_steps

__all__ = [
    "CREATED",
    "FAILED",
    "REBUILT",
    "SKIPPED",
    "ColumnSpec",
    "MigrationEngine",
    "MigrationResult",
    "MigrationStep",
    "SqlExpr",
    "backfill_blank",
    "count_blank",
    "get_columns",
    "guild_scope_steps",
]
