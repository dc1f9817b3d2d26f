from __future__ import annotations

from typing import List

from .engine import ColumnSpec, MigrationStep


def redeemable_roles_step(default_guild_id: str) -> MigrationStep:
    return MigrationStep(
        table_name="redeemable_roles",
        columns=(
            ColumnSpec("id", "INTEGER", "PRIMARY KEY AUTOINCREMENT"),
            ColumnSpec("guild_id", "TEXT", "NOT NULL"),
            ColumnSpec("role_id", "TEXT", "NOT NULL"),
            ColumnSpec("role_name", "TEXT", "NOT NULL"),
            ColumnSpec("role_type", "TEXT", "NOT NULL CHECK(role_type IN ('band', 'team'))"),
            ColumnSpec("description", "TEXT"),
            ColumnSpec("is_active", "BOOLEAN", "DEFAULT 1"),
            ColumnSpec("created_at", "DATETIME", "DEFAULT CURRENT_TIMESTAMP"),
        ),
        backfill={"guild_id": default_guild_id},
        unique_together=(("guild_id", "role_id"),),
    )


def user_roles_step(default_guild_id: str) -> MigrationStep:
    return MigrationStep(
        table_name="user_roles",
        columns=(
            ColumnSpec("id", "INTEGER", "PRIMARY KEY AUTOINCREMENT"),
            ColumnSpec("guild_id", "TEXT", "NOT NULL"),
            ColumnSpec("user_id", "TEXT", "NOT NULL"),
            ColumnSpec("role_id", "TEXT", "NOT NULL"),
            ColumnSpec("redeemed_at", "DATETIME", "DEFAULT CURRENT_TIMESTAMP"),
        ),
        backfill={"guild_id": default_guild_id},
        unique_together=(("guild_id", "user_id", "role_id"),),
        table_constraints=("FOREIGN KEY (user_id) REFERENCES users(user_id)",),
    )


def guild_scope_steps(default_guild_id: str) -> List[MigrationStep]:
    """Steps that move role tables from global to per-guild scope (SQLite DDL)."""
    return [
        redeemable_roles_step(default_guild_id),
        user_roles_step(default_guild_id),
    ]
