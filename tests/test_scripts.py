from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import text

from arcade_bot.database import create_db_engine
from arcade_bot.discord.sync import GLOBAL, GuildScope
from arcade_bot.scripts import (
    add_guild_columns,
    clear_commands,
    init_database,
    migrate_roles,
    register_commands,
    reset_database,
)

from conftest import FakeRegistrationApi


@pytest.fixture
def patched_api(monkeypatch):
    fake = FakeRegistrationApi(remote={GLOBAL: [{"name": "old", "description": "stale"}]})
    stub = SimpleNamespace(from_settings=lambda settings: fake)
    monkeypatch.setattr(register_commands, "DiscordRegistrationApi", stub)
    monkeypatch.setattr(clear_commands, "DiscordRegistrationApi", stub)
    return fake


def _db(script_env):
    return create_db_engine(f"sqlite:///{script_env / 'bot.db'}")


def test_clear_global_without_yes_makes_no_calls(script_env, patched_api):
    assert clear_commands.main(["--global"]) == 1
    assert patched_api.calls == []
    assert patched_api.remote[GLOBAL]


def test_clear_global_dry_run_and_confirmed(script_env, patched_api):
    assert clear_commands.main(["--global", "--dry-run"]) == 0
    assert patched_api.mutating_calls == []

    assert clear_commands.main(["--global", "--yes"]) == 0
    assert patched_api.remote[GLOBAL] == []


def test_register_without_any_guild_fails(script_env, patched_api):
    assert register_commands.main([]) == 1
    assert patched_api.calls == []


def test_register_rejects_global_with_guild(script_env, patched_api):
    assert register_commands.main(["--global", "--guild=111"]) == 1
    assert patched_api.calls == []


def test_register_to_guild_replaces_remote_set(script_env, patched_api):
    assert register_commands.main(["--guild=111"]) == 0
    names = sorted(c["name"] for c in patched_api.remote[GuildScope("111")])
    assert names == ["help", "ping"]


def test_register_reads_guild_ids_from_environment(script_env, patched_api, monkeypatch):
    monkeypatch.setenv("GUILD_IDS", "111,222")
    assert register_commands.main([]) == 0
    assert {s for _, s in patched_api.mutating_calls} == {GuildScope("111"), GuildScope("222")}


def test_register_requires_credentials(script_env, patched_api, monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "")
    assert register_commands.main(["--guild=111"]) == 1
    assert patched_api.calls == []


def test_init_database_creates_tables(script_env):
    assert init_database.main([]) == 0
    engine = _db(script_env)
    with engine.connect() as conn:
        names = {r[0] for r in conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))}
    engine.dispose()
    assert {"users", "redeemable_roles", "user_roles"} <= names


def test_add_guild_columns_is_idempotent(script_env, capsys):
    engine = _db(script_env)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE redeemable_roles (id INTEGER PRIMARY KEY AUTOINCREMENT, role_id TEXT NOT NULL UNIQUE, "
            "role_name TEXT NOT NULL, role_type TEXT NOT NULL, description TEXT, is_active BOOLEAN DEFAULT 1, "
            "created_at DATETIME DEFAULT CURRENT_TIMESTAMP)"
        ))
        conn.execute(text("INSERT INTO redeemable_roles (role_id, role_name, role_type) VALUES ('r1', 'Drums', 'band')"))
    engine.dispose()

    assert add_guild_columns.main(["--default-guild", "999"]) == 0
    first = capsys.readouterr().out
    assert "redeemable_roles: rebuilt" in first
    assert "user_roles: created" in first

    assert add_guild_columns.main(["--default-guild", "999"]) == 0
    second = capsys.readouterr().out
    assert "redeemable_roles: skipped" in second
    assert "user_roles: skipped" in second

    engine = _db(script_env)
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT guild_id, role_id FROM redeemable_roles")).all()
    engine.dispose()
    assert [tuple(r) for r in rows] == [("999", "r1")]


def _insert_role(script_env, guild_id, role_id):
    engine = _db(script_env)
    with engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO redeemable_roles (guild_id, role_id, role_name, role_type, is_active, created_at) "
                "VALUES (:g, :r, 'Drums', 'band', 1, CURRENT_TIMESTAMP)"
            ),
            {"g": guild_id, "r": role_id},
        )
    engine.dispose()


def test_migrate_roles_without_blank_rows_needs_no_guild(script_env):
    assert migrate_roles.main([]) == 0

    assert init_database.main([]) == 0
    _insert_role(script_env, "555", "r1")
    assert migrate_roles.main([]) == 0


def test_migrate_roles_requires_default_guild_for_blank_rows(script_env):
    assert init_database.main([]) == 0
    _insert_role(script_env, "", "r1")
    assert migrate_roles.main([]) == 1


def test_migrate_roles_fills_blank_guild_ids(script_env, monkeypatch):
    assert init_database.main([]) == 0
    engine = _db(script_env)
    with engine.begin() as conn:
        conn.execute(text(
            "INSERT INTO redeemable_roles (guild_id, role_id, role_name, role_type, is_active, created_at) "
            "VALUES ('', 'r1', 'Drums', 'band', 1, CURRENT_TIMESTAMP), "
            "('555', 'r2', 'Red', 'team', 1, CURRENT_TIMESTAMP)"
        ))
    engine.dispose()

    monkeypatch.setenv("DEFAULT_GUILD_ID", "42")
    assert migrate_roles.main([]) == 0

    engine = _db(script_env)
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT role_id, guild_id FROM redeemable_roles ORDER BY role_id")).all()
    engine.dispose()
    assert [tuple(r) for r in rows] == [("r1", "42"), ("r2", "555")]


def _table_names(script_env):
    engine = _db(script_env)
    with engine.connect() as conn:
        names = {r[0] for r in conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))}
    engine.dispose()
    return names


def test_reset_database_refused_without_yes(script_env):
    assert init_database.main([]) == 0
    _insert_role(script_env, "555", "r1")

    assert reset_database.main([]) == 1

    engine = _db(script_env)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM redeemable_roles")).scalar_one() == 1
    engine.dispose()


def test_reset_database_drops_and_recreates(script_env):
    assert init_database.main([]) == 0
    _insert_role(script_env, "555", "r1")
    engine = _db(script_env)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE leftovers (id INTEGER PRIMARY KEY)"))
    engine.dispose()

    assert reset_database.main(["--yes"]) == 0

    names = _table_names(script_env)
    assert "leftovers" not in names
    assert {"users", "redeemable_roles", "user_roles"} <= names
    engine = _db(script_env)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM redeemable_roles")).scalar_one() == 0
    engine.dispose()
