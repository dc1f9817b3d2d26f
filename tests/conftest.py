from __future__ import annotations

import types
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from arcade_bot.config import Settings, load_settings
from arcade_bot.database import create_db_engine
from arcade_bot.errors import RegistrationError


class FakeRegistrationApi:
    """In-memory registration API: one command list per scope."""

    def __init__(self, remote: Optional[Dict[Any, List[dict]]] = None, fail: Iterable[Any] = ()) -> None:
        self.remote: Dict[Any, List[dict]] = {k: list(v) for k, v in (remote or {}).items()}
        self.fail = set(fail)
        self.calls: List[Tuple[str, Any]] = []

    @property
    def mutating_calls(self) -> List[Tuple[str, Any]]:
        return [c for c in self.calls if c[0] == "replace_all"]

    async def replace_all(self, scope, payload):
        self.calls.append(("replace_all", scope))
        if scope in self.fail:
            raise RegistrationError(f"boom for {scope}", status_code=500)
        self.remote[scope] = [dict(p, id=str(i + 1)) for i, p in enumerate(payload)]
        return list(self.remote[scope])

    async def fetch_all(self, scope):
        self.calls.append(("fetch_all", scope))
        if scope in self.fail:
            raise RegistrationError(f"boom for {scope}", status_code=500)
        return list(self.remote.get(scope, []))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


async def _noop(*args, **kwargs) -> None:
    return None


def make_module(module_name: str, **attrs: Any) -> types.ModuleType:
    mod = types.ModuleType(module_name)
    for k, v in attrs.items():
        setattr(mod, k, v)
    return mod


def make_command(module_name: str, name: str, description: str = "A command", **attrs: Any) -> types.ModuleType:
    attrs.setdefault("execute", _noop)
    return make_module(module_name, name=name, description=description, **attrs)


def make_settings(**overrides: Any) -> Settings:
    values = {"DISCORD_TOKEN": "token", "CLIENT_ID": "123456789012345678", "GUILD_IDS": "", "GUILD_ID": ""}
    values.update(overrides)
    return load_settings(_env_file=None, **values)


@pytest.fixture
def fake_api() -> FakeRegistrationApi:
    return FakeRegistrationApi()


@pytest.fixture
def db_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'bot.db'}", foreign_keys=False)
    yield engine
    engine.dispose()


@pytest.fixture
def script_env(tmp_path, monkeypatch):
    """Environment for running script main() functions against a temp database."""
    monkeypatch.chdir(tmp_path)
    for key in ("GUILD_ID", "GUILD_IDS", "DATABASE_URL", "DEFAULT_GUILD_ID", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", "token")
    monkeypatch.setenv("CLIENT_ID", "123456789012345678")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "bot.db"))
    return tmp_path
