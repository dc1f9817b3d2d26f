from __future__ import annotations

from types import SimpleNamespace

import discord
import pytest

from arcade_bot.discord.commands import help as help_command
from arcade_bot.discord.listeners import interaction as interaction_listener
from arcade_bot.discord.listeners.interaction import ERROR_MESSAGE, Cooldowns
from arcade_bot.discord.registry import DescriptorRegistry

from conftest import make_command


class FakeResponse:
    def __init__(self) -> None:
        self.sent = []

    async def send_message(self, content, ephemeral=False):
        self.sent.append((content, ephemeral))

    def is_done(self) -> bool:
        return bool(self.sent)


class FakeFollowup:
    def __init__(self) -> None:
        self.sent = []

    async def send(self, content, ephemeral=False):
        self.sent.append((content, ephemeral))


def _interaction(name, user_id=1, options=None, client=None):
    data = {"name": name}
    if options:
        data["options"] = options
    return SimpleNamespace(
        type=discord.InteractionType.application_command,
        data=data,
        user=SimpleNamespace(id=user_id),
        response=FakeResponse(),
        followup=FakeFollowup(),
        client=client,
    )


@pytest.fixture(autouse=True)
def fresh_cooldowns(monkeypatch):
    monkeypatch.setattr(interaction_listener, "cooldowns", Cooldowns())


def _client(*commands):
    return SimpleNamespace(registry=DescriptorRegistry(list(commands)).load())


@pytest.mark.asyncio
async def test_routes_to_executor_and_enforces_cooldown():
    calls = []

    async def execute(interaction):
        calls.append(interaction.user.id)

    client = _client(make_command("cmds.roll", "roll", cooldown=30, execute=execute))

    await interaction_listener.execute(client, _interaction("roll", user_id=7))
    blocked = _interaction("roll", user_id=7)
    await interaction_listener.execute(client, blocked)
    await interaction_listener.execute(client, _interaction("roll", user_id=8))

    assert calls == [7, 8]
    assert "cooldown" in blocked.response.sent[0][0]
    assert blocked.response.sent[0][1] is True


@pytest.mark.asyncio
async def test_executor_failure_replies_with_error():
    async def execute(interaction):
        raise RuntimeError("kaboom")

    async def execute_after_reply(interaction):
        await interaction.response.send_message("partial")
        raise RuntimeError("kaboom")

    client = _client(
        make_command("cmds.a", "a", execute=execute),
        make_command("cmds.b", "b", execute=execute_after_reply),
    )

    first = _interaction("a")
    await interaction_listener.execute(client, first)
    assert first.response.sent == [(ERROR_MESSAGE, True)]

    second = _interaction("b")
    await interaction_listener.execute(client, second)
    assert second.followup.sent == [(ERROR_MESSAGE, True)]


@pytest.mark.asyncio
async def test_unknown_command_and_other_interactions_ignored():
    client = _client()
    unknown = _interaction("ghost")
    await interaction_listener.execute(client, unknown)
    assert unknown.response.sent == []

    component = _interaction("ghost")
    component.type = discord.InteractionType.component
    await interaction_listener.execute(client, component)
    assert component.response.sent == []


def test_cooldown_windows():
    now = [0.0]
    cd = Cooldowns(clock=lambda: now[0])
    assert cd.hit("ping", 1, 5) == 0
    assert cd.hit("ping", 1, 5) == 5
    now[0] = 4.0
    assert cd.hit("ping", 1, 5) == 1
    assert cd.hit("help", 1, 5) == 0
    now[0] = 5.0
    assert cd.hit("ping", 1, 5) == 0


@pytest.mark.asyncio
async def test_help_lists_catalog_and_details():
    registry = DescriptorRegistry.default().load()
    client = SimpleNamespace(registry=registry)

    listing = _interaction("help", client=client)
    await help_command.execute(listing)
    text = listing.response.sent[0][0]
    assert "/ping" in text and "/help" in text

    detail = _interaction("help", options=[{"name": "command", "value": "/help"}], client=client)
    await help_command.execute(detail)
    assert "**/help**" in detail.response.sent[0][0]
    assert "`command` (optional)" in detail.response.sent[0][0]

    missing = _interaction("help", options=[{"name": "command", "value": "nope"}], client=client)
    await help_command.execute(missing)
    assert "No command named" in missing.response.sent[0][0]
