from __future__ import annotations

import pytest

from arcade_bot.config import split_csv
from arcade_bot.errors import ConfigError

from conftest import make_settings


def test_missing_token_is_fatal():
    settings = make_settings(DISCORD_TOKEN="")
    with pytest.raises(ConfigError, match="DISCORD_TOKEN"):
        settings.validate_required()


def test_missing_client_id_is_fatal():
    settings = make_settings(CLIENT_ID="  ")
    with pytest.raises(ConfigError, match="CLIENT_ID"):
        settings.validate_required()


def test_valid_settings_pass():
    make_settings(GUILD_IDS="111,222").validate_required()


def test_guild_ids_merge_and_dedupe():
    settings = make_settings(GUILD_IDS="111, 222,,111", GUILD_ID="333")
    assert settings.guild_ids == ["111", "222", "333"]


def test_invalid_guild_id_rejected():
    with pytest.raises(ConfigError, match="abc"):
        make_settings(GUILD_IDS="111,abc").validate_required()


def test_settings_are_immutable():
    settings = make_settings()
    with pytest.raises(Exception):
        settings.port = 1  # type: ignore[misc]


def test_bad_port_type_is_config_error():
    with pytest.raises(ConfigError):
        make_settings(PORT="not-a-port")


def test_resolved_database_url_from_path(tmp_path):
    assert make_settings(DATABASE_PATH="./data/bot.db").resolved_database_url == "sqlite:///./data/bot.db"
    assert make_settings(DATABASE_PATH="data/bot.db").resolved_database_url == "sqlite:///./data/bot.db"
    assert make_settings(DATABASE_PATH="/var/lib/bot.db").resolved_database_url == "sqlite:////var/lib/bot.db"
    assert make_settings(DATABASE_URL="postgresql://db/bot").resolved_database_url == "postgresql://db/bot"


def test_split_csv():
    assert split_csv(" a, ,b ,") == ["a", "b"]
    assert split_csv("") == []
