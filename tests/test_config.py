from __future__ import annotations

from pathlib import Path

import pytest

import paglop
from paglop.config import Config
from paglop.exceptions import ConfigDecodeError, ConfigError, ConfigReadError
from paglop.markov import ChainSettings
from paglop.protocol.irc import DEFAULT_TLS_PORT, configure

CONFIG = """
[IRC]
Nickname = "paglop"
Server = "irc.example.net:6668"
Channels = ["#one", "#two", "#one"]
Realname = "Paglop v$botversion"

[Markov]
LeaderLength = 3
AllowBareAnchor = true
"""


@pytest.fixture
def config(tmp_path) -> Config:
    path = tmp_path / "paglop.toml"
    path.write_text(CONFIG)
    cfg = Config(path)
    cfg.load()
    return cfg


def test_dotted_access(config):
    assert config["IRC.Nickname"] == "paglop"
    assert config["IRC"]["Nickname"] == "paglop"
    assert config.get("Markov.LeaderLength") == 3
    assert config.get("Markov.Missing", 10) == 10
    assert config.get("Nope.Missing") is None
    assert "IRC.Server" in config
    assert "IRC.Password" not in config


def test_template_substitution(config):
    assert config["IRC.Realname"] == f"Paglop v{paglop.__version__}"


def test_set(config):
    config["Markov.LeaderLength"] = 4
    config["Core"] = {}
    config["Core.DataDir"] = "/tmp/corpus"
    assert config["Markov.LeaderLength"] == 4
    assert config["Core.DataDir"] == "/tmp/corpus"


def test_require(config):
    config.require("IRC.Nickname", "IRC.Server")
    with pytest.raises(ConfigError) as excinfo:
        config.require("IRC.Password")
    assert excinfo.value.config_name == "paglop"


def test_load_errors(tmp_path):
    with pytest.raises(ConfigReadError):
        Config(tmp_path / "missing.toml").load()
    bad = tmp_path / "bad.toml"
    bad.write_text("[IRC\nNickname = ")
    with pytest.raises(ConfigDecodeError):
        Config(bad).load()


def test_chain_settings_from_config(config):
    settings = ChainSettings.from_config(config["Markov"])
    assert settings.leader_len == 3
    assert settings.allow_bare_anchor is True
    assert settings.early_stop_threshold == 10


def test_irc_settings(config):
    settings = configure(config)
    assert settings.nickname == "paglop"
    assert settings.address == "irc.example.net:6668"
    assert settings.channels == ["#one", "#two"]
    assert settings.username == "paglop"


def test_irc_settings_default_port(config):
    config["IRC.Server"] = "irc.example.net"
    config["IRC.UseTLS"] = True
    assert configure(config).port == DEFAULT_TLS_PORT
    config["IRC.Server"] = "irc.example.net:abc"
    with pytest.raises(ConfigError):
        configure(config)


def test_irc_settings_required(config):
    config["IRC.Nickname"] = ""
    with pytest.raises(ConfigError):
        configure(config)


def test_example_config():
    cfg = Config(Path(__file__).parent.parent / "paglop.example.toml")
    cfg.load()
    settings = configure(cfg)
    assert settings.alt_nicks == ["paglop_", "paglop__"]
    assert settings.password is None
    assert settings.port == DEFAULT_TLS_PORT and settings.tls
    assert cfg["IRC.ConnectTimeout"] == 30
    assert ChainSettings.from_config(cfg["Markov"]) == ChainSettings()
