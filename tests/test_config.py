"""Tests for lecturebot.config."""

from __future__ import annotations

import shutil
from pathlib import Path

import yaml

from lecturebot.config import (
    BotConfig,
    MessagesConfig,
    _deep_merge,
    get_settings,
    reset_settings,
    save_user_config,
)


def test_settings_loads_default_yaml():
    """config.default.yaml should load into Settings without error."""
    settings = get_settings()
    assert settings.bot.command_prefix == "send "
    assert settings.bot.accepted_mime_type == "application/pdf"
    assert settings.bot.greetings == ["hello"]


def test_env_vars_point_stores_at_tmp(tmp_path):
    settings = get_settings()
    assert settings.docstore.path == str(tmp_path / "docstore.db")
    assert settings.blobstore.path == str(tmp_path / "blobs")


def test_env_var_override_nested(monkeypatch):
    monkeypatch.setenv("LECTUREBOT_BOT__COMMAND_PREFIX", "get ")
    reset_settings()
    assert get_settings().bot.command_prefix == "get "


def test_bot_config_defaults():
    cfg = BotConfig()
    assert cfg.fallback_file_name == "file.pdf"
    assert cfg.command_prefix == "send "


def test_messages_have_placeholders():
    cfg = MessagesConfig()
    assert "{description}" in cfg.description_saved
    assert "{number}" in cfg.selection_item
    assert "{name}" in cfg.selection_item


def test_deep_merge_nested():
    base = {"x": {"a": 1, "b": 2}, "y": 10}
    override = {"x": {"b": 99}, "z": 42}
    result = _deep_merge(base, override)
    assert result == {"x": {"a": 1, "b": 99}, "y": 10, "z": 42}


def _use_tmp_root(tmp_path, monkeypatch):
    monkeypatch.setenv("LECTUREBOT_ROOT", str(tmp_path))
    src = Path(__file__).parent.parent / "config.default.yaml"
    shutil.copy(src, tmp_path / "config.default.yaml")
    reset_settings()


def test_save_user_config(tmp_path, monkeypatch):
    """save_user_config should write config.yaml and reset the cache."""
    _use_tmp_root(tmp_path, monkeypatch)

    path = save_user_config({"bot": {"command_prefix": "fetch "}})
    assert path.exists()

    with open(path) as f:
        data = yaml.safe_load(f)
    assert data["bot"]["command_prefix"] == "fetch "

    settings = get_settings()
    assert settings.bot.command_prefix == "fetch "
    # Keys not overridden still come from config.default.yaml
    assert settings.bot.accepted_mime_type == "application/pdf"


def test_save_user_config_merges(tmp_path, monkeypatch):
    """Successive calls should merge, not overwrite."""
    _use_tmp_root(tmp_path, monkeypatch)

    save_user_config({"bot": {"command_prefix": "fetch "}})
    save_user_config({"ingest": {"default_file_name": "notes"}})

    with open(tmp_path / "config.yaml") as f:
        data = yaml.safe_load(f)
    assert data["bot"]["command_prefix"] == "fetch "
    assert data["ingest"]["default_file_name"] == "notes"
