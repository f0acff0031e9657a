"""Pydantic Settings with YAML file support.

Priority (highest first): env vars > .env > config.yaml > config.default.yaml
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, YamlConfigSettingsSource


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------

class DocstoreConfig(BaseModel):
    path: str = "./data/docstore.db"


class BlobstoreConfig(BaseModel):
    path: str = "./data/blobs"


class BotConfig(BaseModel):
    """Keywords and media rules for the conversation router."""

    greetings: list[str] = ["hello"]
    command_prefix: str = "send "
    accepted_mime_type: str = "application/pdf"
    fallback_file_name: str = "file.pdf"


class IngestConfig(BaseModel):
    default_file_name: str = "lecture"
    file_extension: str = ".pdf"


class ConsoleConfig(BaseModel):
    """Local console transport used by ``lecturebot chat``."""

    sender_id: str = "console"
    downloads_path: str = "./data/downloads"


class MessagesConfig(BaseModel):
    """Reply texts sent back to senders."""

    welcome: str = (
        "Hey! 👋 Welcome to *LectureBot* 📚\n\n"
        "Send something like *Send MAT101* to receive a note."
    )
    upload_received: str = (
        "📥 PDF received. Now please send the *course code or title* for this note."
    )
    description_saved: str = "✅ File saved under *{description}*."
    duplicate: str = "⚠️ This file has already been uploaded."
    duplicate_check_failed: str = "❌ Error checking for duplicates. Please try again."
    upload_failed: str = "❌ Failed to upload the PDF. Please try again."
    no_files: str = "⚠️ No files available yet."
    no_match: str = "😔 No matching materials found for your request."
    search_failed: str = "❌ Error fetching files. Please try again."
    retrieval_failed: str = "❌ Error retrieving the file. Please try again."
    selection_header: str = "📚 Multiple matches found:"
    selection_item: str = "{number}. {name} ({description})"
    selection_footer: str = "Please reply with the number of the file you want to receive."
    invalid_selection: str = "⚠️ Invalid number. Please choose a valid option from the list."
    no_description: str = "No description"


# ---------------------------------------------------------------------------
# Main settings
# ---------------------------------------------------------------------------

def _root() -> Path:
    return Path(os.environ.get("LECTUREBOT_ROOT", "."))


def _yaml_files() -> list[Path]:
    """Return YAML config file paths relative to the project root."""
    root = _root()
    files = [root / "config.default.yaml"]
    user_cfg = root / "config.yaml"
    if user_cfg.exists():
        files.append(user_cfg)
    return files


class Settings(BaseSettings):
    """Application settings loaded from YAML + env vars."""

    model_config = SettingsConfigDict(
        env_prefix="LECTUREBOT_",
        env_nested_delimiter="__",
    )

    docstore: DocstoreConfig = DocstoreConfig()
    blobstore: BlobstoreConfig = BlobstoreConfig()
    bot: BotConfig = BotConfig()
    ingest: IngestConfig = IngestConfig()
    console: ConsoleConfig = ConsoleConfig()
    messages: MessagesConfig = MessagesConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=_yaml_files(),
            ),
        )


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings(**kwargs: Any) -> Settings:
    """Lazy singleton for settings. Call reset_settings() to reload."""
    load_dotenv(_root() / ".env", override=False)
    return Settings(**kwargs)


def reset_settings() -> None:
    """Clear the settings cache so the next get_settings() reloads from disk."""
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Config persistence
# ---------------------------------------------------------------------------

def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def save_user_config(overrides: dict) -> Path:
    """Write user overrides to config.yaml and reset the settings cache.

    Keys already present in config.yaml but missing from *overrides* are
    kept.  The settings singleton is cleared afterwards so the next
    ``get_settings()`` call sees the new values.
    """
    import yaml

    config_path = _root() / "config.yaml"

    existing: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            existing = yaml.safe_load(f) or {}

    _deep_merge(existing, overrides)

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    reset_settings()
    return config_path
