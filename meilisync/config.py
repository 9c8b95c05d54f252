import logging
import os
import sys
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from meilisync.domain.index.model.value import IndexEntry, normalize_locale, normalize_locales


# =============================================================================
# Sections
# =============================================================================


class SearchConfig(BaseModel):
    """Search engine connection and upload limits."""

    host: str = "http://localhost:7700"
    api_key: str | None = None
    prefix: str = ""  # prepended once to every raw index name
    timeout: float = 30.0
    max_payload_bytes: int = 10_000_000  # per NDJSON request

    @field_validator("max_payload_bytes")
    @classmethod
    def _positive_payload(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_payload_bytes must be >= 1")
        return v


class LocaleConfig(BaseModel):
    """Locale policy inputs."""

    multilingual: bool = False  # global opt-in; per-index targets also opt in
    default_locale: str = "en"
    enabled_locales: Annotated[list[str], NoDecode] = []

    @field_validator("default_locale", mode="before")
    @classmethod
    def _norm_default(cls, v: Any) -> str:
        return normalize_locale(v) or "en"

    @field_validator("enabled_locales", mode="before")
    @classmethod
    def _split_enabled(cls, v: Any) -> list[str]:
        # Accept "en|es" or "en,es" as well as a list
        if isinstance(v, str):
            v = v.split("|") if "|" in v else v.split(",")
        return normalize_locales(v)


class IndexingConfig(BaseModel):
    """Producer, worker and task-polling defaults."""

    batch_size: int = 1000
    transport: Literal["sync", "queue"] = "sync"
    poll_interval_ms: int = 250
    max_poll_attempts: int = 120
    workers: int = 1
    max_retries: int = 3
    spool: bool = False  # unit-of-work index ops go to the ids spool
    spool_dir: Path = Path("~/.local/share/meilisync/spool")

    @field_validator("batch_size", "max_poll_attempts", "workers")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class DatabaseConfig(BaseModel):
    """Source-of-record database."""

    url: str = "sqlite+aiosqlite:///~/.local/share/meilisync/records.db"
    echo: bool = False
    # record class -> table name, when it is not the snake_case class name
    tables: dict[str, str] = {}
    # record class -> column -> field-selection groups of that column
    column_groups: dict[str, dict[str, list[str]]] = {}


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from MEILISYNC_LOG_FILE env var."""
        return os.environ.get("MEILISYNC_LOG_FILE")


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by MEILISYNC_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        return yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get("MEILISYNC_CONFIG_FILE")
        if config_file:
            path = Path(config_file).expanduser()
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Config(BaseSettings):
    """Resolved configuration. Defaults are applied here and nowhere else."""

    model_config = SettingsConfigDict(
        env_prefix="MEILISYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # MEILISYNC_SEARCH__HOST
        extra="ignore",
    )

    search: SearchConfig = SearchConfig()
    locales: LocaleConfig = LocaleConfig()
    indexing: IndexingConfig = IndexingConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    indexes: list[IndexEntry] = []

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority (highest to lowest): init, env, .env, YAML file, secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called once at startup, before workers or the CLI run.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
