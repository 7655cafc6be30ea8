from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from leitbox.consts import VERSION
from leitbox.domain.constants import DEFAULT_DAILY_CAP


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/leitbox/config.toml",
        Path.home() / ".leitbox.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for leitbox.
    Supports loading from:
    1. Environment variables (LEITBOX_*)
    2. Config file (~/.config/leitbox/config.toml)
    3. Manual overrides (CLI / server requests)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEITBOX_",
        extra="ignore",
    )

    # Storage
    storage_backend: Literal["memory", "file"] = "file"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/leitbox")

    # Content
    lessons_file: Path | None = None
    review_plan_file: Path | None = None

    # Scheduling
    daily_cap: int = Field(default=DEFAULT_DAILY_CAP, ge=0)

    # Analytics
    analytics_backend: Literal["log", "http", "none"] = "log"
    analytics_url: str | None = None
    app_version: str = VERSION

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        # Earlier sources take priority: init overrides beat env, env beats file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_data_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("lessons_file", "review_plan_file", mode="before")
    @classmethod
    def resolve_optional_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/leitbox/config.toml (if exists)
    3. Environment variables (LEITBOX_*)
    4. cli_overrides (non-None values passed from Typer or the server)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
