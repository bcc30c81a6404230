"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "LOG_ARCHIVER_SETTINGS_FILE"

DEFAULT_MIN_AGE_DAYS = 7
DEFAULT_NAME_PATTERN = "logs_%Y%m%d_%H%M%S"

ArchiveScope = Literal["monthly", "daily"]
CompressionKind = Literal["zip", "gzip"]
ArchiveMode = Literal["grouped", "per_file"]


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


class ProjectConfig(BaseModel):
    """Project metadata settings."""

    name: str = "log_archiver"
    env: str = "dev"


class PathsConfig(BaseModel):
    """Filesystem locations read and written by a run."""

    source_root: Path = Path("./logs_in")
    dest_root: Path = Path("./archives")
    artifacts_root: Path = Path("./artifacts")
    reports_root: Path = Path("./reports")
    logs_root: Path = Path("./logs")

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with project-relative paths resolved to absolute paths."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class ArchiveConfig(BaseModel):
    """Candidate selection and container naming."""

    min_age_days: int = DEFAULT_MIN_AGE_DAYS
    scope: ArchiveScope = "monthly"
    include_current_period: bool = False
    name_pattern: str = DEFAULT_NAME_PATTERN
    compression: CompressionKind = "zip"
    mode: ArchiveMode = "grouped"

    @field_validator("min_age_days", mode="before")
    @classmethod
    def _default_min_age(cls, value: object) -> object:
        number = _as_int(value)
        if value is None or (number is not None and number <= 0):
            return DEFAULT_MIN_AGE_DAYS
        return value

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: object) -> object:
        normalized = str(value or "").strip().lower()
        return normalized if normalized in {"monthly", "daily"} else "monthly"

    @field_validator("compression", "mode", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name_pattern", mode="before")
    @classmethod
    def _default_pattern(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return DEFAULT_NAME_PATTERN
        return value


class DeletionConfig(BaseModel):
    """Post-verification removal of archived originals."""

    delete_after_verify: bool = False
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay_sec: float = Field(default=0.5, ge=0.0)


class RetentionConfig(BaseModel):
    """Cleanup of old containers in the destination directory."""

    enabled: bool = False
    retention_days: int = 0
    keep_last_n: int = 0

    @field_validator("retention_days", "keep_last_n", mode="before")
    @classmethod
    def _clamp_negative(cls, value: object) -> object:
        number = _as_int(value)
        if number is not None and number < 0:
            return 0
        return value


class WorkersConfig(BaseModel):
    """Parallelism for per-group archive tasks."""

    max_workers: int | None = None


class ParquetConfig(BaseModel):
    """Parquet write settings."""

    compression: Literal["zstd", "snappy", "gzip", "brotli", "lz4", "none"] = "zstd"
    compression_level: int | None = 3
    statistics: bool = True


class LoggingConfig(BaseModel):
    """Log level and file name under `paths.logs_root`."""

    level: str = "INFO"
    file_name: str = "archiver.log"


class ReportConfig(BaseModel):
    """Run report outputs."""

    write_text_report: bool = True
    console_error_limit: int = Field(default=5, ge=0)


class EmailConfig(BaseModel):
    """SMTP notification settings."""

    enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 587
    use_starttls: bool = True
    username: str = ""
    password: str = ""
    sender: str = ""
    recipient: str = ""
    subject: str = ""
    timeout_sec: float = Field(default=30.0, gt=0.0)


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    deletion: DeletionConfig = Field(default_factory=DeletionConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    workers: WorkersConfig = Field(default_factory=WorkersConfig)
    parquet: ParquetConfig = Field(default_factory=ParquetConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)

    model_config = SettingsConfigDict(
        env_prefix="LOG_ARCHIVER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary with secrets masked."""

        payload = self.model_dump(mode="json")
        if payload["email"].get("password"):
            payload["email"]["password"] = "***"
        return payload


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "configs/settings.yaml").exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    resolved_paths = settings.paths.resolved(project_root=project_root)
    return settings.model_copy(update={"paths": resolved_paths})
