"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from estate_refresh.paths import is_absolute_url
from estate_refresh.pipeline.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://estate-index.vercel.app/"

EnvironmentMode = Literal["production", "staging", "development"]


class TriggerConfig(BaseModel):
    """Trusted-source marker that cron triggers must carry."""

    header: str = "x-vercel-cron"
    expected_value: str = "true"


class CommandConfig(BaseModel):
    """Shell command templates for the two pipeline stages."""

    sync: str = "go build -o xmlsync . && ./xmlsync -content {content_dir}"
    build: str = "npm run build"


class SchedulerConfig(BaseModel):
    """In-process scheduling interval."""

    sync_interval_hours: int = 6


class ServerConfig(BaseModel):
    """Trigger API server settings."""

    host: str = "0.0.0.0"
    port: int = 8000


class PipelineConfig(BaseModel):
    """Per-run pipeline configuration. Frozen once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = DEFAULT_BASE_URL
    environment_mode: EnvironmentMode = "production"
    content_directory: Path
    sync_tool_directory: Path
    working_root: Path
    stage_timeout_seconds: float | None = Field(default=None, gt=0)

    @field_validator("base_url")
    @classmethod
    def check_base_url(cls, v: str) -> str:
        if not is_absolute_url(v):
            raise ValueError(f"base_url must be an absolute URL, got {v!r}")
        return v

    @field_validator("content_directory", "sync_tool_directory", "working_root", mode="after")
    @classmethod
    def resolve_paths(cls, v: Path) -> Path:
        return v.resolve()

    def env_overrides(self) -> dict[str, str]:
        """Environment variables the stage processes receive on top of os.environ."""
        return {
            "BASE_URL": self.base_url,
            "HUGO_ENV": self.environment_mode,
        }


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    project_root: Path = Path(".")
    content_dir: Path | None = None
    sync_tool_dir: Path | None = None

    # Site
    base_url: str = DEFAULT_BASE_URL
    hugo_env: EnvironmentMode = "production"

    stage_timeout_seconds: float | None = None
    logfire_token: str = ""

    # Nested configuration sections
    trigger: TriggerConfig = Field(default_factory=TriggerConfig)
    commands: CommandConfig = Field(default_factory=CommandConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("project_root", mode="after")
    @classmethod
    def resolve_project_root(cls, v: Path) -> Path:
        """Resolve project root to absolute path."""
        return v.resolve()

    @property
    def content_directory(self) -> Path:
        return self.content_dir or self.project_root / "content" / "listings"

    @property
    def sync_tool_directory(self) -> Path:
        return self.sync_tool_dir or self.project_root / "cmd" / "xmlsync"

    def load_yaml_config(self) -> None:
        """Load and merge refresh.yaml from the project root."""
        config_path = self.project_root / "refresh.yaml"

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}. Using defaults.")
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"{config_path} must contain a mapping of sections")

            for section_name in ["trigger", "commands", "scheduler", "server"]:
                if section_name in yaml_config:
                    yaml_section = yaml_config[section_name]
                    if not isinstance(yaml_section, dict):
                        raise ConfigurationError(
                            f"Section '{section_name}' in {config_path} must be a mapping"
                        )

                    section = getattr(self, section_name)
                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)
                    try:
                        new_section = section.__class__(**section_dict)
                    except ValidationError as e:
                        problems = "; ".join(
                            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}"
                            for err in e.errors()
                        )
                        raise ConfigurationError(
                            f"Invalid section '{section_name}' in {config_path}: {problems}"
                        ) from e
                    except TypeError as e:
                        raise ConfigurationError(
                            f"Invalid section '{section_name}' in {config_path}: {e}"
                        ) from e
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise


def build_pipeline_config(
    settings: Settings,
    overrides: dict[str, Any] | None = None,
) -> PipelineConfig:
    """Snapshot settings into a PipelineConfig, applying per-run overrides."""
    values: dict[str, Any] = {
        "base_url": settings.base_url,
        "environment_mode": settings.hugo_env,
        "content_directory": settings.content_directory,
        "sync_tool_directory": settings.sync_tool_directory,
        "working_root": settings.project_root,
        "stage_timeout_seconds": settings.stage_timeout_seconds,
    }
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return PipelineConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid pipeline configuration: {problems}") from e


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
