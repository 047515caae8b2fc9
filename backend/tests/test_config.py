"""Tests for settings and per-run pipeline configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from estate_refresh.config import PipelineConfig, Settings, build_pipeline_config
from estate_refresh.pipeline.exceptions import ConfigurationError


def test_defaults_derive_from_project_root(settings) -> None:
    config = build_pipeline_config(settings)

    assert config.base_url == "https://estate-index.vercel.app/"
    assert config.environment_mode == "production"
    assert config.content_directory == settings.project_root / "content" / "listings"
    assert config.sync_tool_directory == settings.project_root / "cmd" / "xmlsync"
    assert config.working_root == settings.project_root
    assert config.stage_timeout_seconds is None


def test_overrides_win_over_settings(settings, tmp_path: Path) -> None:
    config = build_pipeline_config(
        settings,
        {
            "base_url": "https://example.com/properties/",
            "content_directory": tmp_path / "elsewhere",
            "stage_timeout_seconds": 60,
            "environment_mode": None,
        },
    )

    assert config.base_url == "https://example.com/properties/"
    assert config.content_directory == (tmp_path / "elsewhere").resolve()
    assert config.stage_timeout_seconds == 60
    assert config.environment_mode == "production"


def test_env_overrides() -> None:
    config = PipelineConfig(
        base_url="https://example.com/",
        environment_mode="staging",
        content_directory=Path("c"),
        sync_tool_directory=Path("s"),
        working_root=Path("."),
    )

    assert config.env_overrides() == {"BASE_URL": "https://example.com/", "HUGO_ENV": "staging"}


def test_pipeline_config_is_frozen(settings) -> None:
    config = build_pipeline_config(settings)

    with pytest.raises(ValidationError):
        config.base_url = "https://other.example/"


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_url": "/relative/"},
        {"environment_mode": "preview"},
        {"stage_timeout_seconds": 0},
        {"unknown_option": True},
    ],
)
def test_invalid_overrides_raise_configuration_error(settings, overrides) -> None:
    with pytest.raises(ConfigurationError, match="Invalid pipeline configuration"):
        build_pipeline_config(settings, overrides)


def test_settings_read_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BASE_URL", "https://staging.estate-index.example/")
    monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("TRIGGER__EXPECTED_VALUE", "s3cret")
    monkeypatch.setenv("SCHEDULER__SYNC_INTERVAL_HOURS", "3")

    settings = Settings(_env_file=None)

    assert settings.base_url == "https://staging.estate-index.example/"
    assert settings.project_root == tmp_path.resolve()
    assert settings.trigger.header == "x-vercel-cron"
    assert settings.trigger.expected_value == "s3cret"
    assert settings.scheduler.sync_interval_hours == 3


def test_yaml_config_merges_sections(settings) -> None:
    (settings.project_root / "refresh.yaml").write_text(
        "commands:\n  build: hugo --minify\nscheduler:\n  sync_interval_hours: 12\n",
        encoding="utf-8",
    )

    settings.load_yaml_config()

    assert settings.commands.build == "hugo --minify"
    assert settings.commands.sync.startswith("go build")
    assert settings.scheduler.sync_interval_hours == 12
    assert settings.trigger.header == "x-trigger"


def test_missing_yaml_config_keeps_defaults(settings) -> None:
    settings.load_yaml_config()

    assert settings.commands.build == "npm run build"


@pytest.mark.parametrize(
    ("content", "section"),
    [
        ("trigger: true\n", "trigger"),
        ("scheduler:\n  sync_interval_hours: soon\n", "scheduler"),
        ("commands:\n  - npm run build\n", "commands"),
    ],
)
def test_bad_yaml_section_names_the_section(settings, content: str, section: str) -> None:
    (settings.project_root / "refresh.yaml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError, match=f"'{section}'"):
        settings.load_yaml_config()


def test_yaml_config_must_be_a_mapping(settings) -> None:
    (settings.project_root / "refresh.yaml").write_text("- trigger\n- commands\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mapping"):
        settings.load_yaml_config()
