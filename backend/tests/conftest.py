"""Shared fixtures for refresh pipeline tests."""

import asyncio
from pathlib import Path

import logfire
import pytest

from estate_refresh.config import CommandConfig, Settings, TriggerConfig
from estate_refresh.pipeline.models import RunResult

logfire.configure(send_to_logfire=False, console=False)


class SpyRunner:
    """Runner double that records calls and returns scripted results per stage label."""

    def __init__(self, results: dict[str, RunResult] | None = None, delay: float = 0.0):
        self.results = results or {}
        self.delay = delay
        self.calls: list[dict] = []

    async def run(self, command, working_directory, environment=None, timeout=None, label="process"):
        self.calls.append(
            {
                "label": label,
                "command": command,
                "working_directory": Path(working_directory),
                "environment": dict(environment or {}),
                "timeout": timeout,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.results.get(label, RunResult(succeeded=True, exit_code=0))

    @property
    def labels(self) -> list[str]:
        return [call["label"] for call in self.calls]


def failed(message: str, exit_code: int = 1) -> RunResult:
    return RunResult(succeeded=False, exit_code=exit_code, error_message=message)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    (tmp_path / "content" / "listings").mkdir(parents=True)
    (tmp_path / "cmd" / "xmlsync").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> Settings:
    return Settings(
        _env_file=None,
        project_root=project_root,
        content_dir=None,
        sync_tool_dir=None,
        base_url="https://estate-index.vercel.app/",
        hugo_env="production",
        stage_timeout_seconds=None,
        trigger=TriggerConfig(header="x-trigger", expected_value="true"),
        commands=CommandConfig(),
    )
