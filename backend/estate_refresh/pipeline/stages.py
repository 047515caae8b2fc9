"""Pipeline stages: one external command each, with a declared failure policy."""

import logging
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import logfire

from estate_refresh.config import CommandConfig, PipelineConfig

from .models import FailurePolicy, StageResult
from .runner import Command, ExternalProcessRunner

logger = logging.getLogger(__name__)

SYNC_STAGE = "sync"
BUILD_STAGE = "build"


@dataclass(frozen=True)
class PipelineStage:
    """A named unit of work wrapping exactly one runner invocation."""

    name: str
    command: Command
    working_directory: Path
    failure_policy: FailurePolicy

    async def execute(
        self,
        runner: ExternalProcessRunner,
        environment: Mapping[str, str],
        timeout: float | None = None,
    ) -> StageResult:
        with logfire.span(
            "pipeline stage {stage}",
            stage=self.name,
            failure_policy=self.failure_policy.value,
        ):
            result = await runner.run(
                self.command,
                self.working_directory,
                environment,
                timeout=timeout,
                label=self.name,
            )

        if not result.succeeded:
            logger.debug(f"Stage {self.name} failed: {result.error_message}")

        return StageResult(
            stage_name=self.name,
            succeeded=result.succeeded,
            error_message=result.error_message,
            failure_policy=self.failure_policy,
            duration_seconds=result.duration_seconds,
        )


def sync_stage(config: PipelineConfig, commands: CommandConfig) -> PipelineStage:
    """Build the listing sync stage. Failures are tolerated."""
    command = commands.sync.format(content_dir=shlex.quote(str(config.content_directory)))
    return PipelineStage(
        name=SYNC_STAGE,
        command=command,
        working_directory=config.sync_tool_directory,
        failure_policy=FailurePolicy.NON_FATAL,
    )


def build_stage(config: PipelineConfig, commands: CommandConfig) -> PipelineStage:
    """Build the site build stage. Failures abort the pipeline."""
    return PipelineStage(
        name=BUILD_STAGE,
        command=commands.build,
        working_directory=config.working_root,
        failure_policy=FailurePolicy.FATAL,
    )
