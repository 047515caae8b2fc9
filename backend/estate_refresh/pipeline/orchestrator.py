"""Sync-and-rebuild orchestration: authenticate -> sync (non-fatal) -> build (fatal)."""

import asyncio
import logging
import time
from typing import Any

import logfire

from estate_refresh.config import Settings, build_pipeline_config

from .auth import AuthDecision, TriggerAuthenticator
from .exceptions import AuthenticationError, BuildStageError, RefreshError, SyncStageError
from .models import OrchestratorState, PipelineOutcome, StageResult, TriggerRequest
from .runner import ExternalProcessRunner
from .stages import build_stage, sync_stage

logger = logging.getLogger("estate_refresh.pipeline")


class SyncRebuildOrchestrator:
    """Runs the two-stage refresh pipeline and reports one PipelineOutcome per run.

    Triggers are authenticated as soon as they arrive. Authenticated runs are
    serialized: one arriving while another is in flight waits for it to
    finish, so two runs never touch the content directory at the same time.

    ``state`` tracks the in-flight (or most recent) authenticated run; a
    denied trigger only moves it when no run is in flight.
    """

    def __init__(
        self,
        settings: Settings,
        runner: ExternalProcessRunner | None = None,
        authenticator: TriggerAuthenticator | None = None,
    ):
        self.settings = settings
        self.runner = runner or ExternalProcessRunner()
        self.authenticator = authenticator or TriggerAuthenticator(
            header=settings.trigger.header,
            expected_value=settings.trigger.expected_value,
        )
        self.state = OrchestratorState.IDLE
        self._lock = asyncio.Lock()

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug(f"Orchestrator state {self.state.value} -> {state.value}")
        self.state = state

    def _authenticate(self, request: TriggerRequest) -> None:
        if self.authenticator.authenticate(request.headers) is AuthDecision.DENY:
            raise AuthenticationError()

    async def run(
        self,
        request: TriggerRequest,
        overrides: dict[str, Any] | None = None,
    ) -> PipelineOutcome:
        """Execute one pipeline run. Never raises; every path yields an outcome."""
        with logfire.span("sync and rebuild", source=request.source):
            idle = not self._lock.locked()
            if idle:
                self._transition(OrchestratorState.AUTHENTICATING)

            try:
                self._authenticate(request)
            except AuthenticationError as e:
                if idle:
                    self._transition(OrchestratorState.DENIED)
                logger.warning(f"Rejected unauthenticated trigger from {request.source}")
                return PipelineOutcome(
                    success=False,
                    message=str(e),
                    state=OrchestratorState.DENIED,
                    status_code=e.status_code,
                )

            async with self._lock:
                outcome = await self._run_stages(overrides)

        logger.info(f"Run finished: {outcome}")
        return outcome

    async def _run_stages(self, overrides: dict[str, Any] | None) -> PipelineOutcome:
        start_time = time.perf_counter()
        stages: list[StageResult] = []

        try:
            logger.info("Starting listing sync and site rebuild...")
            config = build_pipeline_config(self.settings, overrides)
            environment = config.env_overrides()

            self._transition(OrchestratorState.SYNCING)
            logger.info("Running listing sync to fetch latest listings...")
            sync_result = await sync_stage(config, self.settings.commands).execute(
                self.runner, environment, timeout=config.stage_timeout_seconds
            )
            stages.append(sync_result)
            try:
                sync_result.raise_for_policy()
                logger.info("✓ Listing sync completed")
            except SyncStageError as e:
                logger.warning(
                    f"✗ Listing sync failed, continuing with rebuild anyway "
                    f"(site will be built from existing content): {e}"
                )

            self._transition(OrchestratorState.BUILDING)
            logger.info("Rebuilding site...")
            build_result = await build_stage(config, self.settings.commands).execute(
                self.runner, environment, timeout=config.stage_timeout_seconds
            )
            stages.append(build_result)
            build_result.raise_for_policy()
            logger.info("✓ Site rebuild completed")

        except BuildStageError as e:
            self._transition(OrchestratorState.FAILED)
            logger.error(f"✗ Site rebuild failed: {e}")
            return PipelineOutcome(
                success=False,
                message="Build failed",
                state=OrchestratorState.FAILED,
                status_code=e.status_code,
                duration_seconds=time.perf_counter() - start_time,
                error_details=str(e),
                stages=stages,
            )
        except Exception as e:
            self._transition(OrchestratorState.FAILED)
            logger.error(f"Refresh run failed: {e}", exc_info=True)
            status_code = e.status_code if isinstance(e, RefreshError) else None
            return PipelineOutcome(
                success=False,
                message="Cron job failed",
                state=OrchestratorState.FAILED,
                status_code=status_code or 500,
                duration_seconds=time.perf_counter() - start_time,
                error_details=str(e) or e.__class__.__name__,
                stages=stages,
            )

        duration = time.perf_counter() - start_time
        self._transition(OrchestratorState.SUCCEEDED)
        return PipelineOutcome(
            success=True,
            message=f"Sync and rebuild completed in {duration:.2f}s",
            state=OrchestratorState.SUCCEEDED,
            duration_seconds=duration,
            stages=stages,
        )
