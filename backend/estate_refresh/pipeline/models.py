"""Pydantic models passed between the runner, stages and orchestrator."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import BuildStageError, SyncStageError


class FailurePolicy(str, Enum):
    """How a stage failure affects the rest of the pipeline."""

    NON_FATAL = "non-fatal"
    FATAL = "fatal"


class OrchestratorState(str, Enum):
    """Lifecycle of a single orchestrator run."""

    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    SYNCING = "syncing"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    DENIED = "denied"
    FAILED = "failed"


class TriggerRequest(BaseModel):
    """Inbound invocation with its header bag."""

    headers: dict[str, str] = Field(default_factory=dict)
    source: str = "http"


class RunResult(BaseModel):
    """Outcome of one external process invocation."""

    succeeded: bool
    exit_code: int | None = None
    error_message: str | None = None
    duration_seconds: float = 0.0
    timed_out: bool = False


class StageResult(BaseModel):
    """Outcome of one pipeline stage."""

    stage_name: str
    succeeded: bool
    error_message: str | None = None
    failure_policy: FailurePolicy
    duration_seconds: float = 0.0

    def raise_for_policy(self) -> None:
        """Raise the stage error matching the failure policy if the stage failed."""
        if self.succeeded:
            return
        message = self.error_message or f"{self.stage_name} stage failed"
        if self.failure_policy is FailurePolicy.FATAL:
            raise BuildStageError(message)
        raise SyncStageError(message)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PipelineOutcome(BaseModel):
    """Terminal report of one orchestrator run."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    state: OrchestratorState
    status_code: int = 200
    duration_seconds: float | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    error_details: str | None = None
    stages: list[StageResult] = Field(default_factory=list)

    @property
    def duration(self) -> str | None:
        """Duration rendered as '<seconds>s' with two decimals."""
        if self.duration_seconds is None:
            return None
        return f"{self.duration_seconds:.2f}s"

    def to_response(self) -> tuple[int, dict[str, Any]]:
        """Status code and JSON body for the trigger caller."""
        if self.state is OrchestratorState.DENIED:
            return self.status_code, {"error": self.message}

        if not self.success:
            return self.status_code, {
                "error": self.message,
                "details": self.error_details or "",
                "timestamp": format_timestamp(self.timestamp),
            }

        return self.status_code, {
            "success": True,
            "message": self.message,
            "duration": self.duration,
            "timestamp": format_timestamp(self.timestamp),
        }

    def __str__(self) -> str:
        """Human-readable status."""
        if self.success:
            return self.message
        if self.error_details:
            return f"{self.message}: {self.error_details}"
        return self.message
