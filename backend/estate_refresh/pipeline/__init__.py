"""Refresh pipeline: trigger authentication, process runner, stages and orchestrator.

Submodules that depend on estate_refresh.config (stages, orchestrator) are
imported directly rather than re-exported here.
"""

from .exceptions import (
    AuthenticationError,
    BuildStageError,
    ConfigurationError,
    RefreshError,
    SyncStageError,
)
from .models import (
    FailurePolicy,
    OrchestratorState,
    PipelineOutcome,
    RunResult,
    StageResult,
    TriggerRequest,
)

__all__ = [
    "RefreshError",
    "AuthenticationError",
    "SyncStageError",
    "BuildStageError",
    "ConfigurationError",
    "FailurePolicy",
    "OrchestratorState",
    "PipelineOutcome",
    "RunResult",
    "StageResult",
    "TriggerRequest",
]
