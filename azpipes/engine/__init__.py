"""Run-and-poll engine and the request/response value objects."""

from azpipes.engine.models import (
    AuthorizationRequest,
    CreatePipelineRequest,
    PipelineRunHandle,
    PipelineRunRequest,
    RunOutcome,
    RunReport,
    RunState,
    RunStatus,
)
from azpipes.engine.runner import RunPoller

__all__ = [
    "AuthorizationRequest",
    "CreatePipelineRequest",
    "PipelineRunHandle",
    "PipelineRunRequest",
    "RunOutcome",
    "RunPoller",
    "RunReport",
    "RunState",
    "RunStatus",
]
