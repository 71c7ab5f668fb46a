"""Value objects for pipeline runs and permission updates."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from azpipes.errors import UnexpectedStatusError

DEFAULT_YAML_PATH = "/azure-pipelines.yaml"


class RunState(str, enum.Enum):
    """Lifecycle state reported in the ``status`` field of a build."""

    not_started = "notStarted"
    in_progress = "inProgress"
    completed = "completed"


class RunOutcome(str, enum.Enum):
    succeeded = "succeeded"
    failed = "failed"
    cancelled = "cancelled"
    error = "error"


@dataclass(frozen=True)
class RunStatus:
    """Latest observed status of a run; no history is kept."""

    state: RunState
    result: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RunStatus:
        raw = payload.get("status")
        try:
            state = RunState(raw)
        except ValueError:
            raise UnexpectedStatusError(raw) from None
        return cls(state=state, result=payload.get("result"))

    @property
    def is_terminal(self) -> bool:
        return self.state is RunState.completed

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and self.result == "succeeded"


@dataclass
class PipelineRunRequest:
    target_branch: str = "main"
    template_parameters: dict[str, str] = field(default_factory=dict)
    variables: dict[str, str] = field(default_factory=dict)
    yaml_overrides: str | None = None

    @property
    def ref_name(self) -> str:
        return f"refs/heads/{self.target_branch}"

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "resources": {"repositories": {"self": {"refName": self.ref_name}}},
            "templateParameters": dict(self.template_parameters),
        }
        if self.variables:
            body["variables"] = {k: {"value": v} for k, v in self.variables.items()}
        if self.yaml_overrides is not None:
            body["yamlOverrides"] = self.yaml_overrides
        return body


@dataclass(frozen=True)
class PipelineRunHandle:
    run_id: int
    web_url: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PipelineRunHandle:
        web_url = payload.get("_links", {}).get("web", {}).get("href", "")
        return cls(run_id=int(payload["id"]), web_url=web_url)


@dataclass
class RunReport:
    """What a run-and-wait invocation ended with."""

    outcome: RunOutcome
    handle: PipelineRunHandle | None = None
    polls: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is RunOutcome.succeeded


@dataclass(frozen=True)
class AuthorizationRequest:
    resource_type: str
    resource_id: str
    pipeline_id: int
    authorized: bool

    def to_body(self) -> dict[str, Any]:
        return {"pipelines": [{"authorized": self.authorized, "id": self.pipeline_id}]}


@dataclass(frozen=True)
class CreatePipelineRequest:
    folder: str
    name: str
    repository_id: str
    repository_name: str
    yaml_path: str = DEFAULT_YAML_PATH

    def to_body(self) -> dict[str, Any]:
        return {
            "folder": self.folder,
            "name": self.name,
            "configuration": {
                "type": "yaml",
                "path": self.yaml_path or DEFAULT_YAML_PATH,
                "repository": {
                    "id": self.repository_id,
                    "name": self.repository_name,
                    "type": "azureReposGit",
                },
            },
        }
