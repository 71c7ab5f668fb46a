"""``azure:pipeline:run`` -- start a pipeline run and wait for it to finish."""

from __future__ import annotations

import json
from typing import Any

from pydantic import Field, field_validator

from azpipes.actions.base import ActionContext, ActionInput, TemplateAction
from azpipes.engine.models import PipelineRunRequest
from azpipes.engine.runner import RunPoller


def _as_text(value: Any) -> str:
    """Render a template value the way Azure expects parameter strings."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, dict, list)) or value is None:
        return json.dumps(value)
    return str(value)


class RunPipelineInput(ActionInput):
    run_api_version: str | None = Field(
        None,
        title="Run API version",
        description="The Azure Run Pipeline API version to use. Defaults to 7.0",
    )
    build_api_version: str | None = Field(
        None,
        title="Build API version",
        description="The Builds API version to use. Defaults to 6.1-preview.6",
    )
    pipeline_id: str = Field(..., title="Pipeline ID", description="The pipeline ID.")
    branch: str | None = Field(
        None, title="Repository Branch", description="The branch of the pipeline's repository."
    )
    pipeline_parameters: dict[str, str] = Field(
        default_factory=dict,
        title="Pipeline Parameters",
        description=(
            "The values you need as parameters on the request to start a build. "
            "Non-string values are sent as their string form."
        ),
    )
    pipeline_variables: dict[str, str] = Field(
        default_factory=dict,
        title="Pipeline Variables",
        description="Variables to set on the run.",
    )
    yaml_overrides: str | None = Field(
        None, title="YAML Overrides", description="YAML replacing the pipeline definition."
    )
    wait_for_completion: bool = Field(
        True,
        title="Wait For Completion",
        description="Poll the run until it reaches a terminal state.",
    )
    poll_interval: float | None = Field(
        None, ge=0, title="Poll Interval", description="Seconds between two status checks."
    )
    timeout: float | None = Field(
        None, ge=0, title="Timeout", description="Maximum seconds to wait for the run."
    )

    @field_validator("pipeline_parameters", "pipeline_variables", mode="before")
    @classmethod
    def stringify_values(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {k: _as_text(value) for k, value in v.items()}


class RunPipelineAction(TemplateAction[RunPipelineInput]):
    id = "azure:pipeline:run"
    description = "Runs an Azure DevOps pipeline and optionally waits for its result."
    input_model = RunPipelineInput

    async def handler(self, ctx: ActionContext[RunPipelineInput]) -> None:
        inp = ctx.input
        versions = self.settings.api_versions.model_copy()
        if inp.run_api_version:
            versions.run = inp.run_api_version
        if inp.build_api_version:
            versions.build = inp.build_api_version

        request = PipelineRunRequest(
            target_branch=inp.branch or self.settings.default_branch,
            template_parameters=inp.pipeline_parameters,
            variables=inp.pipeline_variables,
            yaml_overrides=inp.yaml_overrides,
        )
        poll_interval = (
            inp.poll_interval if inp.poll_interval is not None else self.settings.poll_interval
        )
        timeout = inp.timeout if inp.timeout is not None else self.settings.poll_timeout

        async with self.open_client(ctx, versions) as client:
            ctx.logger.info("Running Azure pipeline with the ID %s.", inp.pipeline_id)
            poller = RunPoller(client, poll_interval=poll_interval, timeout=timeout, log=ctx.logger)
            report = await poller.run_pipeline_and_wait(
                inp.project, inp.pipeline_id, request, wait=inp.wait_for_completion
            )

        if report.handle is not None:
            ctx.output("runId", str(report.handle.run_id))
            ctx.output("runUrl", report.handle.web_url)
        ctx.output("result", report.outcome.value)
