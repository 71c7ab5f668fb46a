"""``azure:pipeline:create`` -- create a YAML pipeline for a repository."""

from __future__ import annotations

import httpx
from pydantic import Field

from azpipes.actions.base import ActionContext, ActionInput, TemplateAction
from azpipes.engine.models import DEFAULT_YAML_PATH, CreatePipelineRequest
from azpipes.errors import RemoteRequestError


def _created_pipeline(data) -> tuple[str, str] | None:
    """Return (id, web url) from a create answer, or None if either is missing."""
    if not isinstance(data, dict):
        return None
    pipeline_id = data.get("id")
    links = data.get("_links")
    web = links.get("web") if isinstance(links, dict) else None
    href = web.get("href") if isinstance(web, dict) else None
    if pipeline_id is None or not href:
        return None
    return str(pipeline_id), href


class CreatePipelineInput(ActionInput):
    create_api_version: str | None = Field(
        None,
        title="Create API version",
        description="The Azure Create Pipeline API version to use. Defaults to 6.1-preview.1",
    )
    folder: str = Field(..., title="Folder", description="The name of the folder of the pipeline.")
    name: str = Field(..., title="Name", description="The name of the pipeline.")
    repository_id: str = Field(..., title="Repository ID", description="The ID of the repository.")
    repository_name: str = Field(
        ..., title="Repository Name", description="The name of the repository."
    )
    yaml_path: str | None = Field(
        None,
        title="Azure DevOps Pipelines Definition",
        description=(
            "The location of the Azure DevOps Pipeline definition file. "
            f"Defaults to {DEFAULT_YAML_PATH}"
        ),
    )


class CreatePipelineAction(TemplateAction[CreatePipelineInput]):
    id = "azure:pipeline:create"
    description = "Creates an Azure DevOps pipeline bound to a repository."
    input_model = CreatePipelineInput

    async def handler(self, ctx: ActionContext[CreatePipelineInput]) -> None:
        inp = ctx.input
        versions = self.settings.api_versions.model_copy()
        if inp.create_api_version:
            versions.create = inp.create_api_version

        request = CreatePipelineRequest(
            folder=inp.folder,
            name=inp.name,
            repository_id=inp.repository_id,
            repository_name=inp.repository_name,
            yaml_path=inp.yaml_path or DEFAULT_YAML_PATH,
        )

        async with self.open_client(ctx, versions) as client:
            ctx.logger.info(
                "Creating an Azure pipeline for the repository %s with the ID %s.",
                inp.repository_name, inp.repository_id,
            )
            try:
                data = await client.create_pipeline(inp.project, request.to_body())
            except RemoteRequestError as exc:
                ctx.logger.error(str(exc))
                return
            except (httpx.HTTPError, ValueError) as exc:
                ctx.logger.error("Failed to create Azure pipeline: %s", exc)
                return

        created = _created_pipeline(data)
        if created is None:
            ctx.logger.error(
                "Azure answered without a pipeline ID and web URL; no outputs were set."
            )
            return

        pipeline_id, pipeline_url = created
        ctx.logger.info("Successfully created %s Azure pipeline in %s.", inp.name, inp.folder)
        ctx.logger.info("The Azure pipeline ID is %s.", pipeline_id)
        ctx.output("pipelineId", pipeline_id)
        ctx.output("pipelineUrl", pipeline_url)
