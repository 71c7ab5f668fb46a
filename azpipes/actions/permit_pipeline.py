"""``azure:pipeline:permit`` -- authorize a pipeline to use a protected resource."""

from __future__ import annotations

import httpx
from pydantic import Field

from azpipes.actions.base import ActionContext, ActionInput, TemplateAction
from azpipes.engine.models import AuthorizationRequest
from azpipes.errors import RemoteRequestError


class PermitPipelineInput(ActionInput):
    permits_api_version: str | None = Field(
        None,
        title="Permits API version",
        description="The Azure Permits Pipeline API version to use. Defaults to 7.1-preview.1",
    )
    resource_id: str = Field(..., title="Resource ID", description="The resource ID.")
    resource_type: str = Field(
        ..., title="Resource Type", description="The type of the resource (e.g. endpoint)."
    )
    authorized: bool = Field(
        ..., title="Authorized", description="A true or false authorization indicator."
    )
    pipeline_id: int = Field(..., title="Pipeline ID", description="The pipeline ID.")


class PermitPipelineAction(TemplateAction[PermitPipelineInput]):
    id = "azure:pipeline:permit"
    description = "Grants or revokes a pipeline's permission to use a resource."
    input_model = PermitPipelineInput

    async def handler(self, ctx: ActionContext[PermitPipelineInput]) -> None:
        inp = ctx.input
        versions = self.settings.api_versions.model_copy()
        if inp.permits_api_version:
            versions.permits = inp.permits_api_version

        request = AuthorizationRequest(
            resource_type=inp.resource_type,
            resource_id=inp.resource_id,
            pipeline_id=inp.pipeline_id,
            authorized=inp.authorized,
        )

        async with self.open_client(ctx, versions) as client:
            ctx.logger.info(
                "%s Azure pipeline with ID %s for %s with ID %s.",
                "Authorizing" if inp.authorized else "Unauthorizing",
                inp.pipeline_id, inp.resource_type, inp.resource_id,
            )
            try:
                await client.update_pipeline_permissions(
                    inp.project, request.resource_type, request.resource_id, request.to_body()
                )
            except RemoteRequestError as exc:
                ctx.logger.error(str(exc))
                return
            except (httpx.HTTPError, ValueError) as exc:
                ctx.logger.error("Failed to change the Azure pipeline permissions: %s", exc)
                return

        ctx.logger.info("Successfully changed the Azure pipeline permissions.")
