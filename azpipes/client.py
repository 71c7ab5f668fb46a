"""Async Azure DevOps REST client built on httpx.

One client is opened per action invocation and closed when the invocation
ends.  See the Azure DevOps REST reference for the endpoints used here:
https://learn.microsoft.com/en-us/rest/api/azure/devops/
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from azpipes.config import ApiVersions
from azpipes.errors import RemoteRequestError

logger = logging.getLogger(__name__)

# Username half of the Basic credential; Azure DevOps ignores it.
_PAT_USER = "PAT"


def build_auth_headers(token: str) -> dict[str, str]:
    """Return the headers every Azure DevOps request carries."""
    encoded = base64.b64encode(f"{_PAT_USER}:{token}".encode()).decode()
    return {
        "Authorization": f"Basic {encoded}",
        "X-TFS-FedAuthRedirect": "Suppress",
        "Accept": "application/json",
    }


class AzureDevOpsClient:
    """Thin wrapper over the four Azure DevOps endpoints the actions use.

    Usage::

        async with AzureDevOpsClient("dev.azure.com", "my-org", token) as client:
            pipeline = await client.create_pipeline("proj", body)

    Every method raises :class:`RemoteRequestError` on a non-2xx answer.
    """

    def __init__(
        self,
        host: str,
        organization: str,
        token: str,
        api_versions: ApiVersions | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = host
        self.organization = organization
        self.api_versions = api_versions or ApiVersions()
        self._http = httpx.AsyncClient(
            base_url=f"https://{host}/{organization}",
            headers=build_auth_headers(token),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> AzureDevOpsClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def organization_url(self) -> str:
        return f"https://{self.host}/{self.organization}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        api_version: str,
        error_message: str,
        json: Any = None,
    ) -> Any:
        response = await self._http.request(
            method, path, params={"api-version": api_version}, json=json
        )
        logger.debug("%s %s -> %d", method, response.request.url, response.status_code)
        if not response.is_success:
            raise RemoteRequestError(response.status_code, error_message)
        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def create_pipeline(self, project: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/{project}/_apis/pipelines",
            self.api_versions.create,
            "Failed to create Azure pipeline",
            json=body,
        )

    async def update_pipeline_permissions(
        self, project: str, resource_type: str, resource_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/{project}/_apis/pipelines/pipelinepermissions/{resource_type}/{resource_id}",
            self.api_versions.permits,
            "Failed to change the Azure pipeline permissions",
            json=body,
        )

    async def run_pipeline(
        self, project: str, pipeline_id: int | str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/{project}/_apis/pipelines/{pipeline_id}/runs",
            self.api_versions.run,
            "Failed to run Azure pipeline",
            json=body,
        )

    async def get_build(self, project: str, run_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/{project}/_apis/build/builds/{run_id}",
            self.api_versions.build,
            "Failed to retrieve pipeline run status",
        )
