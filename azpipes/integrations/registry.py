"""Host integration registry built from the ``integrations.azure`` config."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from azpipes.config import AzureIntegrationConfig, IntegrationsConfig
from azpipes.errors import ConfigurationError
from azpipes.integrations.base import CredentialsProvider

logger = logging.getLogger(__name__)


def _organization_from_url(organization_url: str) -> str:
    """Return the first path segment of ``https://host/<org>/...``."""
    path = urlparse(organization_url).path.strip("/")
    return path.split("/", 1)[0] if path else ""


class IntegrationRegistry(CredentialsProvider):
    """Looks up tokens by host, then by organization.

    Usage::

        registry = IntegrationRegistry.from_config(config.integrations)
        token = registry.resolve_token("dev.azure.com", "https://dev.azure.com/my-org")
    """

    def __init__(self, integrations: list[AzureIntegrationConfig] | None = None) -> None:
        self._by_host: dict[str, AzureIntegrationConfig] = {}
        for integration in integrations or []:
            self.register(integration)

    @classmethod
    def from_config(cls, config: IntegrationsConfig) -> IntegrationRegistry:
        return cls(config.azure)

    def register(self, integration: AzureIntegrationConfig) -> None:
        """Add *integration*, replacing any previous one for the same host."""
        if integration.host in self._by_host:
            logger.info("Overriding Azure integration for host %s", integration.host)
        self._by_host[integration.host] = integration

    def by_host(self, host: str) -> AzureIntegrationConfig | None:
        return self._by_host.get(host)

    def list_hosts(self) -> list[str]:
        return sorted(self._by_host)

    def resolve_token(self, host: str, organization_url: str) -> str:
        integration = self._by_host.get(host)
        if integration is None:
            raise ConfigurationError(
                f"No matching integration configuration for host {host}, "
                "please check your integrations config"
            )

        organization = _organization_from_url(organization_url)
        scoped = [c for c in integration.credentials if organization in c.organizations]
        unscoped = [c for c in integration.credentials if not c.organizations]
        for credential in scoped + unscoped:
            if credential.personal_access_token:
                return credential.personal_access_token

        if integration.token:
            return integration.token

        raise ConfigurationError(
            f"No token provided for Azure integration on {host} "
            f"(organization {organization or 'unknown'})"
        )
