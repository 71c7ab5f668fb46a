"""Base abstraction for credential resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialsProvider(ABC):
    """Resolves an Azure DevOps personal access token for a target.

    Implementations raise :class:`~azpipes.errors.ConfigurationError` when
    no token can be found; they never return an empty token.
    """

    @abstractmethod
    def resolve_token(self, host: str, organization_url: str) -> str:
        """Return the token to use for *organization_url* on *host*."""


class StaticCredentialsProvider(CredentialsProvider):
    """Always returns the same token, whatever the target."""

    def __init__(self, token: str) -> None:
        self._token = token

    def resolve_token(self, host: str, organization_url: str) -> str:
        return self._token
