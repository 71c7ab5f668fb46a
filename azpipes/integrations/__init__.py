"""Credential resolution for Azure DevOps hosts."""

from azpipes.integrations.base import CredentialsProvider, StaticCredentialsProvider
from azpipes.integrations.registry import IntegrationRegistry

__all__ = ["CredentialsProvider", "IntegrationRegistry", "StaticCredentialsProvider"]
