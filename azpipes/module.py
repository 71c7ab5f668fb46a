"""Scaffolder module wiring: builds the integrations and registers the actions."""

from __future__ import annotations

import logging

import httpx

from azpipes.actions import (
    ActionRegistry,
    CreatePipelineAction,
    PermitPipelineAction,
    RunPipelineAction,
)
from azpipes.config import AppConfig
from azpipes.integrations import CredentialsProvider, IntegrationRegistry

logger = logging.getLogger(__name__)

MODULE_ID = "azure-pipelines"


def register_actions(
    registry: ActionRegistry,
    config: AppConfig,
    credentials: CredentialsProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ActionRegistry:
    """Register the three Azure Pipelines actions on *registry*."""
    if credentials is None:
        credentials = IntegrationRegistry.from_config(config.integrations)
    registry.add_actions(
        CreatePipelineAction(credentials, config.azure, transport),
        PermitPipelineAction(credentials, config.azure, transport),
        RunPipelineAction(credentials, config.azure, transport),
    )
    logger.info("Module [%s] registered actions: %s", MODULE_ID, registry.list_actions())
    return registry
