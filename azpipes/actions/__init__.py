"""Template actions for Azure Pipelines."""

from azpipes.actions.base import ActionContext, ActionInput, TemplateAction
from azpipes.actions.create_pipeline import CreatePipelineAction
from azpipes.actions.permit_pipeline import PermitPipelineAction
from azpipes.actions.registry import ActionRegistry
from azpipes.actions.run_pipeline import RunPipelineAction

__all__ = [
    "ActionContext",
    "ActionInput",
    "ActionRegistry",
    "CreatePipelineAction",
    "PermitPipelineAction",
    "RunPipelineAction",
    "TemplateAction",
]
