"""Template action API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from azpipes.actions.registry import ActionRegistry
from azpipes.api.deps import get_registry
from azpipes.schemas import ActionInfo, RunActionRequest, RunActionResponse

router = APIRouter(prefix="/api/actions", tags=["actions"])


@router.get("", response_model=list[ActionInfo], response_model_by_alias=True)
async def list_actions(registry: ActionRegistry = Depends(get_registry)):
    """List registered actions with their input schema."""
    return registry.describe()


@router.post("/{action_id}/run", response_model=RunActionResponse)
async def run_action(
    action_id: str,
    body: RunActionRequest,
    registry: ActionRegistry = Depends(get_registry),
):
    """Run an action. Remote failures show up in the logs and outputs only."""
    try:
        action = registry.get(action_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]))
    outputs = await action.execute(body.input)
    return RunActionResponse(action=action_id, outputs=outputs)
