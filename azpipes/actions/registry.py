"""Action registry: maps template action ids to action instances."""

from __future__ import annotations

import logging
from typing import Any

from azpipes.actions.base import TemplateAction

logger = logging.getLogger(__name__)


class ActionRegistry:
    """Central registry of the template actions a scaffolder can invoke.

    Usage::

        registry = ActionRegistry()
        registry.add_actions(CreatePipelineAction(credentials))
        outputs = await registry.execute("azure:pipeline:create", {...})
    """

    def __init__(self) -> None:
        self._actions: dict[str, TemplateAction] = {}

    def add_actions(self, *actions: TemplateAction) -> None:
        """Register *actions*, replacing any already registered under the same id."""
        for action in actions:
            if action.id in self._actions:
                logger.info(
                    "Overriding action %s with %s", action.id, type(action).__name__
                )
            self._actions[action.id] = action

    def get(self, action_id: str) -> TemplateAction:
        """Return the action for *action_id*.

        Raises ``KeyError`` if nothing is registered under that id.
        """
        action = self._actions.get(action_id)
        if action is None:
            raise KeyError(
                f"No action registered for {action_id}. "
                f"Available: {self.list_actions() or 'none'}"
            )
        return action

    def list_actions(self) -> list[str]:
        return sorted(self._actions)

    def describe(self) -> list[dict[str, Any]]:
        """Return id, description and schema for every registered action."""
        return [
            {
                "id": action.id,
                "description": action.description,
                "schema": action.schema,
            }
            for _, action in sorted(self._actions.items())
        ]

    async def execute(self, action_id: str, raw_input: dict[str, Any]) -> dict[str, Any]:
        action = self.get(action_id)
        logger.info("Executing action %s", action_id)
        return await action.execute(raw_input)
