"""FastAPI dependency helpers."""

from __future__ import annotations

from fastapi import Request

from azpipes.actions.registry import ActionRegistry


def get_registry(request: Request) -> ActionRegistry:
    """Return the action registry built by :func:`azpipes.main.create_app`."""
    return request.app.state.actions
