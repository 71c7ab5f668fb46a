"""Request/response schemas for the action API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class RunActionRequest(BaseModel):
    input: dict[str, Any] = Field(default_factory=dict, description="Action input values")


class RunActionResponse(BaseModel):
    action: str = Field(..., description="Action id")
    outputs: dict[str, Any] = Field(default_factory=dict, description="Outputs set by the action")


class ActionInfo(BaseModel):
    id: str
    description: str = ""
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str = Field(..., description="Error message")
    detail: Any = Field(None, description="Detailed error information")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp",
    )
