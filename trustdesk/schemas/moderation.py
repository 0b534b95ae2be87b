"""Schemas describing moderation commands and their outcomes."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ModerationActionRequest(BaseModel):
    # Verbs and target types are validated by the dispatcher so unknown values map to 400.
    action: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    reason: str | None = Field(default=None, max_length=2000)
    extra: dict[str, Any] | None = None


class ModerationActionResponse(BaseModel):
    success: bool
    action: str
    message: str


class ModerationDecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    target_type: str
    target_id: str
    decision: str
    reason: str | None = None
    decision_code: str
    created_at: datetime


__all__ = [
    "ModerationActionRequest",
    "ModerationActionResponse",
    "ModerationDecisionResponse",
]
