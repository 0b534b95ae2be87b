"""Convenience exports for schema layer."""
from .moderation import ModerationActionRequest, ModerationActionResponse, ModerationDecisionResponse

__all__ = [
    "ModerationActionRequest",
    "ModerationActionResponse",
    "ModerationDecisionResponse",
]
