"""Aggregate router exports."""
from .moderation import router as moderation_router

__all__ = ["moderation_router"]
