"""Convenience exports for service layer."""
from .auth_service import (
    create_access_token,
    decode_access_token,
    get_current_actor,
    get_optional_user,
)
from .authorization import ADMIN_ONLY_ACTIONS, PUNITIVE_ACTIONS, authorize, require_staff
from .decision_codes import generate_decision_code
from .email_service import EmailDeliveryError, get_email_if_enabled, send_email, send_template_email
from .moderation_context import (
    ActionContext,
    Actor,
    ModerationAction,
    ModerationActionResult,
    ModerationCommand,
    TargetType,
)
from .moderation_service import ACTION_REGISTRY, get_decision_by_code, parse_command, perform_action
from .notification_service import NotificationType, count_notifications, create_notification

__all__ = [
    "ACTION_REGISTRY",
    "ADMIN_ONLY_ACTIONS",
    "PUNITIVE_ACTIONS",
    "ActionContext",
    "Actor",
    "EmailDeliveryError",
    "ModerationAction",
    "ModerationActionResult",
    "ModerationCommand",
    "NotificationType",
    "TargetType",
    "authorize",
    "count_notifications",
    "create_access_token",
    "create_notification",
    "decode_access_token",
    "generate_decision_code",
    "get_current_actor",
    "get_decision_by_code",
    "get_email_if_enabled",
    "get_optional_user",
    "parse_command",
    "perform_action",
    "require_staff",
    "send_email",
    "send_template_email",
]
