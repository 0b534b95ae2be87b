"""Environment-backed secrets for signing tokens and talking to mail transports."""
from __future__ import annotations

import os
import re
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """Raised when a secret is unset, left at a template value or too short."""


# Values copied from .env.example that were never filled in.
_PLACEHOLDER_PATTERN: Final = re.compile(
    r"^(?:<.*>|change[-_ ]?me|placeholder|example|sample|todo|x{3,}|your[-_].*)$",
    re.IGNORECASE,
)


def is_placeholder(value: str | None) -> bool:
    if value is None:
        return True
    normalized = value.strip()
    return not normalized or bool(_PLACEHOLDER_PATTERN.match(normalized))


def require_secret(name: str, *, min_length: int = 1) -> str:
    """Return the trimmed value of environment variable ``name``.

    The value itself never appears in the raised error.
    """

    value = os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"Environment variable {name} must be set to a real secret")
    secret = value.strip()
    if len(secret) < min_length:
        raise MissingSecretError(f"Environment variable {name} must be at least {min_length} characters long")
    return secret
