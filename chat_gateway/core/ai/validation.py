"""Content rules applied to inbound chat messages."""

from __future__ import annotations

import re

from .exceptions import MessageValidationError

MAX_MESSAGE_LENGTH = 4000

SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(hack|exploit|bypass|jailbreak)\b", re.IGNORECASE),
    re.compile(r"\b(ignore|forget|disregard).*\b(instructions|prompt|context)\b", re.IGNORECASE | re.DOTALL),
)


def validate_user_input(text: str) -> None:
    """Raise :class:`MessageValidationError` when *text* may not be forwarded."""

    if not isinstance(text, str) or not text.strip():
        raise MessageValidationError("Message cannot be empty")

    if len(text) > MAX_MESSAGE_LENGTH:
        raise MessageValidationError(
            f"Message is too long. Please keep it under {MAX_MESSAGE_LENGTH} characters."
        )

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(text):
            raise MessageValidationError(
                "Please rephrase your message to focus on productivity and Outlook assistance."
            )


__all__ = ("MAX_MESSAGE_LENGTH", "SUSPICIOUS_PATTERNS", "validate_user_input")
