"""Loading of the system context injected ahead of every user message."""

from __future__ import annotations

import logging

from .config import ContextPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "You are a helpful AI assistant for Microsoft Outlook productivity."


def read_prompt_context(policy: ContextPolicy) -> str:
    """Return the configured context text, truncated to ``policy.max_length``.

    A missing or unreadable context file never fails the request; the default
    context sentence is used instead.
    """

    path = policy.file_path
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("ai.context.missing", extra={"path": str(path)})
        return DEFAULT_CONTEXT
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("ai.context.unreadable", extra={"path": str(path), "error": str(exc)})
        return DEFAULT_CONTEXT

    if len(content) > policy.max_length:
        logger.warning(
            "ai.context.truncated",
            extra={"original_length": len(content), "max_length": policy.max_length},
        )
        return content[: policy.max_length]
    return content


__all__ = ("DEFAULT_CONTEXT", "read_prompt_context")
