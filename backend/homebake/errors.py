# Overview: Error classification, user-facing message catalog, and retry policy.

"""
Error taxonomy

Errors coming back from external systems (push services, databases) are
not structured, so they are classified by matching their text against a
fixed set of patterns. Classification drives two decisions:

- whether an operation may be retried (connection, timeout, server errors)
- which user message to show (connection problem vs. rejected input)

Service exceptions raised inside this app are typed (ValidationError,
ConflictError, NotFoundError and domain errors derived from ValueError)
and are mapped to HTTP status codes by `status_for`.
"""

from __future__ import annotations

import re
import time
from dataclasses import asdict, dataclass

from .validation import ConflictError, NotFoundError, ValidationError


ERROR_PATTERNS = {
    "connection_failed": re.compile(r"fetch.*failed|network.*error|connection.*(refused|reset|aborted|error)", re.I),
    "timeout": re.compile(r"timeout|timed.*out", re.I),
    "dns_error": re.compile(r"getaddrinfo|name.*resolution|dns.*error", re.I),
    "rate_limited": re.compile(r"rate.*limit|too.*many.*requests|\b429\b", re.I),
    "server_error": re.compile(r"\b5\d\d\b|internal.*server.*error|service.*unavailable", re.I),
    "unauthorized": re.compile(r"\b401\b|unauthorized|authentication", re.I),
    "forbidden": re.compile(r"\b403\b|forbidden|access.*denied|permission.*denied", re.I),
    "not_found": re.compile(r"\b404\b|not.*found", re.I),
    "validation_error": re.compile(r"\b400\b|bad.*request|validation|invalid", re.I),
}

NETWORK_CATEGORIES = ("connection_failed", "timeout", "dns_error", "rate_limited", "server_error")
RETRYABLE_CATEGORIES = ("connection_failed", "timeout", "server_error")


def classify_error(error) -> str | None:
    """First matching category for the error's text, or None."""
    if error is None:
        return None
    text = str(error)
    for category, pattern in ERROR_PATTERNS.items():
        if pattern.search(text):
            return category
    return None


def is_network_error(error) -> bool:
    return classify_error(error) in NETWORK_CATEGORIES


def is_retryable_error(error) -> bool:
    if error is None:
        return False
    text = str(error)
    return any(ERROR_PATTERNS[c].search(text) for c in RETRYABLE_CATEGORIES)


def status_for(exc: BaseException) -> int:
    """HTTP status for a service-layer exception."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, (ValidationError, ValueError)):
        return 400
    return 500


BACKOFF_MODES = ("linear", "exponential")


def backoff_delay(attempt: int, *, delay_seconds: float, backoff: str = "linear", max_delay_seconds: float = 30.0) -> float:
    """Wait before retry number `attempt` (1-based)."""
    if backoff == "exponential":
        delay = delay_seconds * (2 ** (attempt - 1))
    elif backoff == "linear":
        delay = delay_seconds * attempt
    else:
        raise ValueError(f"backoff must be one of: {', '.join(BACKOFF_MODES)}")
    return min(delay, max_delay_seconds)


def with_retry(
    operation,
    *,
    max_attempts: int = 3,
    delay_seconds: float = 1.0,
    backoff: str = "linear",
    max_delay_seconds: float = 30.0,
    sleep=time.sleep,
):
    """
    Run `operation()` and retry retryable failures. The wait grows
    linearly (delay * attempt) or exponentially (delay * 2 ** (attempt - 1)),
    capped at `max_delay_seconds`. Non-retryable errors propagate immediately.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt >= max_attempts or not is_retryable_error(exc):
                raise
            sleep(backoff_delay(attempt, delay_seconds=delay_seconds, backoff=backoff, max_delay_seconds=max_delay_seconds))


# ---------------------------------------------------------------------------
# User message catalog
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserMessage:
    title: str
    message: str
    type: str = "info"
    duration: int = 5000
    retryable: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


ENTITY_LABELS = {
    "bread_type": "Bread Type",
    "batch": "Batch",
    "production": "Production Log",
    "sale": "Sale",
    "leftover": "Remaining Bread",
    "shift_report": "Shift Report",
    "user": "User",
    "invite": "Invite",
    "report": "Report",
    "push": "Notifications",
    "password": "Password",
}

SUCCESS_VERBS = {
    "create": ("Created", "has been added"),
    "update": ("Updated", "has been updated"),
    "delete": ("Removed", "has been deleted"),
    "complete": ("Completed", "has been marked as completed"),
    "cancel": ("Cancelled", "has been cancelled"),
    "record": ("Recorded", "has been recorded"),
    "submit": ("Submitted", "has been submitted"),
    "export": ("Exported", "has been exported"),
    "subscribe": ("Enabled", "are now enabled"),
    "unsubscribe": ("Disabled", "are now disabled"),
    "reset": ("Reset", "has been reset"),
}

ERROR_VERBS = {
    "create": "create",
    "update": "update",
    "delete": "delete",
    "complete": "complete",
    "cancel": "cancel",
    "record": "record",
    "submit": "submit",
    "export": "export",
    "subscribe": "enable",
    "unsubscribe": "disable",
    "reset": "reset",
    "fetch": "load",
}


def user_message(entity: str, operation: str, outcome: str, *, name: str | None = None, error=None) -> UserMessage:
    """
    Build the user-facing message for an entity/operation outcome.

    outcome is "success" or "error". Error messages distinguish connection
    problems from rejected input and carry the retryable flag.
    """
    label = ENTITY_LABELS.get(entity, entity.replace("_", " ").title())
    subject = f'"{name}"' if name else f"The {label.lower()}"

    if outcome == "success":
        title_verb, phrase = SUCCESS_VERBS.get(operation, ("Saved", "has been saved"))
        return UserMessage(
            title=f"{label} {title_verb}",
            message=f"{subject} {phrase}.",
            type="success",
            duration=4000 if operation == "delete" else 5000,
        )

    verb = ERROR_VERBS.get(operation, operation)
    target = f'"{name}"' if name else f"the {label.lower()}"
    category = classify_error(error)

    if category in NETWORK_CATEGORIES:
        message = f"Unable to {verb} {target} due to a connection issue. Please check your connection and try again."
    elif category == "unauthorized":
        message = "Your session has expired. Please sign in again."
    elif category == "forbidden":
        message = f"You don't have permission to {verb} {target}."
    elif category == "not_found":
        message = f"Could not {verb} {target} because it no longer exists."
    elif isinstance(error, ConflictError):
        message = f"Could not {verb} {target}: {error}"
    elif isinstance(error, ValueError) and str(error):
        message = f"Could not {verb} {target}: {error}"
    else:
        message = f"Could not {verb} {target}. Please verify the details and try again."

    return UserMessage(
        title=f"Failed to {verb.capitalize()} {label}",
        message=message,
        type="error",
        duration=6000,
        retryable=is_retryable_error(error),
    )


def error_body(exc: BaseException, entity: str, operation: str, *, name: str | None = None) -> dict:
    """JSON error body for a failed mutation: the raw error plus its user message."""
    return {
        "error": str(exc),
        "message": user_message(entity, operation, "error", name=name, error=exc).to_dict(),
    }


def success_message(entity: str, operation: str, *, name: str | None = None) -> dict:
    return user_message(entity, operation, "success", name=name).to_dict()
