"""
Synthesis Error Classifier.

Sorts provider failures into two buckets so callers can tell "slow down"
apart from "something broke":

    QUOTA_EXCEEDED  HTTP 429 or the RESOURCE_EXHAUSTED marker anywhere in
                    the error's code, status or message
    OTHER           everything else, carrying the provider's message

google-genai's APIError exposes .code (int), .status (str) and .message;
plain exceptions only have their str(). Both shapes are handled.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

QUOTA_MARKERS = ("429", "RESOURCE_EXHAUSTED")

UPSTREAM_QUOTA_MESSAGE = "Quota exceeded (429). The system is busy. Please wait a moment."
FALLBACK_MESSAGE = "Failed to generate speech. Please try again."


class ErrorKind(str, Enum):
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    OTHER = "OTHER"


@dataclass(frozen=True)
class ErrorClassification:
    kind: ErrorKind
    message: str

    @property
    def is_quota(self) -> bool:
        return self.kind is ErrorKind.QUOTA_EXCEEDED


def _error_message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return str(error).strip()


def _has_quota_marker(value: object) -> bool:
    if value is None:
        return False
    if value == 429:
        return True
    text = str(value)
    return any(marker in text for marker in QUOTA_MARKERS)


def is_quota_error(error: BaseException) -> bool:
    """True if the error looks like a provider rate-limit rejection."""
    for attr in ("code", "status", "status_code"):
        if _has_quota_marker(getattr(error, attr, None)):
            return True
    return _has_quota_marker(_error_message(error)) or _has_quota_marker(str(error))


def classify(error: BaseException) -> ErrorClassification:
    """
    Classify a synthesis failure.

    Returns:
        ErrorClassification with QUOTA_EXCEEDED and the fixed quota message,
        or OTHER with the provider's own message (or a generic fallback when
        the error carries no message).
    """
    if is_quota_error(error):
        return ErrorClassification(ErrorKind.QUOTA_EXCEEDED, UPSTREAM_QUOTA_MESSAGE)
    return ErrorClassification(ErrorKind.OTHER, _error_message(error) or FALLBACK_MESSAGE)
