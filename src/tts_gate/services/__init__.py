"""
tts-gate Services Layer.

This package holds the business logic between the presentation adapters
(HTTP API, CLI) and the quota/synthesis layers.

Components:
    - orchestrator.py: GenerationOrchestrator (state machine + quota gate)
    - classifier.py: Provider failure classification
    - validators.py: Request validation
"""
from .classifier import ErrorClassification, ErrorKind, classify
from .orchestrator import (
    BusyError,
    DiscardedError,
    ErrorCode,
    GenerationError,
    GenerationOrchestrator,
    GenerationOutcome,
    GenerationState,
    InputError,
    QuotaDeniedError,
    UpstreamError,
    UpstreamQuotaExceededError,
    UsageSnapshot,
    build_orchestrator,
    get_orchestrator,
    reset_orchestrator,
)

__all__ = [
    "GenerationOrchestrator",
    "GenerationOutcome",
    "GenerationState",
    "UsageSnapshot",
    "build_orchestrator",
    "get_orchestrator",
    "reset_orchestrator",
    "ErrorCode",
    "GenerationError",
    "InputError",
    "QuotaDeniedError",
    "UpstreamQuotaExceededError",
    "UpstreamError",
    "BusyError",
    "DiscardedError",
    "ErrorKind",
    "ErrorClassification",
    "classify",
]
