"""
GenerationOrchestrator - Usage-Gated Speech Generation.

This module provides the GenerationOrchestrator, the single place where
quota accounting and speech synthesis meet. The HTTP API and the CLI both
drive it.

Architecture:
    Request → Busy Check → Validate → Admission → Synthesize → Classify/Count

State Machine:
    IDLE ──► GENERATING ──► SUCCESS ─┐
               ▲        └─► ERROR  ──┤
               └─────────────────────┘
    Local denials never enter GENERATING. There is no terminal state.

Quota Accounting:
    Only successful generations count. Both windows are incremented after
    the audio is in hand; denials and provider failures consume nothing.

Error Handling:
    Nothing raises out of generate(). Every path returns a GenerationOutcome
    whose .error is a GenerationError subclass:
        - InputError: empty text, unknown voice, bad target duration
        - QuotaDeniedError: local daily/minute pre-check denial
        - UpstreamQuotaExceededError: provider answered 429
        - UpstreamError: any other provider/network failure
        - BusyError: a generation is already in flight
        - DiscardedError: the credential was rotated mid-flight

Example:
    >>> from tts_gate.core.config import Settings
    >>> from tts_gate.services import build_orchestrator
    >>>
    >>> settings = Settings(raw={'synth': {'engine': 'tone'}, 'storage': {'backend': 'memory'}})
    >>> orchestrator = build_orchestrator(settings)
    >>> outcome = orchestrator.generate("Merhaba", voice_id="Kore")
    >>> print(outcome.ok, orchestrator.usage().daily_count)
    True 1
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Optional

from tts_gate.core.config import Defaults, Settings
from tts_gate.core.logging import debug, deny, error, fail, get_logger, info, success, verbose, warn
from tts_gate.core.metrics import GateMetrics, metrics as global_metrics
from tts_gate.quota.admission import AdmissionVerdict, DenialReason, check_admission
from tts_gate.quota.daily import DailyQuotaStore, date_key
from tts_gate.quota.minute import MinuteQuotaTracker
from tts_gate.quota.storage import create_storage
from tts_gate.services.classifier import classify
from tts_gate.services.validators import ValidationError, validate_target_duration, validate_voice_id
from tts_gate.synth.engine import AudioArtifact, BaseSynthesizer, get_synthesizer
from tts_gate.synth.voices import default_voice_id
from tts_gate.utils.timeit import timeit

_LOG = get_logger("tts-gate.orchestrator")

EMPTY_INPUT_MESSAGE = "Please enter some text to generate speech."
DISCARDED_MESSAGE = "Generation finished after a credential rotation and was discarded."
BUSY_MESSAGE = "A generation is already in progress."


# =============================================================================
# Error Codes and Exceptions
# =============================================================================

class ErrorCode:
    """
    Standardized generation error codes.

    Returned in outcome errors and API error bodies so clients can tell
    a local denial from a provider rejection.
    """
    INPUT_ERROR = "INPUT_ERROR"                          # Empty text, bad voice/duration
    QUOTA_DENIED = "QUOTA_DENIED"                        # Local daily/minute pre-check
    UPSTREAM_QUOTA_EXCEEDED = "UPSTREAM_QUOTA_EXCEEDED"  # Provider 429
    UPSTREAM_OTHER = "UPSTREAM_OTHER"                    # Other provider failure
    BUSY = "BUSY"                                        # Generation already in flight
    DISCARDED = "DISCARDED"                              # Credential rotated mid-flight


class GenerationError(Exception):
    """
    Base exception for generation errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode class.
        reason: Admission denial reason, for local denials.
        details: Optional dictionary with additional context.
    """
    def __init__(
        self,
        message: str,
        code: str = ErrorCode.UPSTREAM_OTHER,
        details: Optional[Dict] = None,
        reason: Optional[DenialReason] = None,
    ):
        self.message = message
        self.code = code
        self.reason = reason
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to standardized error response dict for API."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.reason is not None:
            result["reason"] = self.reason.value
        if self.details:
            result["details"] = self.details
        return result


class InputError(GenerationError):
    """Raised for requests that can never succeed as sent."""
    def __init__(self, message: str, details: Optional[Dict] = None, reason: Optional[DenialReason] = None):
        super().__init__(message, ErrorCode.INPUT_ERROR, details, reason)


class QuotaDeniedError(GenerationError):
    """Raised when the local admission guard refuses a request."""
    def __init__(self, message: str, reason: DenialReason, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.QUOTA_DENIED, details, reason)


class UpstreamQuotaExceededError(GenerationError):
    """Raised when the provider rejects a request with 429."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.UPSTREAM_QUOTA_EXCEEDED, details)


class UpstreamError(GenerationError):
    """Raised for any other provider or network failure."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.UPSTREAM_OTHER, details)


class BusyError(GenerationError):
    """Raised when generate() is called while another generation runs."""
    def __init__(self, message: str = BUSY_MESSAGE, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.BUSY, details)


class DiscardedError(GenerationError):
    """Raised for a result that completed under a rotated-out credential."""
    def __init__(self, message: str = DISCARDED_MESSAGE, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.DISCARDED, details)


# =============================================================================
# State and Result Dataclasses
# =============================================================================

class GenerationState(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class UsageSnapshot:
    """
    Point-in-time view of both quota windows.

    Attributes:
        daily_count: Successful generations counted for date_key.
        daily_limit: Daily cap.
        daily_remaining: daily_limit - daily_count, floored at 0.
        daily_percentage: Share of the daily cap used, capped at 100.
        minute_count: Generations counted in the current minute window.
        minute_limit: Minute cap.
        minute_remaining: minute_limit - minute_count, floored at 0.
        seconds_until_reset: Countdown to the next minute window.
        is_minute_full: True when minute_count has reached the cap.
        date_key: Local calendar date the daily figures belong to.
    """
    daily_count: int
    daily_limit: int
    daily_remaining: int
    daily_percentage: float
    minute_count: int
    minute_limit: int
    minute_remaining: int
    seconds_until_reset: int
    is_minute_full: bool
    date_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_count": self.daily_count,
            "daily_limit": self.daily_limit,
            "daily_remaining": self.daily_remaining,
            "daily_percentage": self.daily_percentage,
            "minute_count": self.minute_count,
            "minute_limit": self.minute_limit,
            "minute_remaining": self.minute_remaining,
            "seconds_until_reset": self.seconds_until_reset,
            "is_minute_full": self.is_minute_full,
            "date_key": self.date_key,
        }


@dataclass
class GenerationOutcome:
    """
    Result of one generate() call.

    Attributes:
        ok: True only when audio was produced.
        state: Orchestrator state after the call.
        artifact: Generated audio (ok only).
        error: GenerationError describing why ok is False.
        target_duration_minutes: Advisory duration, passed through for
            downstream playback shaping.
        usage: Quota snapshot taken after the call.
        details: Extra notes on a successful outcome, e.g.
            {"daily_count_persisted": False} when the daily record
            could not be written.
    """
    ok: bool
    state: GenerationState
    artifact: Optional[AudioArtifact] = None
    error: Optional[GenerationError] = None
    target_duration_minutes: Optional[float] = None
    usage: Optional[UsageSnapshot] = None
    details: Optional[Dict[str, Any]] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def reason(self) -> Optional[DenialReason]:
        return self.error.reason if self.error else None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


# =============================================================================
# Orchestrator
# =============================================================================

class GenerationOrchestrator:
    """
    Gatekeeper and state machine around a synthesizer.

    Thread-safety:
        One lock guards state, result, error and the rotation epoch. The
        busy check is a compare-and-set under that lock, so two concurrent
        generate() calls can never both reach the synthesizer. The
        synthesis call itself runs outside the lock; usage() and
        rotate_credential() stay responsive while a request is in flight.

    Credential rotation bumps an epoch counter. A generation that started
    under an older epoch is discarded when it completes: no result, no
    state change, no quota increments.
    """

    def __init__(
        self,
        synthesizer: BaseSynthesizer,
        daily_store: DailyQuotaStore,
        minute_tracker: MinuteQuotaTracker,
        daily_limit: int = Defaults.QUOTA_DAILY_LIMIT,
        default_voice: str = Defaults.SYNTH_DEFAULT_VOICE,
        today: Callable[[], date] = date.today,
        metrics: Optional[GateMetrics] = None,
        text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS,
    ):
        self._synth = synthesizer
        self._daily = daily_store
        self._minute = minute_tracker
        self._daily_limit = daily_limit
        self._default_voice = default_voice_id(default_voice)
        self._today = today
        self._metrics = metrics or global_metrics
        self._text_preview_chars = text_preview_chars

        self._lock = threading.Lock()
        self._state = GenerationState.IDLE
        self._result: Optional[AudioArtifact] = None
        self._error: Optional[GenerationError] = None
        self._last_denial: Optional[DenialReason] = None
        self._epoch = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def synthesizer(self) -> BaseSynthesizer:
        return self._synth

    @property
    def daily_store(self) -> DailyQuotaStore:
        return self._daily

    @property
    def minute_tracker(self) -> MinuteQuotaTracker:
        return self._minute

    @property
    def metrics(self) -> GateMetrics:
        return self._metrics

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    @property
    def minute_limit(self) -> int:
        return self._minute.limit

    @property
    def default_voice(self) -> str:
        return self._default_voice

    @property
    def state(self) -> GenerationState:
        with self._lock:
            return self._state

    @property
    def result(self) -> Optional[AudioArtifact]:
        with self._lock:
            return self._result

    @property
    def error(self) -> Optional[GenerationError]:
        with self._lock:
            return self._error

    @property
    def last_denial(self) -> Optional[DenialReason]:
        with self._lock:
            return self._last_denial

    @property
    def is_generating(self) -> bool:
        return self.state is GenerationState.GENERATING

    # =========================================================================
    # Quota views
    # =========================================================================

    def current_date_key(self) -> str:
        return date_key(self._today())

    def usage(self) -> UsageSnapshot:
        """Recompute the quota snapshot from the stores."""
        day = self.current_date_key()
        daily = self._daily.get(day)
        window = self._minute.snapshot()
        minute_limit = self._minute.limit

        self._metrics.set_usage(daily_used=daily, minute_used=window.count)
        return UsageSnapshot(
            daily_count=daily,
            daily_limit=self._daily_limit,
            daily_remaining=max(0, self._daily_limit - daily),
            daily_percentage=min(100.0, daily / self._daily_limit * 100.0),
            minute_count=window.count,
            minute_limit=minute_limit,
            minute_remaining=max(0, minute_limit - window.count),
            seconds_until_reset=window.seconds_until_reset,
            is_minute_full=window.count >= minute_limit,
            date_key=day,
        )

    def admission(self, text: str) -> AdmissionVerdict:
        """Evaluate admission for text against current counters, changing nothing."""
        return check_admission(
            text,
            daily_count=self._daily.get(self.current_date_key()),
            minute_count=self._minute.count,
            daily_limit=self._daily_limit,
            minute_limit=self._minute.limit,
        )

    def tick(self) -> None:
        """Advance the minute window countdown by one second."""
        self._minute.tick()

    # =========================================================================
    # Public API: generate()
    # =========================================================================

    def _denial_error(self, reason: DenialReason) -> GenerationError:
        if reason is DenialReason.EMPTY_INPUT:
            return InputError(EMPTY_INPUT_MESSAGE, reason=reason)
        if reason is DenialReason.DAILY_LIMIT_REACHED:
            return QuotaDeniedError(
                f"Daily limit reached ({self._daily_limit}). Please try tomorrow or use a paid key.",
                reason,
            )
        seconds = self._minute.seconds_until_reset
        return QuotaDeniedError(
            f"Speed limit reached! Please wait {seconds} seconds for the minute quota to reset.",
            reason,
            details={"seconds_until_reset": seconds},
        )

    def generate(
        self,
        text: str,
        voice_id: Optional[str] = None,
        target_duration_minutes: Optional[float] = None,
    ) -> GenerationOutcome:
        """
        Run one gated generation.

        Pipeline:
            1. Ignore the call if a generation is already in flight
            2. Reject empty text, then validate voice id and target duration
            3. Admission check against both quota windows
            4. Synthesize outside the lock
            5. Record success (and count it) or classify the failure

        Args:
            text: Text to speak.
            voice_id: Catalog voice id. Defaults to the configured voice.
            target_duration_minutes: Advisory playback length, passed through.

        Returns:
            GenerationOutcome. Never raises for request or provider errors.
        """
        voice_id = voice_id or self._default_voice
        text = text or ""

        with self._lock:
            # ─────────────────────────────────────────────────────────────────
            # Stage 1: Busy check (compare-and-set)
            # ─────────────────────────────────────────────────────────────────
            if self._state is GenerationState.GENERATING:
                warn(_LOG, "generate_ignored_busy")
                self._metrics.record_generation("BUSY")
                return GenerationOutcome(ok=False, state=self._state, error=BusyError())

            # Empty text is reported ahead of voice and duration problems
            if not text.strip():
                return self._deny(DenialReason.EMPTY_INPUT, self._daily.get(self.current_date_key()),
                                  self._minute.count, target=None)

            # ─────────────────────────────────────────────────────────────────
            # Stage 2: Request validation
            # ─────────────────────────────────────────────────────────────────
            try:
                voice = validate_voice_id(voice_id)
                target = validate_target_duration(target_duration_minutes)
            except ValidationError as e:
                err = InputError(e.message, details={"code": e.code, "field": e.field})
                warn(_LOG, "generate_invalid", code=e.code, field=e.field)
                self._metrics.record_generation(ErrorCode.INPUT_ERROR)
                return GenerationOutcome(ok=False, state=self._state, error=err,
                                         target_duration_minutes=None)

            # ─────────────────────────────────────────────────────────────────
            # Stage 3: Admission
            # ─────────────────────────────────────────────────────────────────
            day = self.current_date_key()
            daily_count = self._daily.get(day)
            minute_count = self._minute.count
            verdict = check_admission(
                text,
                daily_count=daily_count,
                minute_count=minute_count,
                daily_limit=self._daily_limit,
                minute_limit=self._minute.limit,
            )
            if not verdict.allowed:
                return self._deny(verdict.reason, daily_count, minute_count, target)

            # ─────────────────────────────────────────────────────────────────
            # Stage 4: Enter GENERATING
            # ─────────────────────────────────────────────────────────────────
            self._state = GenerationState.GENERATING
            self._error = None
            self._result = None
            self._last_denial = None
            epoch = self._epoch

        preview = text[:self._text_preview_chars] if self._text_preview_chars > 0 else ""
        info(_LOG, "generate_request", chars=len(text), voice=voice.id,
             provider_voice=voice.provider_voice, text_preview=preview)
        debug(_LOG, "generate_request_full", text=text, target_duration_minutes=target)

        # ─────────────────────────────────────────────────────────────────────
        # Stage 5: Synthesize (outside the lock)
        # ─────────────────────────────────────────────────────────────────────
        try:
            with timeit("synth") as t:
                artifact = self._synth.synthesize(text, voice.provider_voice)
        except Exception as e:
            return self._finish_failure(e, epoch, t.seconds, target)

        verbose(_LOG, "stage", event="synth", seconds=round(t.seconds, 4))
        artifact = replace(artifact, voice_id=voice.id, provider_voice=voice.provider_voice)
        return self._finish_success(artifact, epoch, t.seconds, target)

    def _deny(
        self,
        reason: DenialReason,
        daily_count: int,
        minute_count: int,
        target: Optional[float],
    ) -> GenerationOutcome:
        """Record a local denial. Caller holds the lock; state is left as is."""
        err = self._denial_error(reason)
        self._error = err
        self._last_denial = reason
        deny(_LOG, "admission_denied", reason=reason.value,
             daily_remaining=max(0, self._daily_limit - daily_count),
             minute_remaining=max(0, self._minute.limit - minute_count))
        self._metrics.record_denial(reason.value)
        self._metrics.record_generation(err.code)
        return GenerationOutcome(ok=False, state=self._state, error=err,
                                 target_duration_minutes=target, usage=self.usage())

    def _discarded(self, epoch: int, target: Optional[float]) -> GenerationOutcome:
        warn(_LOG, "generation_discarded", epoch=epoch, current_epoch=self._epoch)
        self._metrics.record_generation(ErrorCode.DISCARDED)
        return GenerationOutcome(ok=False, state=self._state, error=DiscardedError(),
                                 target_duration_minutes=target)

    def _finish_success(
        self,
        artifact: AudioArtifact,
        epoch: int,
        seconds: float,
        target: Optional[float],
    ) -> GenerationOutcome:
        with self._lock:
            if epoch != self._epoch:
                return self._discarded(epoch, target)
            self._result = artifact
            self._state = GenerationState.SUCCESS
            # The provider call already happened; the minute window counts it
            # even if the daily record cannot be written.
            self._minute.increment()
            # Count against the date the request completed on
            day = self.current_date_key()
            details: Optional[Dict[str, Any]] = None
            try:
                self._daily.increment(day)
            except Exception as e:
                details = {"daily_count_persisted": False, "storage_error": str(e)}
                error(_LOG, "daily_count_not_persisted", date_key=day, error=str(e),
                      error_type=type(e).__name__)

        usage = self.usage()
        success(_LOG, "done", bytes=len(artifact.wav_bytes), seconds=round(seconds, 3),
                daily_remaining=usage.daily_remaining,
                minute_remaining=usage.minute_remaining)
        self._metrics.record_generation("success", duration=seconds)
        return GenerationOutcome(ok=True, state=GenerationState.SUCCESS, artifact=artifact,
                                 target_duration_minutes=target, usage=usage,
                                 details=details)

    def _finish_failure(
        self,
        exc: Exception,
        epoch: int,
        seconds: float,
        target: Optional[float],
    ) -> GenerationOutcome:
        classification = classify(exc)
        details = {"error_type": type(exc).__name__}
        if classification.is_quota:
            err: GenerationError = UpstreamQuotaExceededError(classification.message, details)
        else:
            err = UpstreamError(classification.message, details)

        with self._lock:
            if epoch != self._epoch:
                return self._discarded(epoch, target)
            self._error = err
            self._state = GenerationState.ERROR

        fail(_LOG, "generate_failed", code=err.code, error=str(exc), error_type=type(exc).__name__)
        self._metrics.record_generation(err.code, duration=seconds)
        return GenerationOutcome(ok=False, state=GenerationState.ERROR, error=err,
                                 target_duration_minutes=target, usage=self.usage())

    # =========================================================================
    # Public API: rotate_credential()
    # =========================================================================

    def rotate_credential(self, api_key: Optional[str] = None) -> UsageSnapshot:
        """
        Switch to a new credential and start both quota windows over.

        The new key (if given) is handed to the synthesizer first; if that
        raises, nothing is reset and the error propagates. Then state goes
        back to IDLE, error and result are cleared, the minute window is
        reset and today's persisted daily record is deleted.

        Returns:
            The fresh UsageSnapshot.
        """
        if api_key is not None:
            self._synth.set_api_key(api_key)

        with self._lock:
            self._epoch += 1
            self._state = GenerationState.IDLE
            self._result = None
            self._error = None
            self._last_denial = None
            self._minute.reset()
            day = self.current_date_key()
            self._daily.clear(day)

        info(_LOG, "credential_rotated", date_key=day, key_changed=api_key is not None)
        self._metrics.record_rotation()
        return self.usage()


# =============================================================================
# Construction and Global Singleton
# =============================================================================

def build_orchestrator(
    settings: Settings,
    synthesizer: Optional[BaseSynthesizer] = None,
    today: Callable[[], date] = date.today,
    metrics: Optional[GateMetrics] = None,
) -> GenerationOrchestrator:
    """
    Wire an orchestrator from settings.

    Args:
        settings: Application settings.
        synthesizer: Override the configured synthesizer (tests).
        today: Local-date provider.
        metrics: Metrics sink. Defaults to the global instance.

    Raises:
        ConfigValidationError: If the settings are invalid.
    """
    config = settings.get_gate_config()
    storage = create_storage(config.storage)
    orchestrator = GenerationOrchestrator(
        synthesizer=synthesizer or get_synthesizer(settings),
        daily_store=DailyQuotaStore(storage, key_prefix=config.storage.key_prefix),
        minute_tracker=MinuteQuotaTracker(
            limit=config.quota.minute_limit,
            window_seconds=config.quota.window_seconds,
        ),
        daily_limit=config.quota.daily_limit,
        default_voice=config.synth.default_voice,
        today=today,
        metrics=metrics,
        text_preview_chars=config.logging.text_preview_chars,
    )
    debug(_LOG, "orchestrator_built", storage=storage.name, engine=orchestrator.synthesizer.name,
          daily_limit=config.quota.daily_limit, minute_limit=config.quota.minute_limit)
    return orchestrator


_orchestrator: Optional[GenerationOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator(settings: Settings) -> GenerationOrchestrator:
    """
    Get or create the global GenerationOrchestrator.

    Thread-safe lazy singleton, so every request shares one set of quota
    counters.
    """
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator(settings)
    return _orchestrator


def reset_orchestrator() -> None:
    """
    Reset the global orchestrator instance.

    Used primarily for testing to ensure clean state between tests.
    """
    global _orchestrator
    with _orchestrator_lock:
        _orchestrator = None
