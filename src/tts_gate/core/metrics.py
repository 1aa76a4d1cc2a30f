"""
Prometheus Metrics for tts-gate.

Metrics Exposed:
    tts_gate_generations_total              - Counter by outcome
    tts_gate_denials_total                  - Counter of local denials by reason
    tts_gate_synthesis_duration_seconds     - Histogram of provider call latency
    tts_gate_daily_used                     - Gauge, requests used today
    tts_gate_minute_used                    - Gauge, requests used this window
    tts_gate_credential_rotations_total     - Counter of credential rotations

Outcomes are "success" or one of the generation error codes:
success, INPUT_ERROR, QUOTA_DENIED, UPSTREAM_QUOTA_EXCEEDED,
UPSTREAM_OTHER, BUSY, DISCARDED.

Usage:
    from tts_gate.core.metrics import metrics

    metrics.record_generation("success", duration=1.2)
    metrics.record_denial("MINUTE_LIMIT_REACHED")
    metrics.set_usage(daily_used=12, minute_used=3)

    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class GateMetrics:
    """
    Metrics collection for the generation orchestrator.

    Uses a private CollectorRegistry so several orchestrators (tests,
    embedded use) never collide on the global default registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self._registry = registry or CollectorRegistry()

        self._generations_total = Counter(
            "tts_gate_generations_total",
            "Generation attempts by outcome",
            ["outcome"],
            registry=self._registry,
        )
        self._denials_total = Counter(
            "tts_gate_denials_total",
            "Requests denied by the local admission guard",
            ["reason"],
            registry=self._registry,
        )
        self._synthesis_duration = Histogram(
            "tts_gate_synthesis_duration_seconds",
            "Provider synthesis call duration in seconds",
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 60.0),
            registry=self._registry,
        )
        self._daily_used = Gauge(
            "tts_gate_daily_used",
            "Requests counted against today's daily quota",
            registry=self._registry,
        )
        self._minute_used = Gauge(
            "tts_gate_minute_used",
            "Requests counted against the current minute window",
            registry=self._registry,
        )
        self._rotations_total = Counter(
            "tts_gate_credential_rotations_total",
            "Credential rotations (each resets both quota windows)",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_generation(self, outcome: str, duration: Optional[float] = None) -> None:
        """
        Record a finished generate() call.

        Args:
            outcome: "success", "BUSY" or a generation error code.
            duration: Provider call duration, when a call was made.
        """
        self._generations_total.labels(outcome=outcome).inc()
        if duration is not None and duration >= 0:
            self._synthesis_duration.observe(duration)

    def record_denial(self, reason: str) -> None:
        self._denials_total.labels(reason=reason).inc()

    def set_usage(self, daily_used: int, minute_used: int) -> None:
        self._daily_used.set(daily_used)
        self._minute_used.set(minute_used)

    def record_rotation(self) -> None:
        self._rotations_total.inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Get metrics in Prometheus text format as (content, content_type)."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global instance used by the HTTP app and CLI
metrics = GateMetrics()
