"""
tts-gate API Routes.

Endpoints:
    POST /v1/generate            - Gated speech generation (returns WAV audio)
    GET  /v1/usage               - Quota snapshot and orchestrator state
    GET  /v1/voices              - Voice catalog
    POST /v1/credential/rotate   - Swap API key and reset both quota windows
    GET  /health                 - Health check
    GET  /metrics                - Prometheus metrics

Error Handling:
    Errors are returned as JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>",
        "reason": "<denial reason, local denials only>",
        "details": {...}
    }

    HTTP status codes are mapped from generation error codes:
        - INPUT_ERROR -> 400 Bad Request
        - QUOTA_DENIED -> 429 Too Many Requests
        - UPSTREAM_QUOTA_EXCEEDED -> 429 Too Many Requests
        - UPSTREAM_OTHER -> 502 Bad Gateway
        - BUSY -> 409 Conflict
        - DISCARDED -> 409 Conflict

Example Usage:
    curl -X POST http://localhost:8000/v1/generate \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Merhaba!", "voice_id": "Kore"}' \\
        --output speech.wav
"""
from __future__ import annotations

import uuid
from typing import Dict

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from tts_gate.api.dependencies import get_generation_orchestrator
from tts_gate.api.schemas import GenerateRequest, RotateRequest, UsageResponse, VoicesResponse
from tts_gate.core.logging import fail, get_logger, set_request_id
from tts_gate.services.orchestrator import (
    ErrorCode,
    GenerationError,
    GenerationOrchestrator,
    UsageSnapshot,
)
from tts_gate.synth.voices import VOICES

router = APIRouter()

_LOG = get_logger("tts-gate.api")

STATUS_MAP: Dict[str, int] = {
    ErrorCode.INPUT_ERROR: 400,
    ErrorCode.QUOTA_DENIED: 429,
    ErrorCode.UPSTREAM_QUOTA_EXCEEDED: 429,
    ErrorCode.UPSTREAM_OTHER: 502,
    ErrorCode.BUSY: 409,
    ErrorCode.DISCARDED: 409,
}


def _quota_headers(usage: UsageSnapshot) -> Dict[str, str]:
    return {
        "X-Daily-Remaining": str(usage.daily_remaining),
        "X-Minute-Remaining": str(usage.minute_remaining),
        "X-Reset-Seconds": str(usage.seconds_until_reset),
    }


def _error_response(error: GenerationError, rid: str, usage: UsageSnapshot | None = None) -> JSONResponse:
    """Create a standardized JSON error response from a GenerationError."""
    content = error.to_dict()
    content["request_id"] = rid
    headers = {"X-Request-Id": rid}
    if usage is not None:
        headers.update(_quota_headers(usage))
    if error.code == ErrorCode.QUOTA_DENIED and usage is not None:
        headers["Retry-After"] = str(usage.seconds_until_reset)
    return JSONResponse(status_code=STATUS_MAP.get(error.code, 500), content=content, headers=headers)


def _usage_body(orchestrator: GenerationOrchestrator, usage: UsageSnapshot) -> Dict:
    last = orchestrator.last_denial
    return UsageResponse(
        **usage.to_dict(),
        state=orchestrator.state.value,
        last_denial=last.value if last else None,
    ).model_dump()


@router.post("/v1/generate", response_class=Response)
def generate_v1(
    req: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator),
):
    """
    Gated speech generation.

    Returns:
        Response: WAV audio with headers:
            - X-Request-Id: Request identifier for tracing
            - X-Sample-Rate: Audio sample rate
            - X-Duration-Seconds: Audio length
            - X-Target-Duration-Minutes: Echo of the advisory target (if given)
            - X-Daily-Remaining / X-Minute-Remaining / X-Reset-Seconds
            - X-Daily-Count-Persisted: "false" when the daily record
              could not be written
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    try:
        outcome = orchestrator.generate(
            req.text,
            voice_id=req.voice_id,
            target_duration_minutes=req.target_duration_minutes,
        )
    except Exception as e:
        fail(_LOG, "generate_unhandled", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": "INTERNAL_ERROR",
                "message": "Internal server error",
                "request_id": rid,
            },
        )

    if not outcome.ok:
        return _error_response(outcome.error, rid, outcome.usage)

    artifact = outcome.artifact
    headers = {
        "X-Request-Id": rid,
        "X-Sample-Rate": str(artifact.sample_rate),
        "X-Duration-Seconds": f"{artifact.duration_seconds:.3f}",
        "X-Voice-Id": artifact.voice_id,
    }
    if outcome.target_duration_minutes is not None:
        headers["X-Target-Duration-Minutes"] = str(outcome.target_duration_minutes)
    if outcome.usage is not None:
        headers.update(_quota_headers(outcome.usage))
    if outcome.details and outcome.details.get("daily_count_persisted") is False:
        headers["X-Daily-Count-Persisted"] = "false"
    return Response(content=artifact.wav_bytes, media_type="audio/wav", headers=headers)


@router.get("/v1/usage", response_model=UsageResponse)
def usage_v1(orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator)):
    """Quota snapshot, recomputed on every call."""
    return _usage_body(orchestrator, orchestrator.usage())


@router.get("/v1/voices", response_model=VoicesResponse)
def voices_v1(orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator)):
    return {
        "default": orchestrator.default_voice,
        "voices": [v.to_dict() for v in VOICES],
    }


@router.post("/v1/credential/rotate")
def rotate_v1(
    req: RotateRequest | None = None,
    orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator),
):
    """
    Rotate the provider credential.

    Resets both quota windows. If the new key is rejected, nothing is
    reset and a 400 is returned.
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    api_key = req.api_key if req is not None else None
    try:
        usage = orchestrator.rotate_credential(api_key)
    except ValueError as e:
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "error": ErrorCode.INPUT_ERROR,
                "message": str(e),
                "request_id": rid,
            },
        )
    return {"ok": True, "request_id": rid, "usage": _usage_body(orchestrator, usage)}


@router.get("/health")
def health(orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator)):
    """
    Health check endpoint.

    Returns:
        dict: status, engine, orchestrator state and the quota snapshot.
    """
    usage = orchestrator.usage()
    return {
        "status": "ok",
        "engine": orchestrator.synthesizer.name,
        "state": orchestrator.state.value,
        "daily_remaining": usage.daily_remaining,
        "minute_remaining": usage.minute_remaining,
    }


@router.get("/metrics")
def prometheus_metrics(orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator)):
    """Prometheus metrics endpoint. Usage gauges are refreshed first."""
    orchestrator.usage()
    content, content_type = orchestrator.metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
