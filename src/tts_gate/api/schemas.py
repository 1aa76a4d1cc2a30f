"""
API Request/Response Schemas.

Pydantic models for the tts-gate HTTP endpoints.

Models:
    GenerateRequest: Input for POST /v1/generate
    RotateRequest: Input for POST /v1/credential/rotate
    UsageResponse: Quota snapshot plus orchestrator state
    VoiceResponse: One voice catalog entry

Example Request:
    {
        "text": "Merhaba, nasılsınız?",
        "voice_id": "Kore",
        "target_duration_minutes": 2.5
    }

Empty text is accepted by the schema on purpose: the orchestrator reports
it as an EMPTY_INPUT denial, the same way the CLI does.
"""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """
    Speech generation request.

    Attributes:
        text: Text to speak.
        voice_id: Catalog voice id (see GET /v1/voices). None uses the
            configured default voice.
        target_duration_minutes: Advisory playback length. Echoed back in
            the X-Target-Duration-Minutes header; synthesis ignores it.
    """
    text: str = Field(
        default="",
        description="Text to synthesize"
    )
    voice_id: str | None = Field(
        default=None,
        description="Catalog voice id (None for the configured default)"
    )
    target_duration_minutes: float | None = Field(
        default=None,
        description="Advisory target playback duration in minutes"
    )


class RotateRequest(BaseModel):
    """Credential rotation request. Omit api_key to only reset the quotas."""
    api_key: str | None = Field(
        default=None,
        description="New provider API key"
    )


class UsageResponse(BaseModel):
    daily_count: int = Field(..., description="Generations counted today")
    daily_limit: int = Field(..., description="Daily cap")
    daily_remaining: int = Field(..., description="Generations left today")
    daily_percentage: float = Field(..., description="Share of the daily cap used (0-100)")
    minute_count: int = Field(..., description="Generations in the current minute window")
    minute_limit: int = Field(..., description="Minute cap")
    minute_remaining: int = Field(..., description="Generations left in this window")
    seconds_until_reset: int = Field(..., description="Seconds until the minute window resets")
    is_minute_full: bool = Field(..., description="True when the minute cap is reached")
    date_key: str = Field(..., description="Local date (YYYY-MM-DD) of the daily figures")
    state: str = Field(..., description="Orchestrator state")
    last_denial: str | None = Field(default=None, description="Reason of the last local denial")


class VoiceResponse(BaseModel):
    id: str
    name: str
    gender: str
    description: str
    provider_voice: str


class VoicesResponse(BaseModel):
    default: str = Field(..., description="Voice used when voice_id is omitted")
    voices: List[VoiceResponse]
