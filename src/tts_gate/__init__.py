"""
tts-gate: Usage-gated Gemini Text-to-Speech.

Submits text to the Gemini speech model and returns playable WAV audio,
while policing the two free-tier quotas on the client side so requests
never run into provider throttling:

    - Daily limit: 1500 requests per local calendar date (persisted)
    - Minute limit: 15 requests per 60-second window (in memory)

Key Features:
    - Pure admission guard evaluated before every request
    - Generation state machine (IDLE -> GENERATING -> SUCCESS/ERROR)
    - Provider error classification (429 / RESOURCE_EXHAUSTED vs other)
    - Credential rotation that resets both quota windows
    - FastAPI endpoints (/v1/generate, /v1/usage) and a CLI

Example Usage:
    >>> from tts_gate.core.config import Settings
    >>> from tts_gate.services import build_orchestrator
    >>>
    >>> settings = Settings(raw={'synth': {'engine': 'tone'}})
    >>> orchestrator = build_orchestrator(settings)
    >>> outcome = orchestrator.generate("Merhaba", voice_id="Kore")
    >>> if outcome.ok:
    ...     with open("output.wav", "wb") as f:
    ...         f.write(outcome.artifact.wav_bytes)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
