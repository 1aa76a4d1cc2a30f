"""
FastAPI REST API Layer for tts-gate.

    - routes.py: Generation, usage, voices, rotation, health, metrics
    - schemas.py: Request/response Pydantic models
    - dependencies.py: Settings, orchestrator and ticker singletons
"""
