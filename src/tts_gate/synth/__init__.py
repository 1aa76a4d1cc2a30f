"""
Speech synthesis backends.

    - engine.py: AudioArtifact, BaseSynthesizer, get_synthesizer()
    - gemini.py: Google Gemini TTS (network)
    - tone.py: Offline sine-tone generator
    - voices.py: Voice catalog
"""
from .engine import AudioArtifact, BaseSynthesizer, get_synthesizer, reset_synthesizer
from .voices import VOICES, VoiceOption, default_voice_id, get_voice

__all__ = [
    "AudioArtifact",
    "BaseSynthesizer",
    "get_synthesizer",
    "reset_synthesizer",
    "VOICES",
    "VoiceOption",
    "default_voice_id",
    "get_voice",
]
