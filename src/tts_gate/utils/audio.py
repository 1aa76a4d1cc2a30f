"""
Audio Encoding Utilities.

All audio leaving tts-gate uses the same format:
    - WAV container
    - PCM 16-bit encoding
    - Mono channel
    - 24000 Hz for Gemini (engine dependent)

Gemini's speech model returns headerless little-endian PCM-16 bytes,
so the only real work here is wrapping samples in a WAV container.

Dependencies:
    - numpy: Sample arrays
    - soundfile: WAV writing/reading (libsndfile)

Example:
    >>> wav = wav_bytes_from_pcm16(pcm_bytes, 24000)
    >>> wav_duration_seconds(wav)
    3.52
"""
from __future__ import annotations

import base64
import io

import numpy as np
import soundfile as sf


def wav_bytes_from_pcm16(pcm: bytes, sample_rate: int) -> bytes:
    """
    Wrap raw little-endian PCM-16 mono samples in a WAV container.

    Args:
        pcm: Headerless PCM-16 bytes. A trailing odd byte is dropped.
        sample_rate: Sample rate of the samples.

    Returns:
        Complete WAV file bytes.
    """
    usable = len(pcm) - (len(pcm) % 2)
    samples = np.frombuffer(pcm[:usable], dtype="<i2")
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def wav_bytes_from_float32(waveform: np.ndarray, sample_rate: int) -> bytes:
    """
    Encode a float32 waveform in [-1, 1] as PCM-16 WAV bytes.

    Multi-dimensional input is flattened to mono.
    """
    wav = np.asarray(waveform, dtype=np.float32)
    if wav.ndim > 1:
        wav = wav.reshape(-1)
    buf = io.BytesIO()
    sf.write(buf, wav, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def wav_duration_seconds(wav_bytes: bytes) -> float:
    """Read the playback duration of WAV bytes."""
    info = sf.info(io.BytesIO(wav_bytes))
    return float(info.frames) / float(info.samplerate) if info.samplerate else 0.0


def wav_data_url(wav_bytes: bytes) -> str:
    """Build a data: URL that browsers can play directly."""
    return "data:audio/wav;base64," + base64.b64encode(wav_bytes).decode("ascii")
