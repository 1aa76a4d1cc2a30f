"""
Utility Modules for tts-gate.

    - audio.py: PCM/WAV encoding helpers
    - timeit.py: Performance measurement
"""
