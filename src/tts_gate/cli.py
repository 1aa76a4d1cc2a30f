"""
Command-Line Interface for tts-gate.

Runs one gated generation without the HTTP server. Daily counts persist
between runs through the JSON usage file; the minute window starts fresh
in every process.

Usage Examples:
    # Generate speech
    tts-gate --text "Merhaba dünya" --voice Kore --out hello.wav

    # Positional text (same as above)
    tts-gate "Merhaba dünya" --out hello.wav

    # Check admission only (no provider call, nothing counted)
    tts-gate --text "Test" --dry-run --json

    # Show quota usage / voice catalog
    tts-gate --usage
    tts-gate --voices

    # Rotate to a new key (resets today's count)
    tts-gate --rotate-credential --api-key "$NEW_KEY"

Environment Variables:
    TTS_GATE_SETTINGS: Settings file (default config/settings.yaml)
    TTS_GATE_ENGINE: Engine override (gemini, tone)
    GEMINI_API_KEY: Provider key
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from tts_gate.core.config import ConfigValidationError, load_settings, settings_path
from tts_gate.core.logging import configure_logging, get_logger, info, set_request_id
from tts_gate.synth.voices import VOICES


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-gate CLI (usage-gated Gemini TTS)")

    parser.add_argument("text_pos", nargs="?", help="Text to synthesize (positional)")
    parser.add_argument("--text", help="Text to synthesize")
    parser.add_argument("--voice", help="Catalog voice id (see --voices)")
    parser.add_argument("--target-minutes", type=float,
                        help="Advisory target playback duration in minutes")
    parser.add_argument("--out", help="Output WAV path (default out.wav)")
    parser.add_argument("--settings", help="Settings file (default $TTS_GATE_SETTINGS or config/settings.yaml)")

    parser.add_argument("--usage", action="store_true", help="Show quota usage and exit")
    parser.add_argument("--voices", action="store_true", help="List voices and exit")
    parser.add_argument("--rotate-credential", action="store_true",
                        help="Reset both quota windows (optionally with --api-key)")
    parser.add_argument("--api-key", help="New API key for --rotate-credential")

    parser.add_argument("--dry-run", action="store_true",
                        help="Evaluate admission without calling the provider")
    parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser.parse_args(argv)


def _emit(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def _resolve_text(args: argparse.Namespace) -> str:
    """
    Pick the input text (--text wins over the positional argument).

    Raises:
        SystemExit: If neither was given.
    """
    if args.text is not None:
        return args.text
    if args.text_pos is not None:
        return args.text_pos
    raise SystemExit("Provide --text or a positional text.")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 on success, 1 on denial or error.
    """
    args = _parse_args(argv)

    if args.voices:
        _emit({"ok": True, "voices": [v.to_dict() for v in VOICES]}, args.json)
        return 0

    configure_logging()
    log = get_logger("tts-gate.cli")
    set_request_id(str(uuid4())[:12])

    from tts_gate.services.orchestrator import build_orchestrator

    try:
        settings = load_settings(args.settings or settings_path())
        orchestrator = build_orchestrator(settings)
    except (FileNotFoundError, ConfigValidationError) as e:
        _emit({"ok": False, "error": "CONFIG_ERROR", "message": str(e)}, args.json)
        return 1

    if args.usage:
        _emit({"ok": True, "usage": orchestrator.usage().to_dict()}, args.json)
        return 0

    if args.rotate_credential:
        try:
            usage = orchestrator.rotate_credential(args.api_key)
        except ValueError as e:
            _emit({"ok": False, "error": "INPUT_ERROR", "message": str(e)}, args.json)
            return 1
        _emit({"ok": True, "rotated": True, "usage": usage.to_dict()}, args.json)
        return 0

    text = _resolve_text(args)

    if args.dry_run:
        verdict = orchestrator.admission(text)
        payload = {
            "ok": verdict.allowed,
            "dry_run": True,
            "reason": verdict.reason.value if verdict.reason else None,
            "usage": orchestrator.usage().to_dict(),
        }
        info(log, "dry_run", allowed=verdict.allowed, chars=len(text))
        _emit(payload, args.json)
        return 0 if verdict.allowed else 1

    outcome = orchestrator.generate(
        text,
        voice_id=args.voice,
        target_duration_minutes=args.target_minutes,
    )
    if not outcome.ok:
        payload = outcome.error.to_dict()
        if outcome.usage is not None:
            payload["usage"] = outcome.usage.to_dict()
        _emit(payload, args.json)
        return 1

    out_path = Path(args.out or "out.wav")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(outcome.artifact.wav_bytes)

    payload = {
        "ok": True,
        "out": str(out_path),
        "bytes": len(outcome.artifact.wav_bytes),
        "sample_rate": outcome.artifact.sample_rate,
        "duration_seconds": round(outcome.artifact.duration_seconds, 3),
        "voice_id": outcome.artifact.voice_id,
        "target_duration_minutes": outcome.target_duration_minutes,
        "usage": outcome.usage.to_dict() if outcome.usage else None,
    }
    if outcome.details:
        payload["details"] = outcome.details
    _emit(payload, args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
