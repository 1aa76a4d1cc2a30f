"""
Tests for the command-line interface.

Runs use the offline tone engine and a temporary JSON usage file, so the
daily count persists between invocations exactly as it does for a user.
"""
import json

import pytest

from tts_gate import cli
from tts_gate.synth.engine import reset_synthesizer


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    monkeypatch.delenv("TTS_GATE_ENGINE", raising=False)
    monkeypatch.delenv("TTS_GATE_STORAGE_PATH", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        "quota:\n"
        "  daily_limit: 2\n"
        "  minute_limit: 15\n"
        "storage:\n"
        "  backend: json\n"
        f"  path: {(tmp_path / 'usage.json').as_posix()}\n"
        "synth:\n"
        "  engine: tone\n"
        "  default_voice: Kore\n",
        encoding="utf-8",
    )
    reset_synthesizer()
    yield str(path)
    reset_synthesizer()


def _last_json(out: str) -> dict:
    """Console logs share stdout; the CLI payload is the last JSON line."""
    for line in reversed(out.strip().splitlines()):
        line = line.strip()
        if line.startswith("{"):
            return json.loads(line)
    raise AssertionError(f"no JSON payload in output: {out!r}")


def _run(capsys, *argv):
    code = cli.main(list(argv))
    return code, _last_json(capsys.readouterr().out)


def test_cli_voices(capsys):
    code, payload = _run(capsys, "--voices", "--json")
    assert code == 0
    assert [v["id"] for v in payload["voices"]] == ["Aoede", "Kore", "Male_7", "Male_10"]


def test_cli_missing_settings(capsys, tmp_path):
    code, payload = _run(capsys, "--usage", "--settings", str(tmp_path / "missing.yaml"), "--json")
    assert code == 1
    assert payload["error"] == "CONFIG_ERROR"


def test_cli_dry_run(capsys, settings_file):
    code, payload = _run(capsys, "--text", "dry run test", "--dry-run", "--settings", settings_file, "--json")
    assert code == 0
    assert payload["ok"] is True
    assert payload["dry_run"] is True
    assert payload["usage"]["daily_count"] == 0


def test_cli_dry_run_empty_text(capsys, settings_file):
    code, payload = _run(capsys, "--text", "   ", "--dry-run", "--settings", settings_file, "--json")
    assert code == 1
    assert payload["reason"] == "EMPTY_INPUT"


def test_cli_synth_outputs_wav(capsys, settings_file, tmp_path):
    out_path = tmp_path / "nested" / "out.wav"

    code, payload = _run(
        capsys, "Merhaba dünya.", "--voice", "Male_7", "--target-minutes", "2",
        "--out", str(out_path), "--settings", settings_file, "--json",
    )

    assert code == 0
    data = out_path.read_bytes()
    assert data[:4] == b"RIFF"
    assert data[8:12] == b"WAVE"
    assert payload["voice_id"] == "Male_7"
    assert payload["target_duration_minutes"] == 2.0
    assert payload["usage"]["daily_count"] == 1
    assert payload["usage"]["minute_count"] == 1


def test_cli_daily_count_persists_and_denies(capsys, settings_file, tmp_path):
    out = str(tmp_path / "out.wav")
    for _ in range(2):
        code, _payload = _run(capsys, "--text", "hello", "--out", out, "--settings", settings_file, "--json")
        assert code == 0

    code, payload = _run(capsys, "--usage", "--settings", settings_file, "--json")
    assert code == 0
    assert payload["usage"]["daily_count"] == 2
    assert payload["usage"]["daily_remaining"] == 0
    # New process, new minute window
    assert payload["usage"]["minute_count"] == 0

    code, payload = _run(capsys, "--text", "hello", "--out", out, "--settings", settings_file, "--json")
    assert code == 1
    assert payload["error"] == "QUOTA_DENIED"
    assert payload["reason"] == "DAILY_LIMIT_REACHED"


def test_cli_rotate_credential(capsys, settings_file, tmp_path):
    _run(capsys, "--text", "hello", "--out", str(tmp_path / "out.wav"), "--settings", settings_file, "--json")

    code, payload = _run(capsys, "--rotate-credential", "--api-key", "new-key", "--settings", settings_file, "--json")
    assert code == 0
    assert payload["rotated"] is True
    assert payload["usage"]["daily_count"] == 0


def test_cli_rotate_rejects_blank_key(capsys, settings_file):
    code, payload = _run(capsys, "--rotate-credential", "--api-key", "  ", "--settings", settings_file, "--json")
    assert code == 1
    assert payload["error"] == "INPUT_ERROR"


def test_cli_unknown_voice(capsys, settings_file, tmp_path):
    code, payload = _run(
        capsys, "--text", "hello", "--voice", "Puck", "--out", str(tmp_path / "out.wav"),
        "--settings", settings_file, "--json",
    )
    assert code == 1
    assert payload["error"] == "INPUT_ERROR"
    assert not (tmp_path / "out.wav").exists()


def test_cli_requires_text(settings_file):
    with pytest.raises(SystemExit):
        cli.main(["--settings", settings_file])
