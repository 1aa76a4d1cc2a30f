def test_logging_jsonl_persistence(monkeypatch, tmp_path):
    import json
    import logging

    from tts_gate.core.logging import configure_logging, get_logger, info, set_request_id

    monkeypatch.setenv("TTS_GATE_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TTS_GATE_JSONL_FILE", "test.jsonl")

    try:
        configure_logging(level=2, force=True)
        log = get_logger("test")
        set_request_id("rid-1")
        info(log, "hello", event="logging_test", daily_remaining=1499)

        for handler in logging.getLogger().handlers:
            if hasattr(handler, "flush"):
                handler.flush()

        log_path = tmp_path / "test.jsonl"
        assert log_path.exists()

        line = log_path.read_text(encoding="utf-8").strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "hello"
        assert payload["request_id"] == "rid-1"
        assert payload["event"] == "logging_test"
        assert payload["extra"]["daily_remaining"] == 1499
    finally:
        set_request_id("-")
        monkeypatch.delenv("TTS_GATE_LOG_DIR")
        for handler in logging.getLogger().handlers:
            handler.close()
        configure_logging(level=2, force=True)
