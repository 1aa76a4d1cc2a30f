"""
Tests for usage storage backends and the daily quota store.

Tests cover:
- MemoryStorage / JsonFileStorage read, write, delete
- JSON file survives a new storage instance (process restart)
- Corrupt file reads as empty
- Unseen date reads 0 without creating a record
- Increment on D leaves D+1 at 0
- clear() deletes only the given date
"""
import json
from datetime import date, timedelta

import pytest

from tts_gate.core.config import StorageConfig
from tts_gate.quota.daily import DailyQuotaStore, date_key
from tts_gate.quota.storage import JsonFileStorage, MemoryStorage, create_storage


class TestMemoryStorage:
    """In-process storage."""

    def test_read_missing_is_none(self):
        assert MemoryStorage().read("nope") is None

    def test_write_then_read(self):
        s = MemoryStorage()
        s.write("k", "3")
        assert s.read("k") == "3"

    def test_delete_missing_is_ok(self):
        s = MemoryStorage({"k": "1"})
        s.delete("k")
        s.delete("k")
        assert s.read("k") is None


class TestJsonFileStorage:
    """File-backed storage."""

    def test_missing_file_reads_empty(self, tmp_path):
        s = JsonFileStorage(tmp_path / "usage.json")
        assert s.read("k") is None
        assert not (tmp_path / "usage.json").exists()

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "usage.json"
        JsonFileStorage(path).write("gemini_tts_usage_2025-01-15", "12")

        assert JsonFileStorage(path).read("gemini_tts_usage_2025-01-15") == "12"
        assert json.loads(path.read_text(encoding="utf-8")) == {"gemini_tts_usage_2025-01-15": "12"}

    def test_delete(self, tmp_path):
        s = JsonFileStorage(tmp_path / "usage.json")
        s.write("a", "1")
        s.write("b", "2")
        s.delete("a")
        assert s.read("a") is None
        assert s.read("b") == "2"

    def test_corrupt_file_reads_empty_and_is_replaced(self, tmp_path):
        path = tmp_path / "usage.json"
        path.write_text("{not json", encoding="utf-8")
        s = JsonFileStorage(path)
        assert s.read("k") is None
        s.write("k", "1")
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "1"}

    def test_no_temp_files_left(self, tmp_path):
        s = JsonFileStorage(tmp_path / "usage.json")
        s.write("k", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["usage.json"]


class TestCreateStorage:
    def test_memory(self):
        assert isinstance(create_storage(StorageConfig(backend="memory")), MemoryStorage)

    def test_json(self, tmp_path):
        s = create_storage(StorageConfig(backend="json", path=str(tmp_path / "u.json")))
        assert isinstance(s, JsonFileStorage)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_storage(StorageConfig(backend="redis"))


class TestDailyQuotaStore:
    """Per-date counters."""

    DAY = date(2025, 1, 15)

    def test_date_key_is_iso(self):
        assert date_key(self.DAY) == "2025-01-15"

    def test_unseen_date_reads_zero_without_record(self):
        storage = MemoryStorage()
        store = DailyQuotaStore(storage)
        assert store.get("2025-01-15") == 0
        assert storage.keys() == []

    def test_increment_creates_record(self):
        storage = MemoryStorage()
        store = DailyQuotaStore(storage)
        assert store.increment("2025-01-15") == 1
        assert store.increment("2025-01-15") == 2
        assert storage.read("gemini_tts_usage_2025-01-15") == "2"

    def test_next_day_starts_at_zero(self):
        store = DailyQuotaStore(MemoryStorage())
        d = date_key(self.DAY)
        d1 = date_key(self.DAY + timedelta(days=1))
        store.increment(d)
        store.increment(d)

        assert store.get(d1) == 0
        assert store.get(d) == 2

    def test_clear_only_touches_given_date(self):
        store = DailyQuotaStore(MemoryStorage())
        store.increment("2025-01-14")
        store.increment("2025-01-15")
        store.clear("2025-01-15")
        assert store.get("2025-01-15") == 0
        assert store.get("2025-01-14") == 1

    def test_custom_prefix(self):
        storage = MemoryStorage()
        DailyQuotaStore(storage, key_prefix="usage:").increment("2025-01-15")
        assert storage.keys() == ["usage:2025-01-15"]

    def test_corrupt_value_reads_zero(self):
        storage = MemoryStorage({"gemini_tts_usage_2025-01-15": "lots"})
        store = DailyQuotaStore(storage)
        assert store.get("2025-01-15") == 0
        assert store.increment("2025-01-15") == 1

    def test_survives_restart_with_json_file(self, tmp_path):
        path = tmp_path / "usage.json"
        DailyQuotaStore(JsonFileStorage(path)).increment("2025-01-15")
        assert DailyQuotaStore(JsonFileStorage(path)).get("2025-01-15") == 1
