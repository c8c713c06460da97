"""Tests for JsonHistoryStore."""

from __future__ import annotations

import json

from aegis.shared.infrastructure.history_store import JsonHistoryStore


class TestJsonHistoryStore:
    def test_append_trims_to_limit(self, tmp_path):
        store = JsonHistoryStore(tmp_path / "history.json", limit=3)

        for i in range(5):
            store.append([{"run": i}])

        assert [e["run"] for e in store.load()] == [2, 3, 4]
        assert store.last() == {"run": 4}

    def test_missing_file(self, tmp_path):
        store = JsonHistoryStore(tmp_path / "absent.json")
        assert store.load() == []
        assert store.last() is None

    def test_corrupt_file_is_treated_as_empty(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{broken")
        store = JsonHistoryStore(path)

        assert store.load() == []
        store.append([{"run": 1}])
        assert json.loads(path.read_text()) == [{"run": 1}]

    def test_non_list_and_non_dict_entries(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text('{"run": 1}')
        assert JsonHistoryStore(path).load() == []

        path.write_text('[{"run": 1}, 7, "x"]')
        assert JsonHistoryStore(path).load() == [{"run": 1}]
