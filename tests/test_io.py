"""Tests for io.py - JSON/JSONL helpers."""

import math

from kairos.io import append_jsonl, read_json, read_jsonl, to_jsonable, write_json
from kairos.types import ConfusionVector, SafetyZone


class TestJson:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        write_json(path, {"a": 1, "zone": SafetyZone.RED})
        assert read_json(path) == {"a": 1, "zone": "RED"}

    def test_missing_returns_default(self, tmp_path):
        assert read_json(tmp_path / "nope.json", default={}) == {}

    def test_corrupt_returns_default(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        assert read_json(path) is None


class TestJsonl:
    def test_append_and_read(self, tmp_path):
        path = tmp_path / "events.jsonl"
        append_jsonl(path, {"n": 1})
        append_jsonl(path, {"n": 2})
        assert [r["n"] for r in read_jsonl(path)] == [1, 2]

    def test_skips_corrupt_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text('{"n": 1}\nnot json\n\n{"n": 2}\n')
        assert len(read_jsonl(path)) == 2


class TestToJsonable:
    def test_sets_and_tuples(self):
        assert to_jsonable({"s": {"b", "a"}, "t": (1, 2)}) == {"s": ["a", "b"], "t": [1, 2]}

    def test_non_finite(self):
        assert to_jsonable(math.nan) is None

    def test_to_dict_objects(self):
        assert to_jsonable(ConfusionVector())["magnitude"] == 0.1
