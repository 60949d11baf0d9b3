"""Unit tests for tolerant JSON array extraction."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "plugin"))

from memos_memory.utils.json_extract import extract_json_array, repair_json


def test_plain_array():
    assert extract_json_array("[0, 2, 5]") == [0, 2, 5]


def test_array_inside_prose():
    assert extract_json_array("Relevant ones: [1, 3]. Done.") == [1, 3]


def test_empty_array_is_not_none():
    assert extract_json_array("None are relevant: []") == []


def test_no_array():
    assert extract_json_array("I could not decide.") is None
    assert extract_json_array("") is None


def test_lazy_match_takes_first_array():
    assert extract_json_array("[1] and later [2, 3]") == [1]


def test_greedy_match_spans_objects():
    text = 'Here: [{"content": "a", "tags": ["x"]}, {"content": "b"}] end'
    assert extract_json_array(text, greedy=True) == [
        {"content": "a", "tags": ["x"]},
        {"content": "b"},
    ]


def test_trailing_comma_repaired():
    assert extract_json_array("[0, 1, ]") == [0, 1]


def test_curly_quotes_repaired():
    text = "[{“content”: “use uv”}]"
    assert extract_json_array(text, greedy=True) == [{"content": "use uv"}]


def test_unrepairable_returns_none():
    assert extract_json_array("[zero, one]") is None


def test_repair_json():
    assert repair_json('{"a": [1, 2,],}') == '{"a": [1, 2]}'
