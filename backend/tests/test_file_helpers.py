from datetime import datetime

import pytest

from sharein.core.errors import BadRequest
from sharein.services.file_service import normalize_access, parse_schedule


def test_normalize_access_accepts_list():
    assert normalize_access(["a", " b ", "a", ""]) == ["a", "b"]


def test_normalize_access_decodes_json_list():
    assert normalize_access('["u1", "u2"]') == ["u1", "u2"]


def test_normalize_access_falls_back_to_comma_split():
    assert normalize_access("u1, u2 ,,u3") == ["u1", "u2", "u3"]


def test_normalize_access_non_list_json_is_split():
    assert normalize_access("42") == ["42"]


def test_normalize_access_none_and_empty():
    assert normalize_access(None) == []
    assert normalize_access("") == []
    assert normalize_access("[]") == []


def test_normalize_access_rejects_other_types():
    with pytest.raises(BadRequest):
        normalize_access({"u1": True})


def test_parse_schedule_converts_to_naive_utc():
    assert parse_schedule("2030-01-01T12:00:00+02:00") == datetime(2030, 1, 1, 10, 0, 0)
    assert parse_schedule("2030-01-01T12:00:00Z") == datetime(2030, 1, 1, 12, 0, 0)
    assert parse_schedule("2030-01-01") == datetime(2030, 1, 1)


def test_parse_schedule_empty_and_invalid():
    assert parse_schedule(None) is None
    assert parse_schedule("  ") is None
    with pytest.raises(BadRequest):
        parse_schedule("next tuesday")
