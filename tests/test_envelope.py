"""
Tests for identity helpers and response envelope normalization.
"""

import pytest

from dashstore.common.utils import (
    find_index,
    first_present,
    from_epoch_millis,
    resolve_identity,
    same_identity,
    sanitize_dict,
    to_epoch_millis,
)
from dashstore.resources.envelope import (
    extract_meta,
    normalize_item,
    normalize_list,
    unwrap_item,
)


class TestIdentity:
    """Test identity resolution across id, _id and uuid."""

    def test_resolution_order(self):
        assert resolve_identity({"id": 1, "_id": "a", "uuid": "u"}) == 1
        assert resolve_identity({"_id": "a", "uuid": "u"}) == "a"
        assert resolve_identity({"uuid": "u"}) == "u"

    def test_empty_values_are_skipped(self):
        assert resolve_identity({"id": "", "_id": None, "uuid": "u"}) == "u"
        assert resolve_identity({"title": "no id"}) is None
        assert resolve_identity(None) is None
        assert resolve_identity(["id"]) is None

    def test_zero_is_a_valid_identity(self):
        assert resolve_identity({"id": 0}) == 0

    def test_string_and_number_identities_match(self):
        assert same_identity(5, "5")
        assert same_identity("abc", "abc")
        assert not same_identity(5, "6")
        assert not same_identity(None, None)

    def test_find_index(self):
        records = [{"id": 1}, {"_id": "2"}, {"uuid": "x"}]
        assert find_index(records, "1") == 0
        assert find_index(records, 2) == 1
        assert find_index(records, "x") == 2
        assert find_index(records, "missing") == -1


class TestHelpers:
    """Test the small helpers used by session and credential code."""

    def test_first_present_follows_dotted_paths(self):
        body = {"data": {"token": "t-1"}, "token": ""}
        assert first_present(body, ["access_token", "token", "data.token"]) == "t-1"
        assert first_present(body, ["missing.path"], default="none") == "none"
        assert first_present("not a dict", ["token"]) is None

    def test_epoch_millis_round_trip(self):
        dt = from_epoch_millis("1700000000000")
        assert to_epoch_millis(dt) == 1700000000000

    def test_epoch_millis_rejects_garbage(self):
        with pytest.raises(ValueError):
            from_epoch_millis("tomorrow")
        with pytest.raises(ValueError):
            from_epoch_millis(True)

    def test_sanitize_dict(self):
        data = {"email": "a@b.c", "password": "hunter2", "nested": {"Token": "t"}}
        sanitized = sanitize_dict(data)
        assert sanitized["email"] == "a@b.c"
        assert sanitized["password"] == "***"
        assert sanitized["nested"]["Token"] == "***"
        assert data["password"] == "hunter2"


class TestNormalizeList:
    """Every accepted collection shape yields the same flat list."""

    RECORDS = [{"id": 1}, {"id": 2}]

    @pytest.mark.parametrize("body", [
        RECORDS,
        {"data": RECORDS},
        {"items": RECORDS},
        {"result": RECORDS},
    ])
    def test_equivalent_shapes(self, body):
        assert normalize_list(body).items == self.RECORDS

    def test_data_takes_precedence(self):
        body = {"data": [{"id": 1}], "items": [{"id": 9}]}
        assert normalize_list(body).items == [{"id": 1}]

    @pytest.mark.parametrize("body", [
        None,
        "oops",
        42,
        {"data": None},
        {"data": {"id": 1}},
        {"id": 1, "title": "bare object"},
    ])
    def test_unrecognized_shapes_become_empty(self, body):
        envelope = normalize_list(body)
        assert envelope.items == []
        assert envelope.item is None

    def test_items_are_copied(self):
        records = [{"id": 1}]
        envelope = normalize_list(records)
        envelope.items.append({"id": 2})
        assert records == [{"id": 1}]

    def test_pagination_meta(self):
        body = {
            "data": self.RECORDS,
            "meta": {"current_page": 2, "last_page": 5, "total": 48, "path": "/workshops"},
        }
        meta = normalize_list(body).meta
        assert meta == {"page": 2, "total_pages": 5, "total": 48, "path": "/workshops"}

    def test_top_level_pagination(self):
        body = {"data": self.RECORDS, "page": 1, "total_pages": 3, "per_page": 2}
        assert extract_meta(body) == {"page": 1, "total_pages": 3, "per_page": 2}

    def test_no_meta_without_pagination(self):
        assert normalize_list({"data": self.RECORDS}).meta is None
        assert normalize_list(self.RECORDS).meta is None


class TestNormalizeItem:
    """Single-item responses unwrap one level of ``data``."""

    def test_wrapped_item(self):
        assert unwrap_item({"data": {"id": 3}}) == {"id": 3}

    def test_bare_item(self):
        assert unwrap_item({"id": 3, "title": "x"}) == {"id": 3, "title": "x"}

    def test_null_data_is_no_item(self):
        assert unwrap_item({"data": None}) is None
        assert unwrap_item({"data": []}) is None
        assert unwrap_item(None) is None
        assert unwrap_item("text") is None

    def test_record_with_data_field_and_identity(self):
        body = {"id": 4, "data": None}
        assert unwrap_item(body) == body

    def test_normalize_item_wraps_items(self):
        envelope = normalize_item({"data": {"id": 3}})
        assert envelope.item == {"id": 3}
        assert envelope.items == [{"id": 3}]

        empty = normalize_item({"data": None})
        assert empty.item is None
        assert empty.items == []
