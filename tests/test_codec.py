"""Tests for the line codec."""

import pytest

from flatsocial.codec import SENTINEL, decode, encode, escape, merges_with_next


class TestEscape:
    """Tests for single-field escaping."""

    def test_plain_value_unchanged(self):
        assert escape("alice") == "alice"

    def test_none_becomes_empty(self):
        assert escape(None) == ""

    def test_non_string_values_are_stringified(self):
        assert escape(42) == "42"

    def test_comma_replaced_by_sentinel(self):
        assert escape("a,b,c") == f"a{SENTINEL}b{SENTINEL}c"

    @pytest.mark.parametrize("text", ["a\nb", "a\r\nb", "a\rb"])
    def test_line_breaks_become_single_space(self, text):
        assert escape(text) == "a b"


class TestEncodeDecode:
    """Tests for whole-line encoding and decoding."""

    def test_encode_joins_with_commas(self):
        assert encode(["1", "alice", "secret", ""]) == "1,alice,secret,"

    def test_decode_strips_single_terminator(self):
        assert decode("1,alice\n") == ["1", "alice"]
        assert decode("1,alice\r\n") == ["1", "alice"]

    def test_decode_keeps_trailing_empty_fields(self):
        """Posts without an image end in an empty column and must stay visible."""
        assert decode("1,2,hi,2024-01-01 00:00:00,") == ["1", "2", "hi", "2024-01-01 00:00:00", ""]

    def test_plain_fields_round_trip(self):
        fields = ["7", "bob", "hunter2", "123_cat.png"]
        assert decode(encode(fields)) == fields

    def test_comma_comes_back_as_sentinel(self):
        """Commas are not restored on read."""
        assert decode(encode(["1", "hello, world"])) == ["1", f"hello{SENTINEL} world"]

    def test_newline_in_content_stays_on_one_line(self):
        line = encode(["1", "first\nsecond"])
        assert "\n" not in line
        assert decode(line) == ["1", "first second"]

    def test_field_ending_in_sentinel_merges_with_next(self):
        line = encode(["1", f"odd{SENTINEL}", "next"])
        assert decode(line) == ["1", f"odd{SENTINEL},next"]

    def test_empty_line_decodes_to_single_empty_field(self):
        assert decode("") == [""]


class TestMergesWithNext:
    """Tests for detecting values that would swallow the next separator."""

    @pytest.mark.parametrize("value", ["bob,", ",", f"odd{SENTINEL}", "a,b,"])
    def test_trailing_comma_or_sentinel(self, value):
        assert merges_with_next(value) is True

    @pytest.mark.parametrize("value", ["bob", "a,b", "", None, ", lead", "x,\n"])
    def test_safe_values(self, value):
        assert merges_with_next(value) is False
