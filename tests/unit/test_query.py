"""
Unit tests for percent decoding and query string parsing.
"""

import pytest

from cgikit.http.errors import CGIInputError
from cgikit.http.percent import percent_decode
from cgikit.http.query import (
    QueryAbsent,
    QueryError,
    QueryParsed,
    parse_query_string,
)


class TestPercentDecode:
    """Tests for percent_decode()."""

    def test_plus_and_escape(self):
        """Test that + and %20 both become spaces."""
        assert percent_decode("a+b%20c") == "a b c"

    def test_plain_text_unchanged(self):
        assert percent_decode("hello") == "hello"
        assert percent_decode("") == ""

    def test_multibyte_utf8(self):
        """Test that escapes combine into one UTF-8 character."""
        assert percent_decode("caf%C3%A9") == "café"
        assert percent_decode("%e2%9c%93") == "✓"

    def test_encoded_reserved_characters(self):
        assert percent_decode("a%3Db%26c%2Bd") == "a=b&c+d"

    @pytest.mark.parametrize("text", ["abc%2", "abc%", "%"])
    def test_truncated_escape(self, text: str):
        """Test that an escape cut off at the end fails cleanly."""
        with pytest.raises(CGIInputError) as exc_info:
            percent_decode(text)

        assert "escape sequence" in exc_info.value.details
        assert exc_info.value.status_code == 400

    def test_non_hex_escape(self):
        with pytest.raises(CGIInputError) as exc_info:
            percent_decode("abc%zz")

        assert "index 3" in exc_info.value.details

    def test_signed_escape_rejected(self):
        """Test that '%+1' is not accepted as a hex number."""
        with pytest.raises(CGIInputError):
            percent_decode("%+1")

    def test_invalid_utf8(self):
        with pytest.raises(CGIInputError) as exc_info:
            percent_decode("%FF%FE")

        assert "not UTF-8" in exc_info.value.details


class TestParseQueryString:
    """Tests for parse_query_string()."""

    def test_absent(self):
        assert parse_query_string(None) == QueryAbsent()

    def test_empty_string(self):
        """Test that QUERY_STRING="" is a single empty chunk and fails."""
        query = parse_query_string("")

        assert isinstance(query, QueryError)
        assert query.error.details == 'Chunk "" not a name=value pair.'

    def test_simple_pairs(self):
        query = parse_query_string("page=1&limit=10")

        assert isinstance(query, QueryParsed)
        assert query.params == {"page": "1", "limit": "10"}

    def test_last_duplicate_wins(self):
        query = parse_query_string("a=1&b=2&a=3")

        assert isinstance(query, QueryParsed)
        assert query["a"] == "3"
        assert query["b"] == "2"
        assert len(query) == 2

    def test_decodes_names_and_values(self):
        query = parse_query_string("first+name=J%C3%B6rg&q=a%26b")

        assert isinstance(query, QueryParsed)
        assert query.get("first name") == "Jörg"
        assert query.get("q") == "a&b"

    def test_splits_on_first_equals_only(self):
        query = parse_query_string("expr=a=b")

        assert isinstance(query, QueryParsed)
        assert query["expr"] == "a=b"

    def test_empty_value(self):
        query = parse_query_string("flag=")

        assert isinstance(query, QueryParsed)
        assert query["flag"] == ""
        assert "flag" in query

    def test_chunk_without_equals_fails_whole_query(self):
        """Test that one bad chunk gives an error, not a partial map."""
        query = parse_query_string("a=1&bogus")

        assert isinstance(query, QueryError)
        assert query.error.status_code == 400
        assert query.error.message == "Invalid query string."
        assert '"bogus"' in query.error.details

    def test_trailing_ampersand_fails(self):
        assert isinstance(parse_query_string("a=1&"), QueryError)

    def test_bad_name_encoding(self):
        query = parse_query_string("ok=1&n%zz=2")

        assert isinstance(query, QueryError)
        assert "decoding name" in query.error.details
        assert "n%zz=2" in query.error.details

    def test_bad_value_encoding(self):
        query = parse_query_string("q=abc%2")

        assert isinstance(query, QueryError)
        assert "decoding value" in query.error.details
        assert isinstance(query.error, CGIInputError)
