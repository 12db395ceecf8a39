"""
Unit tests for CGI response building.
"""

import io
import json

import pytest

from cgikit.http.errors import CGIEnvironmentError, CGIError, CGIInputError
from cgikit.http.response import (
    EmptyResponse,
    FullResponse,
    HeaderMap,
    error_response,
    redirect,
)
from cgikit.http.status_codes import HTTPStatus, reason_phrase


class TestEmptyResponse:
    """Tests for EmptyResponse."""

    def test_default_is_200(self):
        assert EmptyResponse().to_bytes() == b"Status: 200 OK\r\n\r\n"

    def test_status_line_comes_first(self):
        response = (EmptyResponse(HTTPStatus.NO_CONTENT)
            .with_header("X-One", "1")
            .with_header("X-Two", "2"))

        assert response.to_bytes() == (
            b"Status: 204 No Content\r\n"
            b"X-One: 1\r\n"
            b"X-Two: 2\r\n"
            b"\r\n"
        )

    def test_plain_int_status(self):
        assert EmptyResponse(404).to_bytes().startswith(b"Status: 404 Not Found\r\n")

    def test_unknown_status_code(self):
        assert EmptyResponse(299).to_bytes().startswith(b"Status: 299 Unknown\r\n")

    def test_repeated_header_is_joined(self):
        """Test that case-insensitive repeats become one comma-joined header."""
        response = EmptyResponse()
        response.add_header("Vary", "Accept")
        response.add_header("vary", "Cookie")

        assert response.header("VARY") == "Accept, Cookie"
        assert list(response.headers()) == [("Vary", "Accept, Cookie")]

    def test_user_status_header_ignored(self):
        response = EmptyResponse(201).with_header("Status", "500 Oops")

        assert response.to_bytes() == b"Status: 201 Created\r\n\r\n"

    def test_respond_writes_to_stream(self):
        out = io.BytesIO()

        EmptyResponse(204).respond(out)

        assert out.getvalue() == b"Status: 204 No Content\r\n\r\n"


class TestFullResponse:
    """Tests for FullResponse."""

    def test_with_content_type_keeps_status_and_headers(self):
        empty = EmptyResponse(202).with_header("X-Trace", "abc")

        full = empty.with_content_type("text/plain")

        assert isinstance(full, FullResponse)
        assert full.status == 202
        assert full.header("x-trace") == "abc"

    def test_headers_are_copied(self):
        """Test that the FullResponse does not share headers with its source."""
        empty = EmptyResponse()
        full = empty.with_content_type("text/plain")
        full.add_header("X-Late", "1")

        assert empty.header("X-Late") is None

    def test_body_and_computed_headers(self):
        response = (EmptyResponse(200)
            .with_header("Cache-Control", "no-store")
            .with_content_type("text/plain")
            .with_body("Success."))

        assert response.to_bytes() == (
            b"Status: 200 OK\r\n"
            b"Cache-Control: no-store\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 8\r\n"
            b"\r\n"
            b"Success."
        )

    def test_empty_body_omits_content_headers(self):
        response = EmptyResponse(200).with_content_type("text/html")

        assert response.to_bytes() == b"Status: 200 OK\r\n\r\n"

    def test_hand_set_content_headers_replaced(self):
        response = EmptyResponse().with_content_type("application/json")
        response.add_header("Content-Type", "text/evil")
        response.add_header("content-length", "99999")
        response.with_body(b"{}")

        result = response.to_bytes()

        assert b"Content-Type: application/json\r\n" in result
        assert b"Content-Length: 2\r\n" in result
        assert b"evil" not in result
        assert b"99999" not in result

    def test_content_length_counts_bytes(self):
        response = EmptyResponse().with_content_type("text/plain").with_body("héllo")

        assert b"Content-Length: 6\r\n" in response.to_bytes()

    def test_write_appends(self):
        response = EmptyResponse().with_content_type("text/plain")

        assert response.write(b"line one\n") == 9
        print("line two", file=response)

        assert response.body == b"line one\nline two\n"

    def test_with_json(self):
        response = EmptyResponse().with_content_type("application/json")
        response.with_json({"name": "Jörg", "n": 1})

        assert json.loads(response.body) == {"name": "Jörg", "n": 1}
        assert "Jörg".encode() in response.body

    def test_with_json_pretty(self):
        response = EmptyResponse().with_content_type("application/json")
        response.with_json({"a": 1}, pretty=True)

        assert response.body == b'{\n  "a": 1\n}'

    def test_respond_writes_to_stream(self):
        out = io.BytesIO()

        EmptyResponse().with_content_type("text/plain").with_body("x").respond(out)

        assert out.getvalue().endswith(b"\r\n\r\nx")


class TestHeaderMap:
    """Tests for HeaderMap."""

    def test_first_spelling_kept(self):
        headers = HeaderMap()
        headers.add("X-Thing", "a")
        headers.add("x-thing", "b")

        assert list(headers.items()) == [("X-Thing", "a, b")]

    def test_set_replaces(self):
        headers = HeaderMap()
        headers.add("Location", "/a")
        headers.set("location", "/b")

        assert headers.get("LOCATION") == "/b"
        assert len(headers) == 1
        assert "Location" in headers


class TestConvenienceFunctions:
    """Tests for error_response() and redirect()."""

    def test_error_response(self):
        error = CGIInputError("Invalid query string.", 'Chunk "x" not a name=value pair.')

        response = error_response(error)

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.header("Cache-Control") == "no-store"
        assert response.body == b"Invalid query string.\n"
        assert b"Content-Type: text/plain; charset=utf-8\r\n" in response.to_bytes()

    def test_error_response_with_details(self):
        error = CGIInputError("Invalid query string.", "bad chunk")

        response = error_response(error, include_details=True)

        assert response.body == b"Invalid query string.\nbad chunk\n"

    def test_error_response_uses_error_status(self):
        error = CGIInputError("Request body too large.", status_code=413)

        response = error_response(error)

        assert response.to_bytes().startswith(b"Status: 413 Payload Too Large\r\n")

    def test_redirect(self):
        response = redirect("/new-location")

        assert response.status == HTTPStatus.FOUND
        assert response.header("Location") == "/new-location"

    def test_redirect_permanent(self):
        assert redirect("/new", HTTPStatus.MOVED_PERMANENTLY).status == 301


class TestErrors:
    """Tests for the CGIError hierarchy."""

    def test_details_default_to_message(self):
        error = CGIError("Something broke.")

        assert error.details == "Something broke."
        assert error.status_code == 400
        assert str(error) == "Something broke."

    def test_kinds(self):
        assert CGIEnvironmentError("x").kind == "environment"
        assert CGIInputError("x").kind == "input"
        assert isinstance(CGIInputError("x"), CGIError)

    def test_to_dict(self):
        error = CGIInputError("Unable to read request body.", "EOF", status_code=500)

        assert error.to_dict() == {
            "kind": "input",
            "status_code": 500,
            "message": "Unable to read request body.",
            "details": "EOF",
        }


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_status_categories(self):
        assert HTTPStatus.OK.is_success
        assert HTTPStatus.NOT_FOUND.is_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_error
        assert not HTTPStatus.OK.is_error

    @pytest.mark.parametrize("code, phrase", [(200, "OK"), (413, "Payload Too Large"), (599, "Unknown")])
    def test_reason_phrase(self, code: int, phrase: str):
        assert reason_phrase(code) == phrase
