"""
Unit tests for NamedFile construction, setters and response building.
"""

import io
import os
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from fileserve.exceptions import InvalidInputError, ModificationTimeError, UnexpectedEndOfFile
from fileserve.named_file import NamedFile, default_content_disposition
from shared.http.conditionals import RequestConditionals
from shared.models.negotiation import ContentDisposition, DispositionType


def serve(named_file: NamedFile) -> TestClient:
    """Build a throwaway app that serves ``named_file`` at /file."""
    app = FastAPI()

    @app.api_route("/file", methods=["GET", "HEAD"])
    async def file_route(request: Request):
        return named_file.into_response(request)

    return TestClient(app)


class TestNamedFileConstruction:
    """Test opening files and deriving defaults from the path."""

    def test_open_derives_defaults(self, make_file):
        path = make_file("notes.txt", b"hello")

        with NamedFile.open(path) as named_file:
            assert named_file.path == path
            assert named_file.descriptor.size == 5
            assert named_file.config.content_type == "text/plain"
            assert named_file.config.content_disposition.render() == 'inline; filename="notes.txt"'
            assert named_file.modified is not None

        assert named_file.file.closed

    def test_unknown_extension_is_attachment(self, make_file):
        path = make_file("blob.unknownext", b"\x00\x01")

        with NamedFile.open(path) as named_file:
            assert named_file.config.content_type == "application/octet-stream"
            assert named_file.config.content_disposition.disposition == DispositionType.ATTACHMENT

    def test_from_file_uses_given_name(self, make_file):
        path = make_file("data.bin", b"12345")

        with open(path, "rb") as f:
            named_file = NamedFile.from_file(f, "renamed/picture.png")
            assert named_file.config.content_type == "image/png"
            assert named_file.config.content_disposition.render() == 'inline; filename="picture.png"'
            assert named_file.descriptor.size == 5

    @pytest.mark.parametrize("path", ["/", "", "static/.."])
    def test_open_without_filename_rejected(self, path):
        with pytest.raises(InvalidInputError):
            NamedFile.open(path)

    def test_invalid_input_error_is_value_error(self):
        assert issubclass(InvalidInputError, ValueError)

    def test_from_file_without_filename_rejected(self, make_file):
        path = make_file("data.bin", b"x")
        with open(path, "rb") as f:
            with pytest.raises(InvalidInputError):
                NamedFile.from_file(f, "/")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            NamedFile.open(tmp_path / "missing.txt")

    def test_from_file_requires_os_level_file(self):
        with pytest.raises(OSError):
            NamedFile.from_file(io.BytesIO(b"abc"), "x.txt")

    def test_non_ascii_disposition(self):
        disposition = default_content_disposition("résumé.pdf", "application/pdf")
        assert disposition.disposition == DispositionType.ATTACHMENT
        assert disposition.filename_ext == "résumé.pdf"

    def test_repr(self, make_file):
        with NamedFile.open(make_file("a.bin", b"abc")) as named_file:
            assert repr(named_file).endswith("a.bin', size=3)")


class TestNamedFileSetters:
    """Test chained configuration setters."""

    def test_setters_chain_and_update_config(self, make_file):
        with NamedFile.open(make_file("page.html", b"<p>")) as named_file:
            result = (
                named_file
                .set_content_type("text/x-custom")
                .set_content_encoding("gzip")
                .use_etag(False)
                .use_last_modified(False)
                .prefer_utf8(True)
                .set_status_code(404)
            )

            assert result is named_file
            assert named_file.config.content_type == "text/x-custom"
            assert named_file.config.content_encoding == "gzip"
            assert named_file.config.use_etag is False
            assert named_file.config.use_last_modified is False
            assert named_file.config.prefer_utf8 is True
            assert named_file.config.status_code == 404

    def test_validators_follow_flags(self, make_file):
        with NamedFile.open(make_file("a.bin", b"abc")) as named_file:
            assert named_file.etag() is not None
            assert named_file.last_modified() is not None

            named_file.use_etag(False).use_last_modified(False)

            assert named_file.etag() is None
            assert named_file.last_modified() is None

    def test_set_content_disposition_reenables_header(self, make_file):
        with NamedFile.open(make_file("a.bin", b"abc")) as named_file:
            named_file.disable_content_disposition()
            assert "Content-Disposition" not in named_file.negotiate(RequestConditionals()).headers

            named_file.set_content_disposition(
                ContentDisposition(disposition=DispositionType.INLINE, filename="b.bin")
            )
            headers = named_file.negotiate(RequestConditionals()).headers
            assert headers["Content-Disposition"] == 'inline; filename="b.bin"'


class TestNamedFileResponse:
    """Test conversion of a NamedFile into an HTTP response."""

    def test_full_response(self, make_file):
        content = b"0123456789" * 10
        named_file = NamedFile.open(make_file("data.txt", content))

        with serve(named_file) as client:
            response = client.get("/file")

        assert response.status_code == 200
        assert response.content == content
        assert response.headers["content-length"] == "100"
        assert response.headers["content-type"] == "text/plain"
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["etag"] == str(named_file.etag())
        assert response.headers["content-disposition"] == 'inline; filename="data.txt"'
        assert named_file.file.closed

    def test_range_response(self, make_file):
        content = bytes(range(100))
        named_file = NamedFile.open(make_file("data.bin", content))

        with serve(named_file) as client:
            response = client.get("/file", headers={"Range": "bytes=10-19"})

        assert response.status_code == 206
        assert response.content == content[10:20]
        assert response.headers["content-range"] == "bytes 10-19/100"
        assert response.headers["content-length"] == "10"

    def test_not_modified_has_empty_body(self, make_file):
        named_file = NamedFile.open(make_file("data.bin", b"abc"))
        etag = str(named_file.etag())

        with serve(named_file) as client:
            response = client.get("/file", headers={"If-None-Match": etag})

        assert response.status_code == 304
        assert response.content == b""
        assert response.headers["etag"] == etag
        assert named_file.file.closed

    def test_head_has_headers_but_no_body(self, make_file):
        named_file = NamedFile.open(make_file("data.bin", b"abcdef"))

        with serve(named_file) as client:
            response = client.head("/file")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-length"] == "6"
        assert "etag" in response.headers
        assert named_file.file.closed

    def test_prefer_utf8_response_header(self, make_file):
        named_file = NamedFile.open(make_file("notes.txt", b"hi")).prefer_utf8(True)

        with serve(named_file) as client:
            response = client.get("/file")

        assert response.headers["content-type"] == "text/plain; charset=utf-8"

    def test_status_override_streams_whole_file(self, make_file):
        named_file = NamedFile.open(make_file("missing.html", b"<h1>gone</h1>")).set_status_code(404)

        with serve(named_file) as client:
            response = client.get("/file", headers={"Range": "bytes=0-1"})

        assert response.status_code == 404
        assert response.content == b"<h1>gone</h1>"
        assert "content-range" not in response.headers

    def test_build_response_for_unsatisfiable_range(self, make_file):
        named_file = NamedFile.open(make_file("data.bin", b"abc"))

        outcome = named_file.negotiate(RequestConditionals(range="bytes=10-20"))
        response = named_file.build_response(outcome)

        assert response.status_code == 416
        assert response.headers["content-range"] == "bytes */3"
        assert response.body == b""
        assert named_file.file.closed


class TestNamedFileCleanup:
    """Test that the file handle is released when a request fails."""

    @pytest.mark.asyncio
    async def test_streaming_fault_closes_file(self, make_file):
        path = make_file("data.bin", b"z" * 1000)
        named_file = NamedFile.open(path)
        os.truncate(path, 150)

        response = named_file.build_response(named_file.negotiate(RequestConditionals()))

        received = []
        with pytest.raises(UnexpectedEndOfFile):
            async for chunk in response.body_iterator:
                received.append(chunk)

        assert b"".join(received) == b"z" * 150
        assert named_file.file.closed

    def test_negotiation_error_closes_file(self, make_file):
        path = make_file("old.bin", b"abc")
        os.utime(path, (-10, -10))
        named_file = NamedFile.open(path)
        request = Request({"type": "http", "method": "GET", "headers": []})

        with pytest.raises(ModificationTimeError):
            named_file.into_response(request)

        assert named_file.file.closed
