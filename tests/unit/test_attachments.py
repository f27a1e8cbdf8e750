"""
Unit tests for adp_portal/attachments.py -- normalizing, encoding and fail-fast batches.
"""
import asyncio
import base64
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")

from adp_portal import attachments
from adp_portal.attachments import Encoded, Raw
from adp_portal.exceptions import AttachmentError

pytestmark = pytest.mark.unit


class FakeUpload:
    """Just enough of Starlette's UploadFile for read_upload()."""

    def __init__(self, data, filename="report.pdf", content_type="application/pdf"):
        self._data = data
        self.filename = filename
        self.content_type = content_type

    async def read(self):
        return self._data


# ── normalize ────────────────────────────────────────────────────────

class TestNormalize:
    def test_empty_values(self):
        assert attachments.normalize(None) is None
        assert attachments.normalize("") is None

    def test_string_is_encoded(self):
        assert attachments.normalize("data:image/png;base64,AAAA") == Encoded("data:image/png;base64,AAAA")

    def test_bytes_are_raw(self):
        assert attachments.normalize(b"abc") == Raw(b"abc")

    def test_tagged_values_pass_through(self):
        raw = Raw(b"x", "a.png", "image/png")
        assert attachments.normalize(raw) is raw

    def test_unsupported_type(self):
        with pytest.raises(AttachmentError):
            attachments.normalize(42)


# ── encoding ─────────────────────────────────────────────────────────

class TestEncode:
    def test_data_uri(self):
        uri = attachments.to_data_uri(Raw(b"hello", "a.txt", "text/plain"))
        assert uri == "data:text/plain;base64," + base64.b64encode(b"hello").decode()

    def test_encoded_passes_through(self):
        enc = Encoded("https://example.org/a.pdf")
        assert asyncio.run(attachments.encode(enc)) is enc

    def test_idempotent(self):
        once = asyncio.run(attachments.encode(Raw(b"\x89PNG", "p.png", "image/png")))
        twice = asyncio.run(attachments.encode(once))
        assert isinstance(once, Encoded)
        assert once == twice

    def test_none_stays_none(self):
        assert asyncio.run(attachments.encode(None)) is None

    def test_fields_encoded_together(self):
        result = asyncio.run(attachments.encode_fields({
            "workImage": Raw(b"img", "w.png", "image/png"),
            "detailedReport": "data:application/pdf;base64,AAA=",
            "committeeReport": None,
        }))
        assert result["workImage"].uri.startswith("data:image/png;base64,")
        assert result["detailedReport"] == Encoded("data:application/pdf;base64,AAA=")
        assert result["committeeReport"] is None

    def test_fail_fast_names_field(self):
        with pytest.raises(AttachmentError) as exc_info:
            asyncio.run(attachments.encode_fields({
                "workImage": Raw(b"ok"),
                "councilResolution": Raw("not bytes"),
            }))
        assert exc_info.value.field == "councilResolution"
        assert exc_info.value.reason == "payload is not binary"
        assert exc_info.value.message == (
            "Could not read attachment 'councilResolution': payload is not binary"
        )


# ── uploads and helpers ──────────────────────────────────────────────

class TestReadUpload:
    def test_reads_bytes(self):
        att = asyncio.run(attachments.read_upload(FakeUpload(b"%PDF"), "detailedReport"))
        assert att == Raw(b"%PDF", "report.pdf", "application/pdf")

    def test_no_upload(self):
        assert asyncio.run(attachments.read_upload(None, "workImage")) is None

    def test_empty_file(self):
        assert asyncio.run(attachments.read_upload(FakeUpload(b""), "workImage")) is None

    def test_mime_from_name(self):
        upload = FakeUpload(b"x", filename="site.jpg", content_type="application/octet-stream")
        assert asyncio.run(attachments.read_upload(upload, "workImage")).mime == "image/jpeg"


class TestHelpers:
    def test_display_url_absent(self):
        assert attachments.display_url(None) is None
