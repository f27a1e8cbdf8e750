"""
Work attachments: raw uploads and their data-URI encoded form.

An attachment field holds one of
  None      - nothing uploaded
  Raw       - bytes received from an upload, not yet serializable
  Encoded   - a data URI (or any URL string) safe to persist

Raw values only live in memory. Anything written to storage goes through
to_wire() first, which encodes Raw and passes Encoded through untouched.
"""
import asyncio
import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional, Union

from adp_portal.exceptions import AttachmentError

logger = logging.getLogger(__name__)

ATTACHMENT_FIELDS = ("workImage", "detailedReport", "committeeReport", "councilResolution")

DEFAULT_MIME = "application/octet-stream"


@dataclass(frozen=True)
class Raw:
    data: bytes
    name: str = ""
    mime: str = DEFAULT_MIME


@dataclass(frozen=True)
class Encoded:
    uri: str


Attachment = Optional[Union[Raw, Encoded]]


def normalize(value) -> Attachment:
    """Coerce any accepted attachment value into the tagged form."""
    if value is None:
        return None
    if isinstance(value, (Raw, Encoded)):
        return value
    if isinstance(value, str):
        return Encoded(value) if value else None
    if isinstance(value, (bytes, bytearray)):
        return Raw(bytes(value))
    raise AttachmentError("attachment", f"unsupported type {type(value).__name__}")


def guess_mime(name: str, declared: str = None) -> str:
    """Pick a MIME type from the declared content type or the file name."""
    if declared and declared != DEFAULT_MIME:
        return declared
    guessed, _ = mimetypes.guess_type(name or "")
    return guessed or DEFAULT_MIME


def to_data_uri(att: Attachment) -> Optional[str]:
    """Encode synchronously. Encoded values pass through unchanged."""
    att = normalize(att)
    if att is None:
        return None
    if isinstance(att, Encoded):
        return att.uri
    if not isinstance(att.data, (bytes, bytearray)):
        raise AttachmentError(att.name or "attachment", "payload is not binary")
    try:
        payload = base64.b64encode(att.data).decode("ascii")
    except (TypeError, binascii.Error) as exc:
        raise AttachmentError(att.name or "attachment", str(exc))
    return f"data:{att.mime or DEFAULT_MIME};base64,{payload}"


async def encode(att: Attachment) -> Attachment:
    """Convert a Raw attachment to Encoded; Encoded and None are returned as-is."""
    att = normalize(att)
    if not isinstance(att, Raw):
        return att
    uri = await asyncio.to_thread(to_data_uri, att)
    return Encoded(uri)


async def encode_fields(values: dict) -> dict:
    """Encode every attachment in `values` concurrently.

    Fails fast: the first failing field raises AttachmentError naming it and
    nothing is returned, so callers never see a partially encoded set.
    """
    names = list(values)

    async def _one(name):
        try:
            return await encode(values[name])
        except AttachmentError as exc:
            raise AttachmentError(name, exc.reason) from exc

    results = await asyncio.gather(*(_one(n) for n in names))
    return dict(zip(names, results))


async def read_upload(upload, field: str) -> Attachment:
    """Read a Starlette UploadFile into a Raw attachment (None when empty)."""
    if upload is None or not getattr(upload, "filename", None):
        return None
    try:
        data = await upload.read()
    except OSError as exc:
        logger.warning("Failed reading upload for %s: %s", field, exc)
        raise AttachmentError(field, str(exc))
    if not data:
        return None
    return Raw(data, upload.filename, guess_mime(upload.filename, upload.content_type))


def to_wire(att: Attachment) -> Optional[str]:
    """Serializable form of an attachment: a data URI string or None."""
    return to_data_uri(att)


def display_url(att: Attachment) -> Optional[str]:
    """An openable reference for the attachment, or None when absent."""
    return to_data_uri(att)

