"""
Work item records and the status vocabulary.

WorkItem is immutable; every workflow step returns a new record via
WorkItem.replace(), which is what lets the store swap whole collections.
Field names are snake_case in Python and camelCase on the wire.
"""
import secrets
import string
import time
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from adp_portal import attachments
from adp_portal.attachments import Attachment, ATTACHMENT_FIELDS


class Status(str, Enum):
    PENDING_REVIEW = "Pending Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    FORWARDED_TO_EEPH = "Forwarded to EEPH"
    EEPH_APPROVED = "EEPH Approved"
    EEPH_REJECTED = "EEPH Rejected"
    FORWARDED_TO_SEPH = "Forwarded to SEPH"
    SEPH_APPROVED = "SEPH Approved"
    SEPH_REJECTED = "SEPH Rejected"
    FORWARDED_TO_ENCPH = "Forwarded to ENCPH"
    ENCPH_APPROVED = "ENCPH Approved"
    ENCPH_REJECTED = "ENCPH Rejected"
    FORWARDED_TO_CDMA = "Forwarded to CDMA"
    CDMA_APPROVED = "CDMA Approved"
    CDMA_REJECTED = "CDMA Rejected"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text) -> Optional["Status"]:
        """Read a persisted status string; blank means "not yet forwarded"."""
        if text is None or isinstance(text, cls):
            return text
        cleaned = str(text).strip()
        if not cleaned:
            return None
        for member in cls:
            if member.value.lower() == cleaned.lower():
                return member
        raise ValueError(f"Unknown status: {text!r}")


_ID_ALPHABET = string.ascii_lowercase + string.digits


def _random_suffix(length: int = 9) -> str:
    return ''.join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def new_local_id() -> str:
    """Id given to a work when the engineer submits it locally."""
    return f"sub-{int(time.time() * 1000)}-{_random_suffix()}"


def new_forward_id(index: int) -> str:
    """Id given to a work when it is promoted into the shared store."""
    return f"{int(time.time() * 1000)}-{_random_suffix()}-{index}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ForwardedTo:
    department: str = ""
    section: str = ""
    remarks: str = ""
    timestamp: str = ""
    forwarded_by: str = ""

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "section": self.section,
            "remarks": self.remarks,
            "timestamp": self.timestamp,
            "forwardedBy": self.forwarded_by,
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return None
        return cls(
            department=data.get("department") or "",
            section=data.get("section") or "",
            remarks=data.get("remarks") or "",
            timestamp=data.get("timestamp") or "",
            forwarded_by=data.get("forwardedBy") or "",
        )


# python name -> wire name
_WIRE_NAMES = {
    "ward_no": "wardNo",
    "cr_number": "crNumber",
    "cr_date": "crDate",
    "work_image": "workImage",
    "detailed_report": "detailedReport",
    "committee_report": "committeeReport",
    "council_resolution": "councilResolution",
    "forwarded_to": "forwardedTo",
    "rejected_by": "rejectedBy",
    "forwarded_date": "forwardedDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

ATTACHMENT_ATTRS = ("work_image", "detailed_report", "committee_report", "council_resolution")


@dataclass(frozen=True)
class WorkItem:
    id: str
    sector: str = ""
    proposal: str = ""
    area: str = ""
    locality: str = ""
    ward_no: str = ""
    latlong: str = ""
    cost: float = 0
    priority: int = 1
    cr_number: str = ""
    cr_date: str = ""
    work_image: Attachment = None
    detailed_report: Attachment = None
    committee_report: Attachment = None
    council_resolution: Attachment = None
    status: Optional[Status] = None
    forwarded_to: Optional[ForwardedTo] = None
    remarks: str = ""
    rejected_by: str = ""
    forwarded_date: str = ""
    created_at: str = field(default_factory=now_iso)
    updated_at: str = ""
    # role label -> {username, role, timestamp} of each approval
    verifications: dict = field(default_factory=dict)

    def replace(self, **changes) -> "WorkItem":
        changes.setdefault("updated_at", now_iso())
        return replace(self, **changes)

    @property
    def section(self) -> str:
        return self.forwarded_to.section if self.forwarded_to else ""

    @property
    def has_cr(self) -> bool:
        return bool((self.cr_number or "").strip())

    def attachment_map(self) -> dict:
        """Attachments keyed by wire name."""
        return {wire: getattr(self, attr) for attr, wire in zip(ATTACHMENT_ATTRS, ATTACHMENT_FIELDS)}

    def with_attachments(self, values: dict) -> "WorkItem":
        """Copy with attachments replaced from a wire-name keyed mapping."""
        changes = {}
        for attr, wire in zip(ATTACHMENT_ATTRS, ATTACHMENT_FIELDS):
            if wire in values:
                changes[attr] = attachments.normalize(values[wire])
        return replace(self, **changes)

    def to_dict(self, encode: bool = True) -> dict:
        """Wire form. Attachments are encoded unless encode=False."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            name = _WIRE_NAMES.get(f.name, f.name)
            if f.name in ATTACHMENT_ATTRS:
                value = attachments.to_wire(value) if encode else value
            elif f.name == "status":
                value = value.value if value else ""
            elif f.name == "forwarded_to":
                value = value.to_dict() if value else None
            elif f.name == "verifications":
                value = {label: dict(entry) for label, entry in value.items()}
            data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkItem":
        reverse = {wire: attr for attr, wire in _WIRE_NAMES.items()}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            attr = reverse.get(key, key)
            if attr in known:
                kwargs[attr] = value
        if "proposalName" in data and "proposal" not in kwargs:
            kwargs["proposal"] = data["proposalName"]
        for attr in ATTACHMENT_ATTRS:
            if attr in kwargs:
                kwargs[attr] = attachments.normalize(kwargs[attr])
        kwargs["status"] = Status.parse(kwargs.get("status"))
        kwargs["forwarded_to"] = ForwardedTo.from_dict(kwargs.get("forwarded_to"))
        kwargs["verifications"] = dict(kwargs.get("verifications") or {})
        kwargs["cost"] = float(kwargs.get("cost") or 0)
        kwargs["priority"] = int(kwargs.get("priority") or 1)
        for attr in ("cr_number", "cr_date", "remarks", "rejected_by", "forwarded_date", "updated_at"):
            if kwargs.get(attr) is None:
                kwargs[attr] = ""
        kwargs["id"] = str(kwargs.get("id") or new_local_id())
        return cls(**kwargs)
