"""
Shared test fixtures -- mock data for unit and integration tests.
"""
import itertools

from adp_portal import attachments
from adp_portal.models import ATTACHMENT_ATTRS, ForwardedTo, Status, WorkItem
from adp_portal.roles import (
    ROLE_ENGINEER, ROLE_COMMISSIONER, ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH, ROLE_CDMA,
)

_ids = itertools.count(1)


# ── User fixtures ────────────────────────────────────────────────────

def make_user(user_id=1, username="Venkatesh", role=ROLE_ENGINEER):
    """Build a user dict as returned by verify_token()."""
    return {"id": user_id, "username": username, "role": role}


ENGINEER_USER = make_user(1, "Venkatesh", ROLE_ENGINEER)
COMMISSIONER_USER = make_user(2, "Ramesh", ROLE_COMMISSIONER)
EEPH_USER = make_user(3, "Priya", ROLE_EEPH)
SEPH_USER = make_user(4, "Suresh", ROLE_SEPH)
ENCPH_USER = make_user(5, "Karthik", ROLE_ENCPH)
CDMA_USER = make_user(6, "Srinivas", ROLE_CDMA)


# ── Work item fixtures ───────────────────────────────────────────────

IMAGE_URI = "data:image/png;base64,iVBORw0KGgo="
REPORT_URI = "data:application/pdf;base64,JVBERi0xLjQ="


def make_work_item(
    item_id=None,
    sector="CC Roads",
    proposal="Road relaying, Ward 4",
    cost=50000,
    priority=1,
    cr_number="CR-1",
    cr_date="2024-01-15",
    status=None,
    section="",
    **extra,
):
    """A work record; pass status/section to place it somewhere in the chain."""
    forwarded_to = ForwardedTo(department="Public Health", section=section) if section else None
    for attr in ATTACHMENT_ATTRS:
        if attr in extra:
            extra[attr] = attachments.normalize(extra[attr])
    return WorkItem(
        id=item_id or f"w-{next(_ids)}",
        sector=sector,
        proposal=proposal,
        area="Central",
        locality="Gandhi Nagar",
        ward_no="4",
        latlong="16.5,80.6",
        cost=cost,
        priority=priority,
        cr_number=cr_number,
        cr_date=cr_date,
        status=status,
        forwarded_to=forwarded_to,
        **extra,
    )


def make_forwarded_item(item_id=None, **kwargs):
    """A work as the engineer's forward leaves it: Pending Review, all four files."""
    kwargs.setdefault("status", Status.PENDING_REVIEW)
    kwargs.setdefault("section", "Commissioner")
    kwargs.setdefault("work_image", IMAGE_URI)
    kwargs.setdefault("detailed_report", REPORT_URI)
    kwargs.setdefault("committee_report", REPORT_URI)
    kwargs.setdefault("council_resolution", REPORT_URI)
    return make_work_item(item_id, **kwargs)


def submission_fields(**overrides):
    """Form fields for OriginatorDashboard.submit()."""
    fields = {
        "sector": "Water Supply",
        "proposal": "Pipeline extension",
        "area": "North",
        "locality": "Ramnagar",
        "wardNo": "12",
        "latlong": "16.51,80.62",
        "cost": "10000",
        "priority": "1",
        "crNumber": "",
        "crDate": "",
        "numberOfWorks": "",
    }
    fields.update(overrides)
    return fields
