"""
Role dashboards: per-role views and actions over the shared store.

OriginatorDashboard holds one engineer's unsent works, CR cycle and budget.
ReviewerDashboard serves Commissioner, EEPH, SEPH and ENCPH;
FinalApproverDashboard serves CDMA. Reviewer actions only touch works that
pass is_addressed_to() for the dashboard's role; anything else comes back as
an ActionResult with applied=False and the store is left alone.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from adp_portal import attachments, budget, config
from adp_portal.cr_cycle import CRCycleTracker
from adp_portal.exceptions import ValidationError
from adp_portal.models import Status, WorkItem, new_forward_id, new_local_id, now_iso
from adp_portal.roles import (
    ROLE_ENGINEER, ROLE_COMMISSIONER, ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH, ROLE_CDMA,
    REVIEWER_ROLES, get_role_label, next_role,
)
from adp_portal.workflow import (
    ACTION_APPROVE, ACTION_REJECT, ACTION_FORWARD,
    APPROVED_STATUS, REJECTED_STATUS,
    apply, apply_bulk, can_apply, has_passed, has_reached, is_addressed_to,
    is_pending_for, is_terminal,
)

logger = logging.getLogger(__name__)

NO_CR_KEY = "__NO_CR__"

# URL view names that differ from the method name
VIEW_ALIASES = {"all": "all_works", "sent-back": "sent_back", "by-cr": "by_cr", "cdma-approved": "cdma_approved"}

# Roles that must write a verification note when approving
NOTE_REQUIRED_ROLES = (ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH)

# Column filters accepted by filter_items(), wire name -> attribute
FILTER_FIELDS = {
    "crNumber": "cr_number",
    "crDate": "cr_date",
    "sector": "sector",
    "status": "status",
    "proposal": "proposal",
    "cost": "cost",
    "locality": "locality",
    "latlong": "latlong",
    "priority": "priority",
}

REQUIRED_FIELDS = {
    "sector": "Work Type",
    "proposal": "Proposal Name",
    "area": "Area",
    "locality": "Locality",
    "wardNo": "Ward No",
    "cost": "Estimated Cost",
    "priority": "Prioritization",
}


@dataclass
class ActionResult:
    applied: bool
    items: tuple = ()
    message: str = ""
    ids: list = field(default_factory=list)


# ── Query helpers ────────────────────────────────────────────────────

def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Status):
        return value.value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def filter_items(items, **filters):
    """Case-insensitive substring match on each non-empty column filter."""
    active = {k: str(v).strip().lower() for k, v in filters.items() if k in FILTER_FIELDS and v not in (None, "")}
    if not active:
        return list(items)
    result = []
    for item in items:
        if all(wanted in _text(getattr(item, FILTER_FIELDS[key])).lower() for key, wanted in active.items()):
            result.append(item)
    return result


def by_priority(items):
    return sorted(items, key=lambda i: (i.priority, i.created_at))


def cr_key(item) -> str:
    return (item.cr_number or "").strip().upper() or NO_CR_KEY


def group_by_cr(items) -> dict:
    """Works grouped by normalized CR number, skipping works without a CR."""
    groups = {}
    for item in items:
        if item.has_cr:
            groups.setdefault(cr_key(item), []).append(item)
    return groups


def check_department(department):
    """Blank means the receiving section's default department."""
    department = (department or "").strip()
    if department and department not in config.DEPARTMENTS:
        raise ValidationError(f"Unknown department: {department}", field="department")
    return department or None


# ── Reviewer dashboards ──────────────────────────────────────────────

class ReviewerDashboard:
    """Views and actions for one reviewing role."""

    VIEWS = ("pending", "approved", "forwarded", "rejected", "sent_back", "all_works")

    def __init__(self, role: str, store):
        if role not in REVIEWER_ROLES:
            raise ValueError(f"Not a reviewer role: {role}")
        self.role = role
        self.label = get_role_label(role)
        self.store = store

    # Views

    def pending(self):
        return by_priority(i for i in self.store.all() if is_pending_for(i, self.role))

    def approved(self):
        status = APPROVED_STATUS[self.role]
        return [i for i in self.store.all() if i.status is status]

    def forwarded(self):
        if next_role(self.role) is None:
            return []
        return [i for i in self.store.all() if has_passed(i, self.role)]

    def rejected(self):
        status = REJECTED_STATUS[self.role]
        return [i for i in self.store.all() if i.status is status]

    def sent_back(self):
        """Works the next role rejected back to this one."""
        receiver = next_role(self.role)
        if receiver is None:
            return []
        status = REJECTED_STATUS[receiver]
        return [i for i in self.store.all() if i.status is status]

    def all_works(self):
        return [i for i in self.store.all() if has_reached(i, self.role)]

    def grouped_by_cr(self):
        return group_by_cr(self.all_works())

    def view(self, name: str, **filters):
        name = VIEW_ALIASES.get(name, name.replace("-", "_"))
        if name == "by_cr":
            return self.grouped_by_cr()
        if name not in self.VIEWS:
            raise ValidationError(f"Unknown view: {name}", field="view")
        return filter_items(getattr(self, name)(), **filters)

    def counts(self) -> dict:
        data = {name: len(getattr(self, name)()) for name in self.VIEWS}
        data["crs"] = len(self.grouped_by_cr())
        return data

    # Actions

    def can(self, item_id, action: str) -> bool:
        return can_apply(self.store.get(item_id), action, self.role)

    def _check_note(self, remarks):
        if self.role in NOTE_REQUIRED_ROLES and not (remarks or "").strip():
            raise ValidationError("Please enter Verification Note before approving.", field="remarks")

    def _single(self, item_id, action, **kwargs) -> ActionResult:
        item = self.store.get(item_id)
        if item is None or not is_addressed_to(item, self.role) or not can_apply(item, action, self.role):
            return ActionResult(False, self.store.all(), f"Work is not awaiting {action} by {self.label}")
        updated = apply(item, action, self.role, **kwargs)
        items = self.store.replace_item(updated)
        return ActionResult(True, items, f"{action.capitalize()} recorded by {self.label}", [item_id])

    def approve(self, item_id, remarks: str = "", actor: dict = None) -> ActionResult:
        if self.can(item_id, ACTION_APPROVE):
            self._check_note(remarks)
        return self._single(item_id, ACTION_APPROVE, remarks=remarks, actor=actor)

    def reject(self, item_id, remarks: str) -> ActionResult:
        return self._single(item_id, ACTION_REJECT, remarks=remarks)

    def forward(self, item_id, department: str = None, remarks: str = "", actor: dict = None) -> ActionResult:
        department = check_department(department)
        return self._single(item_id, ACTION_FORWARD, department=department, remarks=remarks, actor=actor)

    def _bulk(self, ids, action, **kwargs) -> ActionResult:
        ids = list(dict.fromkeys(ids or []))
        if not ids:
            raise ValidationError("Select at least one work", field="ids")
        outcome = {}

        def transform(items):
            new_items, applied = apply_bulk(items, ids, action, self.role, **kwargs)
            outcome["applied"] = applied
            return new_items

        # Dry run first so a refused batch never reaches storage.
        _, applied = apply_bulk(self.store.all(), ids, action, self.role, **kwargs)
        if not applied:
            return ActionResult(False, self.store.all(), f"Not every selected work is awaiting {action} by {self.label}")
        items = self.store.commit(transform)
        return ActionResult(True, items, f"{len(outcome['applied'])} work(s): {action} recorded by {self.label}", outcome["applied"])

    def bulk_approve(self, ids, remarks: str = "", actor: dict = None) -> ActionResult:
        if ids and all(self.can(item_id, ACTION_APPROVE) for item_id in ids):
            self._check_note(remarks)
        return self._bulk(ids, ACTION_APPROVE, remarks=remarks, actor=actor)

    def bulk_reject(self, ids, remarks: str) -> ActionResult:
        return self._bulk(ids, ACTION_REJECT, remarks=remarks)

    def bulk_forward(self, ids, department: str = None, remarks: str = "", actor: dict = None) -> ActionResult:
        department = check_department(department)
        return self._bulk(ids, ACTION_FORWARD, department=department, remarks=remarks, actor=actor)


class FinalApproverDashboard(ReviewerDashboard):
    """CDMA: last stage, approves or rejects; nothing to forward."""

    def __init__(self, store):
        super().__init__(ROLE_CDMA, store)

    def certificates(self):
        """CDMA approved works, in wire form, for certificate generation."""
        return [i.to_dict() for i in self.approved()]


def reviewer_dashboard(role: str, store) -> ReviewerDashboard:
    if role == ROLE_CDMA:
        return FinalApproverDashboard(store)
    return ReviewerDashboard(role, store)


# ── Originator dashboard ─────────────────────────────────────────────

def _parse_cost(value) -> Decimal:
    try:
        cost = budget.to_amount(value)
    except (InvalidOperation, ValueError):
        raise ValidationError("Estimated Cost must be a number", field="cost")
    if not cost.is_finite() or cost < 0:
        raise ValidationError("Estimated Cost must be zero or more", field="cost")
    return cost


def _parse_priority(value) -> int:
    try:
        priority = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Prioritization must be a whole number", field="priority")
    if priority < 1:
        raise ValidationError("Prioritization must be 1 or more", field="priority")
    return priority


class OriginatorDashboard:
    """One engineer's working set: unsent works, CR cycle and budget."""

    def __init__(self, store, ceiling=None):
        self.store = store
        self.ceiling = config.TOTAL_BUDGET if ceiling is None else ceiling
        self.local = []
        self.editing = None
        self.tracker = CRCycleTracker()

    # CR cycle

    @property
    def declared_works(self):
        return self.tracker.declared_target

    def open_cycle(self, target_count, cr_number: str = "", cr_date: str = ""):
        cycle = self.tracker.open_or_update(target_count, cr_number, cr_date)
        if cycle is None and not self.local:
            self.tracker.discard()
        return cycle

    def local_total(self) -> int:
        return len(self.local) + (1 if self.editing is not None else 0)

    # Budget

    def remaining_budget(self) -> Decimal:
        return budget.remaining(self.ceiling, self.local)

    def available_budget(self) -> Decimal:
        cycle = self.tracker.active
        if cycle is not None:
            return budget.remaining_for_cr(self.ceiling, self.local, cycle.cr_number)
        return self.remaining_budget()

    def budget_summary(self) -> dict:
        return {
            "total": budget.to_amount(self.ceiling),
            "committed": budget.committed(self.local),
            "remaining": self.remaining_budget(),
            "available": self.available_budget(),
        }

    # Submissions

    @staticmethod
    def _keep_file(value, previous, attr):
        """New upload if given, else the file the edited work already had."""
        att = attachments.normalize(value)
        if att is None and previous is not None:
            return getattr(previous, attr)
        return att

    def submit(self, fields: dict) -> WorkItem:
        """Validate and hold one work locally. Returns the new work."""
        missing = [label for key, label in REQUIRED_FIELDS.items() if fields.get(key) in (None, "")]
        if missing:
            raise ValidationError(f"Please fill all required fields: {', '.join(missing)}")

        sector = str(fields["sector"]).strip()
        if sector not in config.SECTORS:
            raise ValidationError(f"Unknown sector: {sector}", field="sector")
        cost = _parse_cost(fields["cost"])
        priority = _parse_priority(fields["priority"])

        resubmitting = self.editing
        if resubmitting is None and fields.get("numberOfWorks") not in (None, ""):
            self.open_cycle(fields["numberOfWorks"], fields.get("crNumber", ""), fields.get("crDate", ""))
        cycle = self.tracker.active
        if cycle is not None:
            cr_number, cr_date = cycle.cr_number, cycle.cr_date
        else:
            cr_number = fields.get("crNumber") or (resubmitting.cr_number if resubmitting else "")
            cr_date = fields.get("crDate") or (resubmitting.cr_date if resubmitting else "")

        budget.check_cost(cost, self.available_budget(), for_cr=cycle is not None)

        item = WorkItem(
            id=resubmitting.id if resubmitting else new_local_id(),
            sector=sector,
            proposal=str(fields["proposal"]).strip(),
            area=str(fields["area"]).strip(),
            locality=str(fields["locality"]).strip(),
            ward_no=str(fields["wardNo"]).strip(),
            latlong=str(fields.get("latlong") or "").strip(),
            cost=float(cost),
            priority=priority,
            cr_number=cr_number,
            cr_date=cr_date,
            work_image=self._keep_file(fields.get("workImage"), resubmitting, "work_image"),
            detailed_report=self._keep_file(fields.get("detailedReport"), resubmitting, "detailed_report"),
        )
        self.local.append(item)
        self.editing = None
        if cycle is not None and resubmitting is None:
            self.tracker.record_submission()
        logger.info("Engineer held work %s (%s, cost %s)", item.id, sector, cost)
        return item

    def edit(self, item_id) -> WorkItem:
        """Take a held work back into the form; it still counts toward the batch."""
        if self.editing is not None:
            raise ValidationError("Finish editing the current work first")
        for index, item in enumerate(self.local):
            if item.id == item_id:
                self.editing = self.local.pop(index)
                return self.editing
        raise ValidationError(f"No held work with id {item_id}", field="id")

    async def forward(self, committee_report, council_resolution, department: str = None, actor: dict = None):
        """Promote every held work to the Commissioner as "Pending Review".

        All attachments are encoded before anything reaches the store; one
        failed conversion aborts the whole forward. Works submitted while the
        encoding is awaited are not part of the batch and stay held.
        """
        batch = list(self.local)
        if self.editing is not None:
            batch.append(self.editing)
        cycle, declared = self.tracker.active, self.tracker.declared_target
        self.tracker.ensure_ready(len(batch))
        if declared is None and not batch:
            raise ValidationError("Please enter valid Number of Works (>=1).", field="numberOfWorks")
        committee_report = attachments.normalize(committee_report)
        council_resolution = attachments.normalize(council_resolution)
        if committee_report is None or council_resolution is None:
            raise ValidationError("Please upload committee and council files before forwarding.")
        department = check_department(department)

        shared = await attachments.encode_fields({
            "committeeReport": committee_report,
            "councilResolution": council_resolution,
        })
        per_item = []
        for item in batch:
            per_item.append(await attachments.encode_fields({
                "workImage": item.work_image,
                "detailedReport": item.detailed_report,
            }))

        forwarded_date = now_iso()
        promoted = []
        for index, (item, encoded) in enumerate(zip(batch, per_item)):
            ready = item.with_attachments({**encoded, **shared}).replace(
                id=new_forward_id(index),
                forwarded_date=forwarded_date,
                remarks="",
            )
            promoted.append(apply(ready, ACTION_FORWARD, ROLE_ENGINEER, department=department, actor=actor))

        self.store.append(promoted)
        logger.info("Engineer forwarded %d work(s) to %s", len(promoted), get_role_label(ROLE_COMMISSIONER))

        sent = {id(item) for item in batch}
        self.local = [item for item in self.local if id(item) not in sent]
        if id(self.editing) in sent:
            self.editing = None
        if self.tracker.active is cycle and self.tracker.declared_target == declared:
            self.tracker.discard()
        return promoted

    # Views over the shared store

    def forwarded(self):
        return [i for i in self.store.all() if i.status is not None and not is_terminal(i)]

    def cdma_approved(self):
        return [i for i in self.store.all() if i.status is Status.CDMA_APPROVED]

    def rejected(self):
        """Works the Commissioner sent back."""
        return [i for i in self.store.all() if i.status is Status.REJECTED]

    def all_works(self):
        return list(self.local) + list(self.store.all())

    def grouped_by_cr(self):
        return group_by_cr(self.all_works())

    VIEWS = ("forwarded", "cdma_approved", "rejected", "all_works")

    def view(self, name: str, **filters):
        name = VIEW_ALIASES.get(name, name.replace("-", "_"))
        if name == "by_cr":
            return self.grouped_by_cr()
        if name == "local":
            return filter_items(self.local, **filters)
        if name not in self.VIEWS:
            raise ValidationError(f"Unknown view: {name}", field="view")
        return filter_items(getattr(self, name)(), **filters)

    def counts(self) -> dict:
        data = {name: len(getattr(self, name)()) for name in self.VIEWS}
        data["local"] = len(self.local)
        data["crs"] = len(self.grouped_by_cr())
        return data

    def state(self) -> dict:
        cycle = self.tracker.active
        return {
            "submissions": [i.to_dict() for i in self.local],
            "editing": self.editing.to_dict() if self.editing else None,
            "activeCR": cycle.to_dict() if cycle else None,
            "numberOfWorks": self.declared_works,
            "submittedCount": self.local_total(),
            "worksRemaining": self.tracker.shortfall(self.local_total()),
        }


def dashboard_for(user: dict, store, originators: dict):
    """Dashboard matching the session's role. Engineer state is kept per user id."""
    role = user.get("role")
    if role == ROLE_ENGINEER:
        key = user.get("id")
        if key not in originators:
            originators[key] = OriginatorDashboard(store)
        return originators[key]
    return reviewer_dashboard(role, store)
