"""
Change Request (CR) cycle tracking for an engineer session.

A CR cycle is a declared batch: the engineer states how many works the CR
covers, submits them one by one, and may only forward once the batch is
complete. CR number, date and target are locked after the first submission.
The cycle closes itself when the target is reached.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional

from adp_portal.exceptions import CRShortfallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CRCycle:
    target_count: int
    cr_number: str = ""
    cr_date: str = ""
    submitted_count: int = 0

    @property
    def locked(self) -> bool:
        return self.submitted_count > 0

    @property
    def complete(self) -> bool:
        return self.submitted_count >= self.target_count

    def to_dict(self) -> dict:
        return {
            "targetCount": self.target_count,
            "crNumber": self.cr_number,
            "crDate": self.cr_date,
            "submittedCount": self.submitted_count,
        }


def _valid_target(value) -> Optional[int]:
    """Positive integer target, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
        value = int(value)
    if not isinstance(value, int) or value < 1:
        return None
    return value


class CRCycleTracker:
    """At most one active CR cycle per engineer session.

    The declared number of works outlives the cycle itself: a cycle closes
    as soon as its target is met, but the batch stays bound to that target
    until it is forwarded or discarded.
    """

    def __init__(self):
        self._active: Optional[CRCycle] = None
        self._declared: Optional[int] = None

    @property
    def active(self) -> Optional[CRCycle]:
        return self._active

    @property
    def declared_target(self) -> Optional[int]:
        return self._declared

    def open_or_update(self, target_count, cr_number: str = "", cr_date: str = "") -> Optional[CRCycle]:
        """Open a cycle, or retarget one that has no submissions yet.

        A non-positive or non-integer target discards the cycle. Once a work
        has been submitted under the cycle the call changes nothing.
        """
        target = _valid_target(target_count)
        if target is None:
            if self._active is not None and not self._active.locked:
                logger.info("Discarding CR cycle %s: invalid target %r", self._active.cr_number, target_count)
                self.discard()
            return self._active

        if self._active is None:
            self._active = CRCycle(target_count=target, cr_number=cr_number or "", cr_date=cr_date or "")
            self._declared = target
            logger.info("Opened CR cycle %s for %d work(s)", self._active.cr_number, target)
        elif not self._active.locked:
            self._active = replace(
                self._active,
                target_count=target,
                cr_number=cr_number or self._active.cr_number,
                cr_date=cr_date or self._active.cr_date,
            )
            self._declared = target
        return self._active

    def record_submission(self) -> Optional[CRCycle]:
        """Count one submitted work; closes the cycle when the target is met.

        Returns the cycle as it stood after counting (complete or not).
        """
        if self._active is None:
            return None
        counted = replace(self._active, submitted_count=self._active.submitted_count + 1)
        if counted.complete:
            logger.info("CR cycle %s complete (%d/%d)", counted.cr_number, counted.submitted_count, counted.target_count)
            self._active = None
        else:
            self._active = counted
        return counted

    def discard(self):
        self._active = None
        self._declared = None

    def is_satisfied(self, total_local_submissions: int) -> bool:
        if self._declared is None:
            return True
        return total_local_submissions >= self._declared

    def shortfall(self, total_local_submissions: int) -> int:
        """Number of works still needed before a forward is allowed."""
        if self._declared is None:
            return 0
        return max(0, self._declared - total_local_submissions)

    def ensure_ready(self, total_local_submissions: int):
        """Raise CRShortfallError unless the declared batch is complete."""
        if not self.is_satisfied(total_local_submissions):
            raise CRShortfallError(self._declared, total_local_submissions)
