"""
Status transitions for every entity that carries a status column.

Each entity moves forward one step at a time, driven by a single role.
``advance`` is the only way routers change a status: it returns the new
status when the move is allowed and raises ``TransitionError`` otherwise.
"""
import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from models import (
    ApplicationStatus,
    CommissionStatus,
    CommunityHeadStatus,
    ConfirmationStatus,
    DonationRequestStatus,
    DonationStatus,
    JobStatus,
    ReportStatus,
    WorkerStatus,
    WorkshopStatus,
)

logger = logging.getLogger(__name__)


class TransitionError(ValueError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, kind: str, current: str, target: str):
        self.kind = kind
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {kind} from '{current}' to '{target}'")


TRANSITIONS: Dict[str, Dict[Enum, FrozenSet[Enum]]] = {
    "donation": {
        DonationStatus.pending: frozenset({DonationStatus.claimed}),
        DonationStatus.claimed: frozenset({DonationStatus.delivered}),
    },
    "donation_request": {
        DonationRequestStatus.open: frozenset(
            {DonationRequestStatus.fulfilled, DonationRequestStatus.closed}),
    },
    "job": {
        JobStatus.open: frozenset({JobStatus.filled, JobStatus.closed}),
    },
    "worker": {
        WorkerStatus.available: frozenset(
            {WorkerStatus.placed, WorkerStatus.inactive}),
        WorkerStatus.inactive: frozenset({WorkerStatus.available}),
    },
    "application": {
        ApplicationStatus.pending: frozenset(
            {ApplicationStatus.selected, ApplicationStatus.rejected}),
    },
    "placement": {
        ConfirmationStatus.pending: frozenset({ConfirmationStatus.confirmed}),
    },
    "commission": {
        CommissionStatus.pending: frozenset({CommissionStatus.paid}),
    },
    "workshop": {
        WorkshopStatus.proposed: frozenset(
            {WorkshopStatus.approved, WorkshopStatus.rejected}),
        WorkshopStatus.approved: frozenset({WorkshopStatus.completed}),
    },
    "community_head": {
        CommunityHeadStatus.pending: frozenset(
            {CommunityHeadStatus.active, CommunityHeadStatus.suspended}),
        CommunityHeadStatus.active: frozenset(
            {CommunityHeadStatus.suspended, CommunityHeadStatus.expired}),
        CommunityHeadStatus.suspended: frozenset({CommunityHeadStatus.active}),
    },
    "flagged_report": {
        ReportStatus.pending: frozenset(
            {ReportStatus.resolved, ReportStatus.dismissed}),
    },
}


def allowed_targets(kind: str, current: Enum) -> FrozenSet[Enum]:
    return TRANSITIONS[kind].get(current, frozenset())


def can_advance(kind: str, current: Enum, target: Enum) -> bool:
    return target in allowed_targets(kind, current)


def is_terminal(kind: str, current: Enum) -> bool:
    return not allowed_targets(kind, current)


def advance(kind: str, current: Enum, target: Enum, entity_id: Optional[int] = None) -> Enum:
    """
    Check that ``current -> target`` is a legal move for ``kind``.

    Returns ``target`` so callers can write
    ``row.status = advance("job", row.status, JobStatus.filled)``.
    """
    if kind not in TRANSITIONS:
        raise KeyError(f"Unknown workflow: {kind}")

    if not can_advance(kind, current, target):
        logger.warning(
            "Refused %s %s transition %s -> %s",
            kind, entity_id, _value(current), _value(target),
        )
        raise TransitionError(kind, _value(current), _value(target))

    logger.info(
        "%s %s: %s -> %s", kind, entity_id, _value(current), _value(target)
    )
    return target


def _value(status) -> str:
    return status.value if isinstance(status, Enum) else str(status)
