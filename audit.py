import logging
from typing import Optional

from sqlmodel import Session

from models import SystemLog

logger = logging.getLogger(__name__)

ACTION_TYPES = frozenset({
    "user_login",
    "user_logout",
    "user_register",
    "role_change",
    "master_admin_created",
    "master_admin_deactivated",
    "master_admin_updated",
    "ch_created",
    "ch_approved",
    "ch_suspended",
    "ch_reactivated",
    "ch_expired",
    "ch_tenure_extended",
    "ch_flagged",
    "flag_resolved",
    "flag_dismissed",
    "donation_created",
    "donation_claimed",
    "donation_delivered",
    "donation_request_created",
    "donation_request_fulfilled",
    "donation_request_closed",
    "job_created",
    "job_closed",
    "job_filled",
    "application_created",
    "application_selected",
    "application_rejected",
    "placement_created",
    "placement_confirmed",
    "commission_paid",
    "workshop_proposed",
    "workshop_approved",
    "workshop_rejected",
    "workshop_completed",
    "worker_created",
    "worker_placed",
    "worker_inactive",
    "worker_available",
    "csr_transaction_created",
})


def record(
    session: Session,
    action_type: str,
    user_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    description: Optional[str] = None,
    details: Optional[dict] = None,
) -> SystemLog:
    """
    Add an audit entry to the session. The caller commits it together
    with the change it describes.
    """
    if action_type not in ACTION_TYPES:
        raise ValueError(f"Unknown audit action: {action_type}")

    entry = SystemLog(
        user_id=user_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        details=details or {},
    )
    session.add(entry)
    logger.info(
        "audit %s by user %s on %s %s", action_type, user_id, entity_type, entity_id
    )
    return entry
