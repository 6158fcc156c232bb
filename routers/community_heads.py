from datetime import timedelta
from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import CommunityHead, CommunityHeadStatus, User, as_utc, utcnow
from schemas import CommunityHeadRead, CommunityHeadStatusUpdate, CommunityHeadTenureUpdate
from workflow import advance
from .auth import AdminDep, CurrentUserRoleDep, require_community_head, require_master_permission

router = APIRouter(tags=["community-heads"])

TENURE = timedelta(days=30)


def _status_action(current: CommunityHeadStatus, target: CommunityHeadStatus) -> str:
    if target == CommunityHeadStatus.active:
        return "ch_reactivated" if current == CommunityHeadStatus.suspended else "ch_approved"
    return f"ch_{target.value}"


def set_community_head_status(session, admin: User, ch: CommunityHead,
                              target: CommunityHeadStatus, reason=None) -> None:
    """
    Move a community head to ``target`` on behalf of ``admin``. The caller
    commits.

    The first activation opens a 30 day tenure; reactivation keeps the
    existing one.
    """
    if target == CommunityHeadStatus.active:
        require_master_permission(session, admin, "can_create_ch")
    else:
        require_master_permission(session, admin, "can_remove_ch")

    previous = ch.status
    ch.status = advance("community_head", previous, target, ch.id)

    if target == CommunityHeadStatus.active:
        ch.approved_by = admin.id
        ch.suspension_reason = None
        if ch.tenure_start is None:
            ch.tenure_start = utcnow()
            ch.tenure_end = ch.tenure_start + TENURE
        elif ch.tenure_end is None:
            ch.tenure_end = as_utc(ch.tenure_start) + TENURE
    elif target == CommunityHeadStatus.suspended:
        ch.suspension_reason = reason
    elif target == CommunityHeadStatus.expired:
        ch.tenure_end = utcnow()
    session.add(ch)

    owner = session.get(User, ch.user_id)
    name = owner.name if owner else str(ch.id)
    audit.record(session, _status_action(previous, target), user_id=admin.id,
                 entity_type="community_head", entity_id=ch.id,
                 description=f"Community Head {name} is now {target.value}",
                 details={"from": previous.value, "to": target.value, "reason": reason})


@router.get("/", response_model=List[CommunityHeadRead])
def list_community_heads(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(
        select(CommunityHead).order_by(
            CommunityHead.performance_score.desc(), CommunityHead.id)
    ).all()


@router.get("/me", response_model=CommunityHeadRead)
def read_my_profile(session: SessionDep, current: CurrentUserRoleDep):
    return require_community_head(session, current["user"])


@router.patch("/{ch_id}/status", response_model=CommunityHeadRead)
def update_community_head_status(
    ch_id: int,
    update: CommunityHeadStatusUpdate,
    session: SessionDep,
    current: AdminDep,
):
    ch = session.get(CommunityHead, ch_id)
    if ch is None:
        raise HTTPException(status_code=404, detail="Community head not found")

    set_community_head_status(session, current["user"], ch, update.status, update.reason)
    session.commit()
    session.refresh(ch)
    return ch


@router.patch("/{ch_id}/tenure", response_model=CommunityHeadRead)
def update_community_head_tenure(
    ch_id: int,
    update: CommunityHeadTenureUpdate,
    session: SessionDep,
    current: AdminDep,
):
    """
    Move the end of a community head's tenure, usually to renew it.
    """
    admin = current["user"]
    ch = session.get(CommunityHead, ch_id)
    if ch is None:
        raise HTTPException(status_code=404, detail="Community head not found")

    require_master_permission(session, admin, "can_create_ch")
    if ch.status == CommunityHeadStatus.expired:
        raise HTTPException(status_code=400, detail="Tenure has already expired")
    if ch.tenure_start is None:
        raise HTTPException(status_code=400, detail="Community head has not been approved yet")
    if update.tenure_end <= as_utc(ch.tenure_start):
        raise HTTPException(status_code=400, detail="Tenure end must be after tenure start")

    previous = ch.tenure_end
    ch.tenure_end = update.tenure_end
    session.add(ch)
    audit.record(session, "ch_tenure_extended", user_id=admin.id,
                 entity_type="community_head", entity_id=ch.id,
                 details={"from": previous.isoformat() if previous else None,
                          "to": update.tenure_end.isoformat()})
    session.commit()
    session.refresh(ch)
    return ch
