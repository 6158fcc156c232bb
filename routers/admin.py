from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import func
from sqlmodel import select

import audit
from db import SessionDep
from models import (
    CommunityHead,
    CommunityHeadStatus,
    Donation,
    DonationStatus,
    Job,
    JobStatus,
    MasterAdmin,
    Role,
    SystemLog,
    User,
    Workshop,
)
from schemas import AdminStats, MasterAdminPermissionsUpdate, MasterAdminRead, SystemLogRead
from .auth import AdminDep
from .community_heads import set_community_head_status

router = APIRouter(tags=["admin"])


def _count(session, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    for condition in conditions:
        query = query.where(condition)
    return session.exec(query).one()


@router.get("/stats/admin", response_model=AdminStats)
def admin_stats(session: SessionDep, current: AdminDep):
    return {
        "total_donations": _count(session, Donation),
        "delivered_donations": _count(session, Donation, Donation.status == DonationStatus.delivered),
        "total_jobs": _count(session, Job),
        "open_jobs": _count(session, Job, Job.status == JobStatus.open),
        "total_workshops": _count(session, Workshop),
        "active_community_heads": _count(
            session, CommunityHead, CommunityHead.status == CommunityHeadStatus.active),
        "pending_community_heads": _count(
            session, CommunityHead, CommunityHead.status == CommunityHeadStatus.pending),
    }


@router.get("/logs", response_model=List[SystemLogRead])
def list_system_logs(
    session: SessionDep,
    current: AdminDep,
    action_type: Optional[str] = None,
    entity_type: Optional[str] = None,
    user_id: Optional[int] = None,
    limit: int = Query(default=100, ge=1, le=500),
):
    """
    Audit trail, newest first.
    """
    query = select(SystemLog)
    if action_type is not None:
        query = query.where(SystemLog.action_type == action_type)
    if entity_type is not None:
        query = query.where(SystemLog.entity_type == entity_type)
    if user_id is not None:
        query = query.where(SystemLog.user_id == user_id)
    return session.exec(query.order_by(SystemLog.id.desc()).limit(limit)).all()


@router.get("/master-admins", response_model=List[MasterAdminRead])
def list_master_admins(session: SessionDep, current: AdminDep):
    return session.exec(select(MasterAdmin).order_by(MasterAdmin.id)).all()


@router.patch("/master-admins/{master_id}/deactivate", response_model=MasterAdminRead)
def deactivate_master_admin(master_id: int, session: SessionDep, current: AdminDep):
    """
    Deactivate a master admin and drop the user back to MAIN_ADMIN.
    Community heads that master admin approved and that are still active
    are suspended in the same commit.
    """
    admin = current["user"]
    if current["role"] != Role.super_admin:
        raise HTTPException(status_code=403, detail="Only super admins can deactivate master admins")

    master = session.get(MasterAdmin, master_id)
    if master is None:
        raise HTTPException(status_code=404, detail="Master admin not found")
    if master.user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate yourself")
    if not master.is_active:
        raise HTTPException(status_code=400, detail="Master admin is already inactive")

    master.is_active = False
    session.add(master)

    user = session.get(User, master.user_id)
    if user is not None and user.role in (Role.master_admin, Role.super_admin):
        user.role = Role.main_admin
        session.add(user)

    audit.record(session, "master_admin_deactivated", user_id=admin.id,
                 entity_type="master_admin", entity_id=master.id,
                 description=f"Master Admin {user.name if user else master.user_id} was deactivated")

    approved = session.exec(
        select(CommunityHead).where(
            CommunityHead.approved_by == master.user_id,
            CommunityHead.status == CommunityHeadStatus.active,
        )
    ).all()
    for ch in approved:
        set_community_head_status(session, admin, ch, CommunityHeadStatus.suspended,
                                  reason="Approving master admin was deactivated")
    session.commit()
    session.refresh(master)
    return master


@router.patch("/master-admins/{master_id}/permissions", response_model=MasterAdminRead)
def update_master_admin_permissions(
    master_id: int,
    update: MasterAdminPermissionsUpdate,
    session: SessionDep,
    current: AdminDep,
):
    if current["role"] != Role.super_admin:
        raise HTTPException(status_code=403, detail="Only super admins can change master admin permissions")

    master = session.get(MasterAdmin, master_id)
    if master is None:
        raise HTTPException(status_code=404, detail="Master admin not found")

    changes = update.model_dump(exclude_none=True)
    for name, value in changes.items():
        setattr(master, name, value)
    session.add(master)

    audit.record(session, "master_admin_updated", user_id=current["user"].id,
                 entity_type="master_admin", entity_id=master.id,
                 details=changes)
    session.commit()
    session.refresh(master)
    return master
