# routers/users.py
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import ADMIN_ROLES, MasterAdmin, Role, User
from schemas import RoleUpdate, UserRead
from .auth import AdminDep, CurrentUserRoleDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])

MASTER_ROLES = (Role.master_admin, Role.super_admin)


@router.get("/", response_model=List[UserRead])
def list_users(session: SessionDep, current: AdminDep, role: Optional[Role] = None):
    """
    List all users, optionally only one role.
    """
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    return session.exec(query.order_by(User.id)).all()


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, session: SessionDep, current: CurrentUserRoleDep):
    """
    Get a single user by ID.
    """
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}/role", response_model=UserRead)
def update_user_role(user_id: int, update: RoleUpdate, session: SessionDep, current: AdminDep):
    """
    Change a user's role. Only a super admin can grant the master/super admin
    tiers; granting one also creates the user's master admin record.
    """
    admin = current["user"]

    if update.role in MASTER_ROLES and current["role"] != Role.super_admin:
        raise HTTPException(
            status_code=403,
            detail="Only super admins can create master admins",
        )

    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    if user.role == Role.super_admin and current["role"] != Role.super_admin:
        raise HTTPException(status_code=403, detail="Only super admins can change a super admin")

    old_role = user.role
    user.role = update.role
    session.add(user)

    master = session.exec(
        select(MasterAdmin).where(MasterAdmin.user_id == user.id)
    ).first()
    if update.role in MASTER_ROLES:
        if master is None:
            master = MasterAdmin(
                user_id=user.id,
                assigned_by=admin.id,
                city=update.city or "Mumbai",
                state=update.state or "Maharashtra",
                can_create_admin=update.role == Role.super_admin,
            )
            session.add(master)
            session.flush()
            audit.record(session, "master_admin_created", user_id=admin.id,
                         entity_type="master_admin", entity_id=master.id,
                         description=f"Master Admin {user.name} was created")
        else:
            master.is_active = True
            master.can_create_admin = update.role == Role.super_admin
            session.add(master)
    elif master is not None and master.is_active:
        master.is_active = False
        session.add(master)

    audit.record(session, "role_change", user_id=admin.id,
                 entity_type="user", entity_id=user.id,
                 description=f"Role changed from {old_role.value} to {update.role.value}",
                 details={"old_role": old_role.value, "new_role": update.role.value,
                          "changed_by": admin.id})
    session.commit()
    session.refresh(user)

    if old_role not in ADMIN_ROLES and user.role in ADMIN_ROLES:
        logger.info("User %s promoted to %s by %s", user.id, user.role.value, admin.id)
    return user
