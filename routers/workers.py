from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import WorkerProfile, WorkerStatus
from schemas import WorkerCreate, WorkerRead, WorkerStatusUpdate
from workflow import advance
from .auth import CurrentUserRoleDep, require_community_head

router = APIRouter(tags=["workers"])


@router.get("/", response_model=List[WorkerRead])
def list_workers(
    session: SessionDep,
    current: CurrentUserRoleDep,
    skill: Optional[str] = None,
    status: Optional[WorkerStatus] = None,
):
    query = select(WorkerProfile)
    if skill is not None:
        query = query.where(WorkerProfile.skill == skill)
    if status is not None:
        query = query.where(WorkerProfile.status == status)
    return session.exec(query.order_by(WorkerProfile.id)).all()


@router.get("/ch", response_model=List[WorkerRead])
def list_my_workers(session: SessionDep, current: CurrentUserRoleDep):
    ch = require_community_head(session, current["user"])
    return session.exec(
        select(WorkerProfile)
        .where(WorkerProfile.community_head_id == ch.id)
        .order_by(WorkerProfile.id)
    ).all()


@router.post("/", response_model=WorkerRead)
def create_worker(worker_in: WorkerCreate, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can add workers", status_code=403)

    worker = WorkerProfile(
        community_head_id=ch.id,
        name=worker_in.name,
        age=worker_in.age,
        skill=worker_in.skill,
        photos=worker_in.photos,
        experience=worker_in.experience,
        status=WorkerStatus.available,
    )
    session.add(worker)
    session.flush()

    audit.record(session, "worker_created", user_id=user.id,
                 entity_type="worker", entity_id=worker.id,
                 details={"skill": worker.skill})
    session.commit()
    session.refresh(worker)
    return worker


@router.patch("/{worker_id}/status", response_model=WorkerRead)
def update_worker_status(
    worker_id: int,
    update: WorkerStatusUpdate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can update workers", status_code=403)

    worker = session.get(WorkerProfile, worker_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="Worker not found")
    if worker.community_head_id != ch.id:
        raise HTTPException(
            status_code=403,
            detail="You can only manage workers you registered",
        )

    worker.status = advance("worker", worker.status, update.status, worker.id)
    session.add(worker)

    audit.record(session, f"worker_{update.status.value}", user_id=user.id,
                 entity_type="worker", entity_id=worker.id)
    session.commit()
    session.refresh(worker)
    return worker
