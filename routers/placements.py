from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import CommissionStatus, ConfirmationStatus, Job, Placement, WorkerProfile
from schemas import PlacementCreate, PlacementRead
from workflow import advance
from .applications import place_worker
from .auth import AdminDep, CurrentUserRoleDep

router = APIRouter(tags=["placements"])


@router.get("/", response_model=List[PlacementRead])
def list_placements(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(select(Placement).order_by(Placement.created_at.desc())).all()


@router.get("/job/{job_id}", response_model=List[PlacementRead])
def list_job_placements(job_id: int, session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(
        select(Placement).where(Placement.job_id == job_id).order_by(Placement.id)
    ).all()


@router.post("/", response_model=PlacementRead)
def create_placement(placement_in: PlacementCreate, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]

    job = session.get(Job, placement_in.job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.business_id != user.id:
        raise HTTPException(status_code=403, detail="You can only place workers on your own jobs")
    worker = session.get(WorkerProfile, placement_in.worker_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="Worker not found")

    placement = place_worker(session, user, job, worker)
    session.commit()
    session.refresh(placement)
    return placement


@router.patch("/{placement_id}/confirm", response_model=PlacementRead)
def confirm_placement(placement_id: int, session: SessionDep, current: CurrentUserRoleDep):
    """
    The business confirms the worker actually started.
    """
    user = current["user"]

    placement = session.get(Placement, placement_id)
    if placement is None:
        raise HTTPException(status_code=404, detail="Placement not found")
    job = session.get(Job, placement.job_id)
    if job is None or job.business_id != user.id:
        raise HTTPException(status_code=403, detail="You can only confirm placements for your own jobs")

    placement.business_confirmation = advance(
        "placement", placement.business_confirmation, ConfirmationStatus.confirmed, placement.id)
    session.add(placement)

    audit.record(session, "placement_confirmed", user_id=user.id,
                 entity_type="placement", entity_id=placement.id)
    session.commit()
    session.refresh(placement)
    return placement


@router.patch("/{placement_id}/commission", response_model=PlacementRead)
def mark_commission_paid(placement_id: int, session: SessionDep, current: AdminDep):
    user = current["user"]

    placement = session.get(Placement, placement_id)
    if placement is None:
        raise HTTPException(status_code=404, detail="Placement not found")
    if placement.business_confirmation != ConfirmationStatus.confirmed:
        raise HTTPException(
            status_code=400,
            detail="Commission can only be paid on confirmed placements",
        )

    placement.commission_status = advance(
        "commission", placement.commission_status, CommissionStatus.paid, placement.id)
    session.add(placement)

    audit.record(session, "commission_paid", user_id=user.id,
                 entity_type="placement", entity_id=placement.id)
    session.commit()
    session.refresh(placement)
    return placement
