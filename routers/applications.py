from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, select

import audit
from db import SessionDep
from models import (
    Application,
    ApplicationStatus,
    Job,
    JobStatus,
    Placement,
    User,
    WorkerProfile,
    WorkerStatus,
)
from schemas import ApplicationCreate, ApplicationRead, ApplicationStatusUpdate
from workflow import advance
from .auth import CurrentUserRoleDep, get_community_head

router = APIRouter(tags=["applications"])


def place_worker(session: Session, user: User, job: Job, worker: WorkerProfile) -> Placement:
    """
    Record a placement and mark the worker placed. The caller commits.
    """
    worker.status = advance("worker", worker.status, WorkerStatus.placed, worker.id)
    session.add(worker)

    placement = Placement(job_id=job.id, worker_id=worker.id)
    session.add(placement)
    session.flush()

    audit.record(session, "worker_placed", user_id=user.id,
                 entity_type="worker", entity_id=worker.id,
                 details={"job_id": job.id})
    audit.record(session, "placement_created", user_id=user.id,
                 entity_type="placement", entity_id=placement.id,
                 details={"job_id": job.id, "worker_id": worker.id})
    return placement


@router.get("/job/{job_id}", response_model=List[ApplicationRead])
def list_job_applications(job_id: int, session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(
        select(Application)
        .where(Application.job_id == job_id)
        .order_by(Application.id)
    ).all()


@router.post("/", response_model=ApplicationRead)
def create_application(
    application_in: ApplicationCreate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    """
    Put a worker forward for an open job. Either the community head who
    registered the worker or the business that owns the job may do this.
    """
    user = current["user"]

    job = session.get(Job, application_in.job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    worker = session.get(WorkerProfile, application_in.worker_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="Worker not found")

    ch = get_community_head(session, user)
    owns_worker = ch is not None and worker.community_head_id == ch.id
    if not owns_worker and job.business_id != user.id:
        raise HTTPException(
            status_code=403,
            detail="Only the worker's community head or the job owner can apply",
        )

    if job.status != JobStatus.open:
        raise HTTPException(status_code=400, detail="Job is not open")
    if worker.status != WorkerStatus.available:
        raise HTTPException(status_code=400, detail="Worker is not available")

    existing = session.exec(
        select(Application).where(
            Application.job_id == job.id,
            Application.worker_id == worker.id,
        )
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Worker already applied to this job")

    application = Application(job_id=job.id, worker_id=worker.id)
    session.add(application)
    session.flush()

    audit.record(session, "application_created", user_id=user.id,
                 entity_type="application", entity_id=application.id)
    session.commit()
    session.refresh(application)
    return application


@router.patch("/{application_id}/status", response_model=ApplicationRead)
def update_application_status(
    application_id: int,
    update: ApplicationStatusUpdate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    """
    The business owning the parent job selects or rejects an application.
    Selecting places the worker.
    """
    user = current["user"]

    application = session.get(Application, application_id)
    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")
    job = session.get(Job, application.job_id)
    if job is None:
        raise HTTPException(status_code=400, detail="Associated job not found")
    if job.business_id != user.id:
        raise HTTPException(
            status_code=403,
            detail="You can only manage applications for your own jobs",
        )

    application.status = advance(
        "application", application.status, update.status, application.id)
    session.add(application)

    if update.status == ApplicationStatus.selected:
        worker = session.get(WorkerProfile, application.worker_id)
        if worker is None:
            raise HTTPException(status_code=400, detail="Associated worker not found")
        place_worker(session, user, job, worker)

    audit.record(session, f"application_{update.status.value}", user_id=user.id,
                 entity_type="application", entity_id=application.id)
    session.commit()
    session.refresh(application)
    return application
