from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from matching import find_matching_workers
from models import Job, JobStatus, Role
from schemas import JobCreate, JobRead, JobStatusUpdate, WorkerRead
from workflow import advance
from .auth import CurrentUserRoleDep

router = APIRouter(tags=["jobs"])


@router.get("/", response_model=List[JobRead])
def list_jobs(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(select(Job).order_by(Job.created_at.desc())).all()


@router.get("/open", response_model=List[JobRead])
def list_open_jobs(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(
        select(Job).where(Job.status == JobStatus.open).order_by(Job.created_at.desc())
    ).all()


@router.get("/my", response_model=List[JobRead])
def list_my_jobs(session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    return session.exec(
        select(Job).where(Job.business_id == user.id).order_by(Job.created_at.desc())
    ).all()


@router.post("/", response_model=JobRead)
def create_job(job_in: JobCreate, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    if current["role"] != Role.business:
        raise HTTPException(status_code=403, detail="Only businesses can post jobs")

    job = Job(
        business_id=user.id,
        title=job_in.title,
        description=job_in.description,
        required_skill=job_in.required_skill,
        salary_range=job_in.salary_range,
        location=job_in.location,
        status=JobStatus.open,
    )
    session.add(job)
    session.flush()

    audit.record(session, "job_created", user_id=user.id,
                 entity_type="job", entity_id=job.id, description=job.title)
    session.commit()
    session.refresh(job)
    return job


@router.patch("/{job_id}/status", response_model=JobRead)
def update_job_status(
    job_id: int,
    update: JobStatusUpdate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    """
    The owning business marks a job filled or closed. Whether a worker was
    actually hired is not checked.
    """
    user = current["user"]

    job = session.get(Job, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.business_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed")

    job.status = advance("job", job.status, update.status, job.id)
    session.add(job)

    audit.record(session, f"job_{update.status.value}", user_id=user.id,
                 entity_type="job", entity_id=job.id)
    session.commit()
    session.refresh(job)
    return job


@router.get("/{job_id}/matches", response_model=List[WorkerRead])
def list_job_matches(job_id: int, session: SessionDep, current: CurrentUserRoleDep):
    """
    Available workers whose skill equals the job's required skill.
    """
    job = session.get(Job, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return find_matching_workers(session, job)
