from typing import Iterable, List

from sqlmodel import Session, select

from models import Job, WorkerProfile, WorkerStatus


def is_match(job: Job, worker: WorkerProfile) -> bool:
    return (
        worker.status == WorkerStatus.available
        and worker.skill == job.required_skill
    )


def match_workers(job: Job, workers: Iterable[WorkerProfile]) -> List[WorkerProfile]:
    """
    Workers whose skill equals the job's required skill and who are still
    available. Order of ``workers`` is kept; there is no ranking.
    """
    return [worker for worker in workers if is_match(job, worker)]


def find_matching_workers(session: Session, job: Job) -> List[WorkerProfile]:
    workers = session.exec(
        select(WorkerProfile)
        .where(WorkerProfile.skill == job.required_skill)
        .order_by(WorkerProfile.id)
    ).all()
    return match_workers(job, workers)
