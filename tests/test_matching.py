from matching import find_matching_workers, is_match, match_workers
from models import Job, WorkerProfile, WorkerStatus


def _job(skill="welding"):
    return Job(id=1, business_id=1, title="Welder", required_skill=skill, location="Pune")


def _worker(worker_id, skill, status=WorkerStatus.available):
    return WorkerProfile(id=worker_id, community_head_id=1, name=f"W{worker_id}",
                         skill=skill, status=status)


def test_match_requires_same_skill_and_available():
    job = _job()
    assert is_match(job, _worker(1, "welding"))
    assert not is_match(job, _worker(2, "plumbing"))
    assert not is_match(job, _worker(3, "welding", WorkerStatus.placed))
    assert not is_match(job, _worker(4, "welding", WorkerStatus.inactive))


def test_match_workers_keeps_input_order():
    job = _job()
    workers = [
        _worker(5, "welding"),
        _worker(6, "carpentry"),
        _worker(7, "welding", WorkerStatus.placed),
        _worker(8, "welding"),
    ]
    matches = match_workers(job, workers)
    assert [w.id for w in matches] == [5, 8]
    for worker in matches:
        assert worker.status == WorkerStatus.available
        assert worker.skill == job.required_skill


def test_skill_comparison_is_exact():
    assert match_workers(_job("Welding"), [_worker(1, "welding")]) == []


def test_find_matching_workers_reads_from_the_database(session, make_community_head):
    _, ch = make_community_head()
    session.add_all([
        WorkerProfile(community_head_id=ch.id, name="A", skill="welding"),
        WorkerProfile(community_head_id=ch.id, name="B", skill="welding",
                      status=WorkerStatus.inactive),
        WorkerProfile(community_head_id=ch.id, name="C", skill="tailoring"),
    ])
    session.commit()

    matches = find_matching_workers(session, _job())
    assert [w.name for w in matches] == ["A"]
