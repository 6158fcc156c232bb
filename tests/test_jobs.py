import pytest

from models import Role


@pytest.fixture
def business(make_user, login_as):
    return login_as(make_user(Role.business))


@pytest.fixture
def head(make_community_head, login_as):
    ch_user, _ = make_community_head()
    return login_as(ch_user)


def _post_job(business, skill="welding"):
    resp = business.post("/api/jobs/", json={"title": "Welder", "requiredSkill": skill,
                                             "location": "Pune", "salaryRange": "15-20k"})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _add_worker(head, name="Ravi", skill="welding"):
    resp = head.post("/api/workers/", json={"name": name, "skill": skill, "age": 28})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_only_businesses_post_jobs(client, make_user, login_as):
    donor = login_as(make_user(Role.donor))
    resp = donor.post("/api/jobs/", json={"title": "x", "requiredSkill": "y", "location": "z"})
    assert resp.status_code == 403


def test_job_listing(business, head):
    job = _post_job(business)
    assert job["status"] == "open"
    assert job["requiredSkill"] == "welding"
    assert [j["id"] for j in business.get("/api/jobs/my").json()] == [job["id"]]
    assert head.get("/api/jobs/my").json() == []
    assert len(head.get("/api/jobs/open").json()) == 1


def test_owner_closes_job(business, make_user, login_as):
    job = _post_job(business)
    other = login_as(make_user(Role.business))
    assert other.patch(f"/api/jobs/{job['id']}/status",
                       json={"status": "closed"}).status_code == 403

    resp = business.patch(f"/api/jobs/{job['id']}/status", json={"status": "closed"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "closed"
    assert business.get("/api/jobs/open").json() == []

    reopen = business.patch(f"/api/jobs/{job['id']}/status", json={"status": "open"})
    assert reopen.status_code == 400


def test_invalid_job_status_is_rejected(business):
    job = _post_job(business)
    resp = business.patch(f"/api/jobs/{job['id']}/status", json={"status": "archived"})
    assert resp.status_code == 422


def test_matches_only_available_workers_with_the_skill(business, head):
    job = _post_job(business)
    ravi = _add_worker(head, "Ravi", "welding")
    _add_worker(head, "Meena", "tailoring")
    idle = _add_worker(head, "Kiran", "welding")
    head.patch(f"/api/workers/{idle['id']}/status", json={"status": "inactive"})

    matches = business.get(f"/api/jobs/{job['id']}/matches").json()
    assert [w["id"] for w in matches] == [ravi["id"]]
    for worker in matches:
        assert worker["status"] == "available"
        assert worker["skill"] == job["requiredSkill"]


def test_only_community_heads_add_workers(business):
    resp = business.post("/api/workers/", json={"name": "A", "skill": "b"})
    assert resp.status_code == 403


def test_worker_status_is_owned_by_its_head(head, make_community_head, login_as):
    worker = _add_worker(head)
    other_user, _ = make_community_head(locality="Kurla")
    other = login_as(other_user)
    resp = other.patch(f"/api/workers/{worker['id']}/status", json={"status": "inactive"})
    assert resp.status_code == 403
    assert other.get("/api/workers/ch").json() == []


def test_selecting_an_application_places_the_worker(business, head):
    job = _post_job(business)
    worker = _add_worker(head)

    application = head.post("/api/applications/",
                            json={"jobId": job["id"], "workerId": worker["id"]})
    assert application.status_code == 200
    application = application.json()
    assert application["status"] == "pending"

    duplicate = head.post("/api/applications/",
                          json={"jobId": job["id"], "workerId": worker["id"]})
    assert duplicate.status_code == 400

    # the head who recommended the worker cannot decide
    assert head.patch(f"/api/applications/{application['id']}/status",
                      json={"status": "selected"}).status_code == 403

    selected = business.patch(f"/api/applications/{application['id']}/status",
                              json={"status": "selected"})
    assert selected.status_code == 200
    assert selected.json()["status"] == "selected"

    placed = business.get("/api/workers/", params={"status": "placed"}).json()
    assert [w["id"] for w in placed] == [worker["id"]]
    assert business.get(f"/api/jobs/{job['id']}/matches").json() == []

    placements = business.get(f"/api/placements/job/{job['id']}").json()
    assert len(placements) == 1
    assert placements[0]["workerId"] == worker["id"]
    assert placements[0]["businessConfirmation"] == "pending"

    again = business.patch(f"/api/applications/{application['id']}/status",
                           json={"status": "rejected"})
    assert again.status_code == 400


def test_rejecting_leaves_worker_available(business, head):
    job = _post_job(business)
    worker = _add_worker(head)
    application = head.post("/api/applications/",
                            json={"jobId": job["id"], "workerId": worker["id"]}).json()

    resp = business.patch(f"/api/applications/{application['id']}/status",
                          json={"status": "rejected"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert [w["status"] for w in head.get("/api/workers/ch").json()] == ["available"]
    listed = business.get(f"/api/applications/job/{job['id']}").json()
    assert [a["status"] for a in listed] == ["rejected"]


def test_cannot_apply_to_closed_job(business, head):
    job = _post_job(business)
    worker = _add_worker(head)
    business.patch(f"/api/jobs/{job['id']}/status", json={"status": "filled"})
    resp = head.post("/api/applications/", json={"jobId": job["id"], "workerId": worker["id"]})
    assert resp.status_code == 400


def test_placement_confirmation_and_commission(business, head, make_user, login_as):
    job = _post_job(business)
    worker = _add_worker(head)

    placement = business.post("/api/placements/",
                              json={"jobId": job["id"], "workerId": worker["id"]})
    assert placement.status_code == 200
    placement = placement.json()

    admin = login_as(make_user(Role.main_admin))
    early = admin.patch(f"/api/placements/{placement['id']}/commission")
    assert early.status_code == 400

    confirmed = business.patch(f"/api/placements/{placement['id']}/confirm")
    assert confirmed.status_code == 200
    assert confirmed.json()["businessConfirmation"] == "confirmed"

    assert business.patch(f"/api/placements/{placement['id']}/commission").status_code == 403
    paid = admin.patch(f"/api/placements/{placement['id']}/commission")
    assert paid.status_code == 200
    assert paid.json()["commissionStatus"] == "paid"

    # worker is already placed
    second = business.post("/api/placements/", json={"jobId": job["id"], "workerId": worker["id"]})
    assert second.status_code == 400
