from sqlmodel import select

from models import CommunityHead, CommunityHeadStatus, Role, SystemLog


def _donate(donor_client, **overrides):
    payload = {"itemName": "Blankets", "category": "clothing", "quantity": 4,
               "locality": "Dharavi"}
    payload.update(overrides)
    resp = donor_client.post("/api/donations/", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_donation_starts_pending(client, make_user, login_as):
    donor = login_as(make_user(Role.donor))
    donation = _donate(donor, images=["a.jpg"])
    assert donation["status"] == "pending"
    assert donation["itemName"] == "Blankets"
    assert donation["images"] == ["a.jpg"]
    assert donation["communityHeadId"] is None

    mine = donor.get("/api/donations/my").json()
    assert [d["id"] for d in mine] == [donation["id"]]


def test_quantity_must_be_positive(client, make_user, login_as):
    donor = login_as(make_user(Role.donor))
    resp = donor.post("/api/donations/", json={"itemName": "Rice", "category": "food",
                                               "quantity": 0})
    assert resp.status_code == 422


def test_full_donation_lifecycle(client, session, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    ch_user, ch = make_community_head()
    head = login_as(ch_user)
    donation = _donate(donor)

    claimed = head.patch(f"/api/donations/{donation['id']}/claim")
    assert claimed.status_code == 200
    claimed = claimed.json()
    assert claimed["status"] == "claimed"
    assert claimed["communityHeadId"] == ch.id
    assert claimed["claimedAt"] is not None

    assert head.get("/api/donations/pending").json() == []
    assert [d["id"] for d in head.get("/api/donations/ch").json()] == [donation["id"]]

    delivered = head.patch(f"/api/donations/{donation['id']}/deliver",
                           json={"proofImage": "proof.jpg"})
    assert delivered.status_code == 200
    delivered = delivered.json()
    assert delivered["status"] == "delivered"
    assert delivered["proofImage"] == "proof.jpg"
    assert delivered["deliveredAt"] is not None

    session.expire_all()
    assert session.get(CommunityHead, ch.id).performance_score == 1

    actions = session.exec(
        select(SystemLog.action_type)
        .where(SystemLog.entity_type == "donation")
        .order_by(SystemLog.id)
    ).all()
    assert actions == ["donation_created", "donation_claimed", "donation_delivered"]


def test_claim_requires_a_community_head(client, make_user, login_as):
    donor_user = make_user(Role.donor)
    donor = login_as(donor_user)
    donation = _donate(donor)

    resp = donor.patch(f"/api/donations/{donation['id']}/claim")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only community heads can claim donations"

    business = login_as(make_user(Role.business))
    assert business.patch(f"/api/donations/{donation['id']}/claim").status_code == 403


def test_claim_requires_an_active_community_head(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    ch_user, _ = make_community_head(status=CommunityHeadStatus.pending)
    donation = _donate(donor)

    resp = login_as(ch_user).patch(f"/api/donations/{donation['id']}/claim")
    assert resp.status_code == 403


def test_donation_cannot_be_claimed_twice(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    first, _ = make_community_head()
    second, _ = make_community_head(locality="Kurla")
    donation = _donate(donor)

    assert login_as(first).patch(f"/api/donations/{donation['id']}/claim").status_code == 200
    resp = login_as(second).patch(f"/api/donations/{donation['id']}/claim")
    assert resp.status_code == 400
    assert "claimed" in resp.json()["detail"]


def test_delivery_requires_proof_image(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    ch_user, _ = make_community_head()
    head = login_as(ch_user)
    donation = _donate(donor)
    head.patch(f"/api/donations/{donation['id']}/claim")

    resp = head.patch(f"/api/donations/{donation['id']}/deliver", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Proof image is required"

    resp = head.patch(f"/api/donations/{donation['id']}/deliver", json={"proofImage": "  "})
    assert resp.status_code == 400


def test_unclaimed_donation_cannot_be_delivered(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    ch_user, _ = make_community_head()
    donation = _donate(donor)

    resp = login_as(ch_user).patch(f"/api/donations/{donation['id']}/deliver",
                                   json={"proofImage": "proof.jpg"})
    assert resp.status_code == 400


def test_only_the_claiming_head_delivers(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    first, _ = make_community_head()
    second, _ = make_community_head(locality="Kurla")
    donation = _donate(donor)
    login_as(first).patch(f"/api/donations/{donation['id']}/claim")

    resp = login_as(second).patch(f"/api/donations/{donation['id']}/deliver",
                                  json={"proofImage": "proof.jpg"})
    assert resp.status_code == 403


def test_delivered_donation_stays_delivered(client, make_user, make_community_head, login_as):
    donor = login_as(make_user(Role.donor))
    ch_user, _ = make_community_head()
    head = login_as(ch_user)
    donation = _donate(donor)
    head.patch(f"/api/donations/{donation['id']}/claim")
    head.patch(f"/api/donations/{donation['id']}/deliver", json={"proofImage": "p.jpg"})

    assert head.patch(f"/api/donations/{donation['id']}/claim").status_code == 400
    assert head.patch(f"/api/donations/{donation['id']}/deliver",
                      json={"proofImage": "p2.jpg"}).status_code == 400
    current = head.get("/api/donations/").json()[0]
    assert current["status"] == "delivered"
    assert current["proofImage"] == "p.jpg"


def test_missing_donation_is_404(client, make_community_head, login_as):
    ch_user, _ = make_community_head()
    assert login_as(ch_user).patch("/api/donations/999/claim").status_code == 404


def test_donation_requests(client, make_user, make_community_head, login_as):
    ch_user, ch = make_community_head()
    head = login_as(ch_user)

    resp = head.post("/api/donation-requests/", json={"title": "School books",
                                                       "category": "education",
                                                       "urgency": "high"})
    assert resp.status_code == 200
    request_id = resp.json()["id"]
    assert resp.json()["status"] == "open"
    assert resp.json()["communityHeadId"] == ch.id

    donor = login_as(make_user(Role.donor))
    assert donor.post("/api/donation-requests/",
                      json={"title": "x", "category": "y"}).status_code == 403
    assert len(donor.get("/api/donation-requests/").json()) == 1

    done = head.patch(f"/api/donation-requests/{request_id}/status", json={"status": "fulfilled"})
    assert done.status_code == 200
    assert done.json()["status"] == "fulfilled"
    again = head.patch(f"/api/donation-requests/{request_id}/status", json={"status": "closed"})
    assert again.status_code == 400
