from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import Donation, DonationStatus, utcnow
from schemas import DeliverData, DonationCreate, DonationRead
from workflow import advance
from .auth import (
    CurrentUserRoleDep,
    require_active_community_head,
    require_community_head,
)

router = APIRouter(tags=["donations"])


@router.get("/", response_model=List[DonationRead])
def list_donations(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(select(Donation).order_by(Donation.created_at.desc())).all()


@router.get("/pending", response_model=List[DonationRead])
def list_pending_donations(session: SessionDep, current: CurrentUserRoleDep):
    """
    Donations nobody has claimed yet, oldest first.
    """
    return session.exec(
        select(Donation)
        .where(Donation.status == DonationStatus.pending)
        .order_by(Donation.created_at)
    ).all()


@router.get("/my", response_model=List[DonationRead])
def list_my_donations(session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    return session.exec(
        select(Donation)
        .where(Donation.donor_id == user.id)
        .order_by(Donation.created_at.desc())
    ).all()


@router.get("/ch", response_model=List[DonationRead])
def list_claimed_donations(session: SessionDep, current: CurrentUserRoleDep):
    """
    Donations claimed by the calling community head.
    """
    ch = require_community_head(session, current["user"])
    return session.exec(
        select(Donation)
        .where(Donation.community_head_id == ch.id)
        .order_by(Donation.claimed_at.desc())
    ).all()


@router.post("/", response_model=DonationRead)
def create_donation(donation_in: DonationCreate, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]

    donation = Donation(
        donor_id=user.id,
        item_name=donation_in.item_name,
        category=donation_in.category,
        quantity=donation_in.quantity,
        description=donation_in.description,
        images=donation_in.images,
        locality=donation_in.locality,
        status=DonationStatus.pending,
    )
    session.add(donation)
    session.flush()

    audit.record(session, "donation_created", user_id=user.id,
                 entity_type="donation", entity_id=donation.id,
                 description=f"{donation.quantity} x {donation.item_name}")
    session.commit()
    session.refresh(donation)
    return donation


@router.patch("/{donation_id}/claim", response_model=DonationRead)
def claim_donation(donation_id: int, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    ch = require_active_community_head(
        session, user, detail="Only community heads can claim donations")

    donation = session.get(Donation, donation_id)
    if donation is None:
        raise HTTPException(status_code=404, detail="Donation not found")

    donation.status = advance("donation", donation.status, DonationStatus.claimed, donation.id)
    donation.community_head_id = ch.id
    donation.claimed_at = utcnow()
    session.add(donation)

    audit.record(session, "donation_claimed", user_id=user.id,
                 entity_type="donation", entity_id=donation.id,
                 details={"community_head_id": ch.id})
    session.commit()
    session.refresh(donation)
    return donation


@router.patch("/{donation_id}/deliver", response_model=DonationRead)
def deliver_donation(
    donation_id: int,
    data: DeliverData,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can deliver donations", status_code=403)

    donation = session.get(Donation, donation_id)
    if donation is None:
        raise HTTPException(status_code=404, detail="Donation not found")

    if donation.community_head_id is not None and donation.community_head_id != ch.id:
        raise HTTPException(
            status_code=403,
            detail="You can only deliver donations you claimed",
        )

    if not data.proof_image or not data.proof_image.strip():
        raise HTTPException(status_code=400, detail="Proof image is required")

    donation.status = advance("donation", donation.status, DonationStatus.delivered, donation.id)
    donation.proof_image = data.proof_image
    donation.delivered_at = utcnow()
    session.add(donation)

    ch.performance_score += 1
    session.add(ch)

    audit.record(session, "donation_delivered", user_id=user.id,
                 entity_type="donation", entity_id=donation.id,
                 details={"community_head_id": ch.id})
    session.commit()
    session.refresh(donation)
    return donation
