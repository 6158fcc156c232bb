from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import DonationRequest, DonationRequestStatus
from schemas import DonationRequestCreate, DonationRequestRead, DonationRequestStatusUpdate
from workflow import advance
from .auth import CurrentUserRoleDep, require_community_head

router = APIRouter(tags=["donation-requests"])


@router.get("/", response_model=List[DonationRequestRead])
def list_donation_requests(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(
        select(DonationRequest).order_by(DonationRequest.created_at.desc())
    ).all()


@router.get("/ch", response_model=List[DonationRequestRead])
def list_my_donation_requests(session: SessionDep, current: CurrentUserRoleDep):
    ch = require_community_head(session, current["user"])
    return session.exec(
        select(DonationRequest)
        .where(DonationRequest.community_head_id == ch.id)
        .order_by(DonationRequest.created_at.desc())
    ).all()


@router.post("/", response_model=DonationRequestRead)
def create_donation_request(
    request_in: DonationRequestCreate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    """
    A community head asks donors for something their locality needs.
    """
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can create donation requests", status_code=403)

    donation_request = DonationRequest(
        community_head_id=ch.id,
        title=request_in.title,
        description=request_in.description,
        category=request_in.category,
        urgency=request_in.urgency,
    )
    session.add(donation_request)
    session.flush()

    audit.record(session, "donation_request_created", user_id=user.id,
                 entity_type="donation_request", entity_id=donation_request.id)
    session.commit()
    session.refresh(donation_request)
    return donation_request


@router.patch("/{request_id}/status", response_model=DonationRequestRead)
def update_donation_request_status(
    request_id: int,
    update: DonationRequestStatusUpdate,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can update donation requests", status_code=403)

    donation_request = session.get(DonationRequest, request_id)
    if donation_request is None:
        raise HTTPException(status_code=404, detail="Donation request not found")
    if donation_request.community_head_id != ch.id:
        raise HTTPException(
            status_code=403,
            detail="You can only manage your own donation requests",
        )

    donation_request.status = advance(
        "donation_request", donation_request.status, update.status, donation_request.id)
    session.add(donation_request)

    action = ("donation_request_fulfilled"
              if update.status == DonationRequestStatus.fulfilled
              else "donation_request_closed")
    audit.record(session, action, user_id=user.id,
                 entity_type="donation_request", entity_id=donation_request.id)
    session.commit()
    session.refresh(donation_request)
    return donation_request
