from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

import audit
from db import SessionDep
from models import CommunityHead, CommunityHeadStatus, Workshop, WorkshopStatus
from schemas import WorkshopCreate, WorkshopRead, WorkshopReview
from workflow import advance
from .auth import CurrentUserRoleDep, get_community_head, require_community_head

router = APIRouter(tags=["workshops"])


def _community_head_for_location(session: Session, location: Optional[str]) -> Optional[CommunityHead]:
    """Active community head whose locality matches the location, ignoring case."""
    locality = (location or "").strip().lower()
    if not locality:
        return None
    return session.exec(
        select(CommunityHead).where(
            func.lower(CommunityHead.locality) == locality,
            CommunityHead.status == CommunityHeadStatus.active,
        )
    ).first()


@router.get("/", response_model=List[WorkshopRead])
def list_workshops(session: SessionDep, current: CurrentUserRoleDep):
    return session.exec(select(Workshop).order_by(Workshop.created_at.desc())).all()


@router.get("/ch", response_model=List[WorkshopRead])
def list_ch_workshops(session: SessionDep, current: CurrentUserRoleDep):
    ch = require_community_head(session, current["user"])
    return session.exec(
        select(Workshop)
        .where(Workshop.community_head_id == ch.id)
        .order_by(Workshop.created_at.desc())
    ).all()


@router.get("/my", response_model=List[WorkshopRead])
def list_my_workshops(session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]
    return session.exec(
        select(Workshop)
        .where(Workshop.creator_id == user.id)
        .order_by(Workshop.created_at.desc())
    ).all()


@router.post("/", response_model=WorkshopRead)
def propose_workshop(workshop_in: WorkshopCreate, session: SessionDep, current: CurrentUserRoleDep):
    """
    Propose a workshop. A community head proposing one owns it; anyone else's
    proposal goes to the active community head for the workshop's location.
    """
    user = current["user"]

    ch = get_community_head(session, user)
    if ch is None:
        ch = _community_head_for_location(session, workshop_in.location)

    workshop = Workshop(
        creator_id=user.id,
        community_head_id=ch.id if ch else None,
        topic=workshop_in.topic,
        description=workshop_in.description,
        schedule_date=workshop_in.schedule_date,
        location=workshop_in.location,
        max_attendees=workshop_in.max_attendees,
        status=WorkshopStatus.proposed,
    )
    session.add(workshop)
    session.flush()

    audit.record(session, "workshop_proposed", user_id=user.id,
                 entity_type="workshop", entity_id=workshop.id,
                 description=workshop.topic)
    session.commit()
    session.refresh(workshop)
    return workshop


@router.patch("/{workshop_id}/review", response_model=WorkshopRead)
def review_workshop(
    workshop_id: int,
    review: WorkshopReview,
    session: SessionDep,
    current: CurrentUserRoleDep,
):
    user = current["user"]
    ch = require_community_head(
        session, user,
        detail="Only community heads can review workshops", status_code=403)

    workshop = session.get(Workshop, workshop_id)
    if workshop is None:
        raise HTTPException(status_code=404, detail="Workshop not found")
    if workshop.community_head_id is not None and workshop.community_head_id != ch.id:
        raise HTTPException(
            status_code=403,
            detail="This workshop is assigned to another community head",
        )

    if review.status == "approved":
        if review.schedule_date is None:
            raise HTTPException(
                status_code=400,
                detail="A schedule date is required to approve a workshop",
            )
        workshop.status = advance(
            "workshop", workshop.status, WorkshopStatus.approved, workshop.id)
        workshop.community_head_id = ch.id
        workshop.schedule_date = review.schedule_date
    else:
        workshop.status = advance(
            "workshop", workshop.status, WorkshopStatus.rejected, workshop.id)
    session.add(workshop)

    audit.record(session, f"workshop_{review.status}", user_id=user.id,
                 entity_type="workshop", entity_id=workshop.id)
    session.commit()
    session.refresh(workshop)
    return workshop


@router.patch("/{workshop_id}/complete", response_model=WorkshopRead)
def complete_workshop(workshop_id: int, session: SessionDep, current: CurrentUserRoleDep):
    user = current["user"]

    workshop = session.get(Workshop, workshop_id)
    if workshop is None:
        raise HTTPException(status_code=404, detail="Workshop not found")

    ch = get_community_head(session, user)
    is_host = ch is not None and workshop.community_head_id == ch.id
    if not is_host and workshop.creator_id != user.id:
        raise HTTPException(
            status_code=403,
            detail="Only the host community head or the creator can complete a workshop",
        )

    workshop.status = advance(
        "workshop", workshop.status, WorkshopStatus.completed, workshop.id)
    session.add(workshop)

    audit.record(session, "workshop_completed", user_id=user.id,
                 entity_type="workshop", entity_id=workshop.id)
    session.commit()
    session.refresh(workshop)
    return workshop
