from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import CommunityHead, CommunityHeadStatus, FlaggedReport, ReportStatus, utcnow
from schemas import FlagCreate, FlagRead, FlagResolve
from workflow import advance
from .auth import AdminDep, CurrentUserRoleDep
from .community_heads import set_community_head_status

router = APIRouter(tags=["flags"])


@router.get("/", response_model=List[FlagRead])
def list_flags(
    session: SessionDep,
    current: AdminDep,
    status: Optional[ReportStatus] = None,
    min_severity: Optional[int] = None,
):
    query = select(FlaggedReport)
    if status is not None:
        query = query.where(FlaggedReport.status == status)
    if min_severity is not None:
        query = query.where(FlaggedReport.severity >= min_severity)
    return session.exec(query.order_by(FlaggedReport.created_at.desc())).all()


@router.post("/", response_model=FlagRead)
def flag_community_head(flag_in: FlagCreate, session: SessionDep, current: CurrentUserRoleDep):
    """
    Report a community head for review by the admins.
    """
    user = current["user"]

    ch = session.get(CommunityHead, flag_in.community_head_id)
    if ch is None:
        raise HTTPException(status_code=404, detail="Community head not found")
    if ch.user_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot flag yourself")

    report = FlaggedReport(
        community_head_id=ch.id,
        reported_by=user.id,
        reason=flag_in.reason,
        description=flag_in.description,
        severity=flag_in.severity,
    )
    session.add(report)
    session.flush()

    audit.record(session, "ch_flagged", user_id=user.id,
                 entity_type="flagged_report", entity_id=report.id,
                 details={"community_head_id": ch.id, "severity": report.severity})
    session.commit()
    session.refresh(report)
    return report


@router.patch("/{report_id}/resolve", response_model=FlagRead)
def resolve_flag(report_id: int, resolution: FlagResolve, session: SessionDep, current: AdminDep):
    """
    Dismiss or resolve a report. ``suspend`` resolves it and suspends the
    reported community head in the same commit.
    """
    admin = current["user"]

    report = session.get(FlaggedReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")

    target = ReportStatus.dismissed if resolution.action == "dismiss" else ReportStatus.resolved
    report.status = advance("flagged_report", report.status, target, report.id)
    report.resolution_notes = resolution.notes
    report.reviewed_by = admin.id
    report.resolved_at = utcnow()
    session.add(report)

    if resolution.action == "suspend":
        ch = session.get(CommunityHead, report.community_head_id)
        if ch is None:
            raise HTTPException(status_code=400, detail="Associated community head not found")
        set_community_head_status(
            session, admin, ch, CommunityHeadStatus.suspended,
            reason=f"Flagged report: {report.reason}",
        )

    audit.record(session, f"flag_{target.value}", user_id=admin.id,
                 entity_type="flagged_report", entity_id=report.id)
    session.commit()
    session.refresh(report)
    return report
