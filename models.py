from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; timestamp columns only accept aware values."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Role(str, Enum):
    donor = "DONOR"
    business = "BUSINESS"
    community_head = "COMMUNITY_HEAD"
    main_admin = "MAIN_ADMIN"
    master_admin = "MASTER_ADMIN"
    super_admin = "SUPER_ADMIN"


ADMIN_ROLES = (Role.main_admin, Role.master_admin, Role.super_admin)


class CommunityHeadStatus(str, Enum):
    pending = "pending"
    active = "active"
    suspended = "suspended"
    expired = "expired"


class DonationStatus(str, Enum):
    pending = "pending"
    claimed = "claimed"
    delivered = "delivered"


class DonationRequestStatus(str, Enum):
    open = "open"
    fulfilled = "fulfilled"
    closed = "closed"


class JobStatus(str, Enum):
    open = "open"
    filled = "filled"
    closed = "closed"


class WorkerStatus(str, Enum):
    available = "available"
    placed = "placed"
    inactive = "inactive"


class ApplicationStatus(str, Enum):
    pending = "pending"
    selected = "selected"
    rejected = "rejected"


class ConfirmationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"


class CommissionStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class WorkshopStatus(str, Enum):
    proposed = "proposed"
    approved = "approved"
    rejected = "rejected"
    completed = "completed"


class ReportStatus(str, Enum):
    pending = "pending"
    resolved = "resolved"
    dismissed = "dismissed"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    role: Role = Role.donor
    name: str
    phone: str = Field(index=True, unique=True)
    email: Optional[str] = None
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class CommunityHead(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)

    locality: str
    status: CommunityHeadStatus = CommunityHeadStatus.pending
    performance_score: int = 0
    tenure_start: Optional[datetime] = None
    tenure_end: Optional[datetime] = None
    approved_by: Optional[int] = Field(default=None, foreign_key="user.id")
    suspension_reason: Optional[str] = None


class Donation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    donor_id: int = Field(foreign_key="user.id")
    community_head_id: Optional[int] = Field(
        default=None, foreign_key="communityhead.id")

    item_name: str
    category: str
    quantity: int = 1
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    locality: Optional[str] = None
    status: DonationStatus = DonationStatus.pending  # pending -> claimed -> delivered
    proof_image: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    claimed_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class DonationRequest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    community_head_id: int = Field(foreign_key="communityhead.id")

    title: str
    description: Optional[str] = None
    category: str
    urgency: str = "normal"
    status: DonationRequestStatus = DonationRequestStatus.open
    created_at: datetime = Field(default_factory=utcnow)


class Job(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    business_id: int = Field(foreign_key="user.id")

    title: str
    description: Optional[str] = None
    required_skill: str
    salary_range: Optional[str] = None
    location: str
    status: JobStatus = JobStatus.open
    created_at: datetime = Field(default_factory=utcnow)


class WorkerProfile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    community_head_id: int = Field(foreign_key="communityhead.id")

    name: str
    age: Optional[int] = None
    skill: str
    photos: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    experience: Optional[str] = None
    status: WorkerStatus = WorkerStatus.available
    created_at: datetime = Field(default_factory=utcnow)


class Application(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    job_id: int = Field(foreign_key="job.id")
    worker_id: int = Field(foreign_key="workerprofile.id")

    status: ApplicationStatus = ApplicationStatus.pending
    created_at: datetime = Field(default_factory=utcnow)


class Placement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    job_id: int = Field(foreign_key="job.id")
    worker_id: int = Field(foreign_key="workerprofile.id")

    business_confirmation: ConfirmationStatus = ConfirmationStatus.pending
    commission_status: CommissionStatus = CommissionStatus.pending
    created_at: datetime = Field(default_factory=utcnow)


class Workshop(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    creator_id: int = Field(foreign_key="user.id")
    community_head_id: Optional[int] = Field(
        default=None, foreign_key="communityhead.id")

    topic: str
    description: Optional[str] = None
    schedule_date: Optional[datetime] = None
    location: Optional[str] = None
    max_attendees: Optional[int] = None
    status: WorkshopStatus = WorkshopStatus.proposed
    created_at: datetime = Field(default_factory=utcnow)


class MasterAdmin(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)
    assigned_by: Optional[int] = Field(default=None, foreign_key="user.id")

    city: str = "Mumbai"
    state: str = "Maharashtra"
    can_create_ch: bool = True
    can_remove_ch: bool = True
    can_view_csr: bool = True
    can_create_admin: bool = False
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class CsrTransaction(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    community_head_id: Optional[int] = Field(
        default=None, foreign_key="communityhead.id")
    approved_by: Optional[int] = Field(default=None, foreign_key="user.id")

    category: str  # delivery | skilling | administration | infrastructure | other
    amount: float
    description: Optional[str] = None
    transaction_date: date = Field(default_factory=lambda: utcnow().date())
    created_at: datetime = Field(default_factory=utcnow)


class FlaggedReport(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    community_head_id: int = Field(foreign_key="communityhead.id")
    reported_by: int = Field(foreign_key="user.id")
    reviewed_by: Optional[int] = Field(default=None, foreign_key="user.id")

    reason: str
    description: Optional[str] = None
    severity: int = 1
    status: ReportStatus = ReportStatus.pending
    resolution_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    resolved_at: Optional[datetime] = None


class SystemLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")

    action_type: str = Field(index=True)
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    description: Optional[str] = None
    details: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
