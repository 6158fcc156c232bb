from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from models import (
    ApplicationStatus,
    CommissionStatus,
    CommunityHeadStatus,
    ConfirmationStatus,
    DonationRequestStatus,
    DonationStatus,
    JobStatus,
    ReportStatus,
    Role,
    WorkerStatus,
    WorkshopStatus,
    as_utc,
)


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input, always answers in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Users / auth ---

class UserCreate(CamelModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=5, max_length=20)
    email: Optional[EmailStr] = None
    password: str = Field(min_length=6)
    role: Literal["DONOR", "BUSINESS", "COMMUNITY_HEAD"] = "DONOR"
    locality: Optional[str] = None


class LoginData(CamelModel):
    phone: str
    password: str


class UserRead(CamelModel):
    id: int
    role: Role
    name: str
    phone: str
    email: Optional[str] = None
    created_at: datetime


class RoleUpdate(CamelModel):
    role: Role
    city: Optional[str] = None
    state: Optional[str] = None


class MasterAdminRead(CamelModel):
    id: int
    user_id: int
    assigned_by: Optional[int] = None
    city: str
    state: str
    can_create_ch: bool
    can_remove_ch: bool
    can_view_csr: bool
    can_create_admin: bool
    is_active: bool


class MasterAdminPermissionsUpdate(CamelModel):
    can_create_ch: Optional[bool] = None
    can_remove_ch: Optional[bool] = None
    can_view_csr: Optional[bool] = None
    can_create_admin: Optional[bool] = None


# --- Community heads ---

class CommunityHeadRead(CamelModel):
    id: int
    user_id: int
    locality: str
    status: CommunityHeadStatus
    performance_score: int
    tenure_start: Optional[datetime] = None
    tenure_end: Optional[datetime] = None
    approved_by: Optional[int] = None
    suspension_reason: Optional[str] = None


class CommunityHeadStatusUpdate(CamelModel):
    status: CommunityHeadStatus
    reason: Optional[str] = None


class CommunityHeadTenureUpdate(CamelModel):
    tenure_end: datetime

    @field_validator("tenure_end")
    @classmethod
    def tenure_end_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


# --- Donations ---

class DonationCreate(CamelModel):
    item_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    locality: Optional[str] = None


class DonationRead(CamelModel):
    id: int
    donor_id: int
    community_head_id: Optional[int] = None
    item_name: str
    category: str
    quantity: int
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    locality: Optional[str] = None
    status: DonationStatus
    proof_image: Optional[str] = None
    created_at: datetime
    claimed_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class DeliverData(CamelModel):
    proof_image: Optional[str] = None


class DonationRequestCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = Field(min_length=1)
    urgency: Literal["low", "normal", "high", "critical"] = "normal"


class DonationRequestRead(CamelModel):
    id: int
    community_head_id: int
    title: str
    description: Optional[str] = None
    category: str
    urgency: str
    status: DonationRequestStatus
    created_at: datetime


class DonationRequestStatusUpdate(CamelModel):
    status: DonationRequestStatus


# --- Jobs / workers ---

class JobCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    required_skill: str = Field(min_length=1)
    salary_range: Optional[str] = None
    location: str = Field(min_length=1)


class JobRead(CamelModel):
    id: int
    business_id: int
    title: str
    description: Optional[str] = None
    required_skill: str
    salary_range: Optional[str] = None
    location: str
    status: JobStatus
    created_at: datetime


class JobStatusUpdate(CamelModel):
    status: JobStatus


class WorkerCreate(CamelModel):
    name: str = Field(min_length=1)
    age: Optional[int] = Field(default=None, ge=0)
    skill: str = Field(min_length=1)
    photos: List[str] = Field(default_factory=list)
    experience: Optional[str] = None


class WorkerRead(CamelModel):
    id: int
    community_head_id: int
    name: str
    age: Optional[int] = None
    skill: str
    photos: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    status: WorkerStatus
    created_at: datetime


class WorkerStatusUpdate(CamelModel):
    status: WorkerStatus


class ApplicationCreate(CamelModel):
    job_id: int
    worker_id: int


class ApplicationRead(CamelModel):
    id: int
    job_id: int
    worker_id: int
    status: ApplicationStatus
    created_at: datetime


class ApplicationStatusUpdate(CamelModel):
    status: ApplicationStatus


class PlacementCreate(CamelModel):
    job_id: int
    worker_id: int


class PlacementRead(CamelModel):
    id: int
    job_id: int
    worker_id: int
    business_confirmation: ConfirmationStatus
    commission_status: CommissionStatus
    created_at: datetime


# --- Workshops ---

class WorkshopCreate(CamelModel):
    topic: str = Field(min_length=1)
    description: Optional[str] = None
    schedule_date: Optional[datetime] = None
    location: Optional[str] = None
    max_attendees: Optional[int] = Field(default=None, ge=1)

    @field_validator("schedule_date")
    @classmethod
    def schedule_date_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class WorkshopRead(CamelModel):
    id: int
    creator_id: int
    community_head_id: Optional[int] = None
    topic: str
    description: Optional[str] = None
    schedule_date: Optional[datetime] = None
    location: Optional[str] = None
    max_attendees: Optional[int] = None
    status: WorkshopStatus
    created_at: datetime


class WorkshopReview(CamelModel):
    status: Literal["approved", "rejected"]
    schedule_date: Optional[datetime] = None

    @field_validator("schedule_date")
    @classmethod
    def schedule_date_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


# --- Admin ---

CsrCategory = Literal["delivery", "skilling", "administration", "infrastructure", "other"]


class CsrTransactionCreate(CamelModel):
    category: CsrCategory
    amount: float = Field(gt=0)
    description: Optional[str] = None
    transaction_date: Optional[date] = None
    community_head_id: Optional[int] = None


class CsrTransactionRead(CamelModel):
    id: int
    community_head_id: Optional[int] = None
    approved_by: Optional[int] = None
    category: str
    amount: float
    description: Optional[str] = None
    transaction_date: date
    created_at: datetime


class CsrSummary(CamelModel):
    delivery: float = 0
    skilling: float = 0
    administration: float = 0
    infrastructure: float = 0
    other: float = 0
    total: float = 0


class FlagCreate(CamelModel):
    community_head_id: int
    reason: str = Field(min_length=1)
    description: Optional[str] = None
    severity: int = Field(default=1, ge=1, le=5)


class FlagRead(CamelModel):
    id: int
    community_head_id: int
    reported_by: int
    reviewed_by: Optional[int] = None
    reason: str
    description: Optional[str] = None
    severity: int
    status: ReportStatus
    resolution_notes: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None


class FlagResolve(CamelModel):
    action: Literal["resolve", "dismiss", "suspend"]
    notes: Optional[str] = None


class SystemLogRead(CamelModel):
    id: int
    user_id: Optional[int] = None
    action_type: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    description: Optional[str] = None
    details: dict = Field(default_factory=dict)
    created_at: datetime


class AdminStats(CamelModel):
    total_donations: int
    delivered_donations: int
    total_jobs: int
    open_jobs: int
    total_workshops: int
    active_community_heads: int
    pending_community_heads: int
