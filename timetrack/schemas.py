"""
Pydantic Schemas for Legal Time Tracking Service
================================================

Record shapes as returned by the record store, request bodies for the API,
and the derived (never persisted) aggregation outputs.

Store rows are validated into these models at the record-operation boundary,
so the filter, aggregation and export code always works on typed objects.
"""

from typing import List, Optional, Dict
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum
from datetime import datetime


# =============================================================================
# ENUMS
# =============================================================================

class CaseStatus(str, Enum):
    """Case lifecycle status"""
    ACTIVE = "Active"
    CLOSED = "Closed"
    PENDING = "Pending"


class ActivityType(str, Enum):
    """Kind of billable work in a time log"""
    CONSULTATION = "Consultation"
    RESEARCH = "Research"
    COURT_TIME = "Court Time"
    DRAFTING = "Drafting"
    ADMINISTRATIVE = "Administrative"
    OTHER = "Other"


class PeriodMode(str, Enum):
    """Time-log period selection for overview and export"""
    ALL = "all"
    RANGE = "range"
    MONTH = "month"


# =============================================================================
# RECORDS
# =============================================================================

class Attorney(BaseModel):
    """Attorney who owns cases"""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: Optional[str] = None
    title: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Profile(BaseModel):
    """Signed-in user profile (created by the identity service)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class Case(BaseModel):
    """Legal matter"""
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    client_name: str
    description: Optional[str] = None
    status: CaseStatus = CaseStatus.ACTIVE
    attorney_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class TimeLog(BaseModel):
    """Single billable interval on one case"""
    model_config = ConfigDict(extra="ignore")

    id: str
    case_id: str
    start_time: datetime
    end_time: datetime
    activity_type: ActivityType = ActivityType.OTHER
    description: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# DERIVED
# =============================================================================

class AggregatedCase(Case):
    """Case with total hours over a specific time-log snapshot"""
    total_hours: float = 0.0


class CaseOverview(BaseModel):
    """Counts and totals shown on the overview screen"""
    total_cases: int = 0
    active_cases: int = 0
    closed_cases: int = 0
    pending_cases: int = 0
    billable_cases: int = 0
    total_hours: float = 0.0
    total_hours_display: str = "0h 0m"


# =============================================================================
# REQUESTS
# =============================================================================

class AttorneyCreateRequest(BaseModel):
    """Create attorney request"""
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    title: Optional[str] = None


class AttorneyUpdateRequest(BaseModel):
    """Partial attorney update"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    title: Optional[str] = None
    is_active: Optional[bool] = None


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class CaseCreateRequest(BaseModel):
    """Create case request"""
    title: str = Field(..., min_length=1, max_length=255)
    client_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: CaseStatus = CaseStatus.ACTIVE
    attorney_id: Optional[str] = None


class CaseUpdateRequest(BaseModel):
    """Partial case update"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[CaseStatus] = None
    attorney_id: Optional[str] = None


class TimeLogCreateRequest(BaseModel):
    """
    Create time log request.

    Naive timestamps are interpreted in the configured report timezone.
    """
    start_time: datetime
    end_time: datetime
    activity_type: ActivityType = ActivityType.OTHER
    description: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# RESPONSES
# =============================================================================

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    store_backend: str
    warnings: List[str] = []


class CaseDetailResponse(BaseModel):
    """Case with its time logs, newest first"""
    case: Case
    time_logs: List[TimeLog]
    total_hours: float
    total_hours_display: str


class OverviewResponse(BaseModel):
    """Overview for the selected attorney and period"""
    attorney: Optional[Attorney] = None
    period_label: str
    period_token: str
    overview: CaseOverview
    status_counts: Dict[str, int]
