from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, field_validator


class ApplicationSource(str, Enum):
    INDEED = "Indeed"
    LINKEDIN = "LinkedIn"
    EMAIL = "Email"
    MANUAL = "Manual"
    GLASSDOOR = "Glassdoor"
    ONLINEJOBS_PH = "OnlineJobs.ph"


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFERED = "Offered"
    REJECTED = "Rejected"
    ACCEPTED = "Accepted"
    IGNORED = "Ignored"


def parse_application_date(value):
    """Accept an ISO-8601 date or datetime; reject anything that is not a real calendar date."""
    if value is None:
        return value
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min, tzinfo=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("Invalid date format") from None
    else:
        raise ValueError("Invalid date format")
    # Stored as UTC; SQLite keeps no offset
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


# Token Schemas
class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime


# User Schemas
class User(BaseModel):
    id: int
    email: str
    name: str
    picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    success: bool = True
    data: User


# Application Tracker Schemas
class ApplicationCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200, examples=["Acme Corp"])
    job_title: str = Field(..., min_length=1, max_length=200, examples=["Backend Engineer"])
    location: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=2000)
    date_applied: Optional[datetime] = None
    source: ApplicationSource = ApplicationSource.MANUAL
    status: ApplicationStatus = ApplicationStatus.APPLIED
    notes: Optional[str] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("date_applied", mode="before")
    @classmethod
    def validate_date_applied(cls, v):
        return parse_application_date(v)


class ApplicationUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    job_title: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=2000)
    date_applied: Optional[datetime] = None
    source: Optional[ApplicationSource] = None
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("date_applied", mode="before")
    @classmethod
    def validate_date_applied(cls, v):
        return parse_application_date(v)


class Application(BaseModel):
    id: int
    user_id: int
    company_name: str
    job_title: str
    location: str
    url: str
    date_applied: datetime
    source: str
    status: str
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ApplicationResponse(BaseModel):
    success: bool = True
    data: Application


class ApplicationList(BaseModel):
    success: bool = True
    count: int
    total: int
    data: List[Application]


class ApplicationStats(BaseModel):
    total: int
    applied: int
    interviewing: int
    offered: int
    rejected: int
    accepted: int
    ignored: int


class ApplicationStatsResponse(BaseModel):
    success: bool = True
    data: ApplicationStats


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    errors: Optional[List[Dict[str, str]]] = None
    existingApplication: Optional[Dict[str, Any]] = None
