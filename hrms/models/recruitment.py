"""
Recruitment Models
Job openings and candidate applications
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from beanie import Document


class JobStatus(str, Enum):
    OPEN = "open"
    ON_HOLD = "on_hold"
    CLOSED = "closed"


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    OFFERED = "offered"
    HIRED = "hired"
    REJECTED = "rejected"


class JobOpening(Document):
    """Job posting document"""
    title: str
    department_id: Optional[str] = None
    description: str
    requirements: Optional[str] = None
    location: str = "office"
    employment_type: str = "permanent"
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    status: JobStatus = JobStatus.OPEN
    posted_by: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    closed_at: Optional[datetime] = None

    class Settings:
        name = "job_openings"
        indexes = ["status", "department_id"]


class Application(Document):
    """Candidate application for a job opening"""
    job_id: str
    candidate_name: str
    email: EmailStr
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.APPLIED
    notes: Optional[str] = None

    applied_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "applications"
        indexes = ["job_id", "status"]


class JobOpeningCreate(BaseModel):
    """Schema for posting a job"""
    title: str
    department_id: Optional[str] = None
    description: str
    requirements: Optional[str] = None
    location: str = "office"
    employment_type: str = "permanent"
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)


class JobOpeningUpdate(BaseModel):
    """Schema for updating a job posting"""
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    location: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    status: Optional[JobStatus] = None


class ApplicationCreate(BaseModel):
    """Schema for submitting an application"""
    job_id: str
    candidate_name: str
    email: EmailStr
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None
