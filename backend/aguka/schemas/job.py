from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime


class JobCreate(BaseModel):
    title: str = Field(..., min_length=2)
    description: str = Field(..., min_length=10)
    required_candidates: int = Field(1, ge=1)
    level: Literal["junior", "mid", "senior", "expert"] = "mid"
    start_date: Optional[datetime] = None
    applications_close_at: Optional[datetime] = None
    category_id: Optional[int] = None
    specialization_id: Optional[int] = None

    @model_validator(mode="after")
    def close_after_start(self):
        if self.start_date and self.applications_close_at and self.applications_close_at > self.start_date:
            raise ValueError("Applications must close before the start date")
        return self


class JobPool(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    keywords: List[str] = []
    is_active: bool

    class Config:
        from_attributes = True


class Job(BaseModel):
    id: int
    employer_id: int
    pool_id: Optional[int] = None
    category_id: Optional[int] = None
    specialization_id: Optional[int] = None
    title: str
    description: str
    required_candidates: int
    level: str
    start_date: Optional[datetime] = None
    applications_close_at: Optional[datetime] = None
    status: str
    publication_status: str
    created_at: datetime

    class Config:
        from_attributes = True


class JobWithApplicationCount(Job):
    applications_count: int = 0


class ApplicationCandidate(BaseModel):
    id: int
    full_name: Optional[str] = None
    email: str
    recent_marks: Optional[float] = None


class Application(BaseModel):
    id: int
    job_id: int
    status: str
    created_at: datetime
    candidate: ApplicationCandidate


class JobDetail(BaseModel):
    job: Job
    pool: Optional[JobPool] = None
    applications: List[Application] = []


class EmployerDashboard(BaseModel):
    total_jobs: int
    pending_applications: int
    accepted_applications: int
