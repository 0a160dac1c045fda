from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, JSON, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class JobStatus:
    DRAFT = "draft"
    OPEN = "open"
    PENDING = "pending"
    CLOSED = "closed"

    ACTIVE = (OPEN, PENDING)


class JobPool(BaseModel):
    """Jobs that target the same kind of candidate, as classified by the AI model."""
    __tablename__ = "job_pools"

    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    keywords = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)

    jobs = relationship("Job", back_populates="pool")


class Job(BaseModel):
    __tablename__ = "jobs"

    employer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    pool_id = Column(Integer, ForeignKey("job_pools.id"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("job_categories.id"), nullable=True)
    specialization_id = Column(Integer, ForeignKey("job_specializations.id"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    required_candidates = Column(Integer, default=1)
    level = Column(String, default="mid")
    start_date = Column(DateTime, nullable=True)
    applications_close_at = Column(DateTime, nullable=True)
    status = Column(String, default=JobStatus.DRAFT, index=True)
    publication_status = Column(String, default="draft")

    employer = relationship("User")
    pool = relationship("JobPool", back_populates="jobs")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")


class Application(BaseModel):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("job_id", "candidate_id", name="uq_application_job_candidate"),)

    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, default="pending", index=True)

    job = relationship("Job", back_populates="applications")
    candidate = relationship("User")
