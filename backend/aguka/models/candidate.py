from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from .base import BaseModel


class CandidateProfile(BaseModel):
    __tablename__ = "candidate_profiles"

    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    full_name = Column(String)
    phone = Column(String, nullable=True)
    age_group = Column(String, nullable=True)
    career_summary = Column(Text, nullable=True)

    user = relationship("User", back_populates="candidate_profile")


class WorkExperience(BaseModel):
    __tablename__ = "work_experience"

    candidate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String, nullable=False)
    company = Column(String, nullable=True)
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    description = Column(JSON, default=list)

    candidate = relationship("User", back_populates="work_experience")


class Education(BaseModel):
    __tablename__ = "education"

    candidate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    level = Column(String, nullable=True)
    school_name = Column(String, nullable=True)
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    gpa = Column(String, nullable=True)
    achievements = Column(JSON, default=list)

    candidate = relationship("User", back_populates="education")


class CandidateTest(BaseModel):
    """Which test a candidate sits and when they may sit it again."""
    __tablename__ = "candidate_tests"

    candidate_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    specialization_id = Column(Integer, ForeignKey("job_specializations.id"), nullable=True)
    seniority = Column(String, nullable=True)
    last_test_date = Column(DateTime, nullable=True)
    next_available_date = Column(DateTime, nullable=True)

    candidate = relationship("User", back_populates="candidate_test")
    specialization = relationship("JobSpecialization")
