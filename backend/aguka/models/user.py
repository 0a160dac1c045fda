from sqlalchemy import Column, String, Boolean, Integer, ForeignKey
from sqlalchemy.orm import relationship
from .base import BaseModel


class UserRole:
    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    ADMIN = "admin"


class User(BaseModel):
    __tablename__ = "users"

    full_name = Column(String, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    hashed_password = Column(String)
    role = Column(String, default=UserRole.CANDIDATE, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    is_verified_talent = Column(Boolean, default=False)

    company = relationship("Company", back_populates="employees")
    candidate_profile = relationship("CandidateProfile", back_populates="user", uselist=False)
    work_experience = relationship("WorkExperience", back_populates="candidate")
    education = relationship("Education", back_populates="candidate")
    candidate_test = relationship("CandidateTest", back_populates="candidate", uselist=False)
    test_sessions = relationship("TestSession", back_populates="candidate", foreign_keys="TestSession.candidate_id")

    @property
    def is_superuser(self) -> bool:
        return self.role == UserRole.ADMIN
