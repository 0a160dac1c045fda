from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from .ai import ResumeAnalysis


class UserBase(BaseModel):
    full_name: Optional[str] = None
    email: EmailStr


class User(UserBase):
    id: int
    role: str
    phone: Optional[str] = None
    company_id: Optional[int] = None
    is_verified_talent: bool = False
    is_superuser: bool = False

    class Config:
        from_attributes = True


class CandidateSignup(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: str = Field(..., min_length=10)
    password: str = Field(..., min_length=6)
    resume: ResumeAnalysis


class EmployerSignup(BaseModel):
    department: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=2)
    email: EmailStr
    company_name: str = Field(..., min_length=2)
    phone: str = Field(..., min_length=10)
    password: str = Field(..., min_length=6)


class AdminCreate(BaseModel):
    full_name: str
    email: EmailStr
    password: str = Field(..., min_length=6)


class WorkExperienceOut(BaseModel):
    role: str
    company: Optional[str] = None

    class Config:
        from_attributes = True


class EducationOut(BaseModel):
    level: Optional[str] = None
    school_name: Optional[str] = None

    class Config:
        from_attributes = True


class JobSeeker(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    age_group: Optional[str] = None
    career_summary: Optional[str] = None
    is_verified_talent: bool = False
    work_experience: list[WorkExperienceOut] = []
    education: list[EducationOut] = []
