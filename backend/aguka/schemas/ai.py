from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field

AGE_GROUPS = ("20-25", "26-30", "31-35", "36-40", "41+")


class WorkExperienceData(BaseModel):
    role: str
    company: str = ""
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    description: List[str] = []

    class Config:
        populate_by_name = True


class EducationData(BaseModel):
    level: str = ""
    school_name: str = Field("", alias="schoolName")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    gpa: Optional[str] = None
    achievements: List[str] = []

    class Config:
        populate_by_name = True


class ResumeAnalysis(BaseModel):
    name: str
    email: str = ""
    phone: str = ""
    age_group: Optional[str] = Field(None, alias="ageGroup")
    career_summary: str = Field("", alias="careerSummary")
    work_experience: List[WorkExperienceData] = Field(default_factory=list, alias="workExperience")
    education: List[EducationData] = []

    class Config:
        populate_by_name = True


class SuggestedPool(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""


class JobPoolAnalysis(BaseModel):
    suggested_pool: SuggestedPool = Field(..., alias="suggestedPool")
    confidence: float = Field(..., ge=0.0, le=1.0)
    keywords: List[str] = []

    class Config:
        populate_by_name = True


T = TypeVar("T", bound=BaseModel)


@dataclass
class ParsedResponse(Generic[T]):
    data: T
    ok: bool = True


@dataclass
class MalformedResponse:
    error: str
    raw: Optional[str] = None
    ok: bool = False


AnalysisResult = Union[ParsedResponse, MalformedResponse]
