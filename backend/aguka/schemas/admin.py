from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from .test import TestSession


class AdminDashboard(BaseModel):
    total_users: int
    total_recruiters: int
    total_job_seekers: int
    total_jobs: int


class ViolationOut(BaseModel):
    id: int
    violation_type: str
    severity: str
    description: Optional[str] = None
    violation_metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class ReviewedAnswer(BaseModel):
    question_id: int
    question: str
    is_multiple_choice: bool
    correct_answer: Optional[str] = None
    marks: int
    answer: Optional[str] = None
    marks_awarded: Optional[float] = None


class SessionReview(BaseModel):
    session: TestSession
    candidate_email: str
    candidate_name: Optional[str] = None
    answers: List[ReviewedAnswer]
    violations: List[ViolationOut]


class ReviewRequest(BaseModel):
    free_text_marks: Dict[int, float] = Field(default_factory=dict)


class ReviewResult(BaseModel):
    session_id: str
    score: float
    passed: bool
    review_status: str
