from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal

from .catalog import CandidateQuestion


class DevicePermissions(BaseModel):
    """What the browser reported after asking for each device."""
    camera: bool = False
    microphone: bool = False
    location: bool = False


class LocationFix(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class TestStartRequest(BaseModel):
    is_practice: bool = False
    permissions: DevicePermissions
    location: Optional[LocationFix] = None


class TestSession(BaseModel):
    id: str
    candidate_id: int
    is_practice: bool
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    location_data: Optional[LocationFix] = None
    video_url: Optional[str] = None
    submit_reason: Optional[str] = None
    review_status: Optional[str] = None
    score: Optional[float] = None

    class Config:
        from_attributes = True


class TestStartResponse(BaseModel):
    session: TestSession
    questions: List[CandidateQuestion]


class AnswerRequest(BaseModel):
    value: str


class Answer(BaseModel):
    test_session_id: str
    question_id: int
    answer: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FullscreenEvent(BaseModel):
    is_fullscreen: bool


class SubmitRequest(BaseModel):
    reason: Literal["manual", "fullscreen_exit", "timeout"] = "manual"


class SubmissionResult(BaseModel):
    session: TestSession
    synced: bool
    pending_error: Optional[str] = None


class FullscreenResult(BaseModel):
    submitted: bool
    submission: Optional[SubmissionResult] = None


class ChunkReceipt(BaseModel):
    session_id: str
    chunk_index: int
    size: int


class TestPrepInfo(BaseModel):
    specialization: Optional[str] = None
    seniority: Optional[str] = None
    last_test_date: Optional[datetime] = None
    next_available_date: Optional[datetime] = None
    official_question_count: int
    practice_question_count: int
