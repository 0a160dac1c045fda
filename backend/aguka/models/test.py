from sqlalchemy import Column, String, DateTime, ForeignKey, Float, Text, Boolean, Integer, UniqueConstraint, Index, text
from sqlalchemy.orm import relationship
from ..utils.timezone import utc_now
from ..core.database import Base


class SessionStatus:
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SubmitReason:
    MANUAL = "manual"
    FULLSCREEN_EXIT = "fullscreen_exit"
    TIMEOUT = "timeout"

    ALL = (MANUAL, FULLSCREEN_EXIT, TIMEOUT)


class TestSession(Base):
    __tablename__ = "test_sessions"
    __table_args__ = (
        Index(
            "uq_test_sessions_one_in_progress",
            "candidate_id",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
    )
    __test__ = False

    id = Column(String, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_practice = Column(Boolean, default=False)
    status = Column(String, default=SessionStatus.IN_PROGRESS, index=True)
    start_time = Column(DateTime, default=utc_now)
    end_time = Column(DateTime, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    video_url = Column(String, nullable=True)
    recording_released = Column(Boolean, default=False)
    submit_reason = Column(String, nullable=True)
    fullscreen_exited_at = Column(DateTime, nullable=True)
    review_status = Column(String, default="pending")
    score = Column(Float, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    candidate = relationship("User", back_populates="test_sessions", foreign_keys=[candidate_id])
    delivered_questions = relationship(
        "TestSessionQuestion",
        back_populates="session",
        order_by="TestSessionQuestion.position",
        cascade="all, delete-orphan",
    )
    responses = relationship("TestResponse", back_populates="session", cascade="all, delete-orphan")
    violations = relationship("ProctoringViolation", back_populates="session")
    submission_job = relationship("SubmissionJob", back_populates="session", uselist=False)

    @property
    def location_data(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {"latitude": self.latitude, "longitude": self.longitude}


class TestSessionQuestion(Base):
    """The question batch pinned to a session at start."""
    __tablename__ = "test_session_questions"
    __test__ = False

    session_id = Column(String, ForeignKey("test_sessions.id"), primary_key=True)
    question_id = Column(Integer, ForeignKey("test_questions.id"), primary_key=True)
    position = Column(Integer, nullable=False)

    session = relationship("TestSession", back_populates="delivered_questions")
    question = relationship("TestQuestion")


class TestResponse(Base):
    __tablename__ = "test_responses"
    __table_args__ = (UniqueConstraint("test_session_id", "question_id", name="uq_response_session_question"),)
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    test_session_id = Column(String, ForeignKey("test_sessions.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("test_questions.id"), nullable=False)
    answer = Column(Text, nullable=False, default="")
    marks_awarded = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    session = relationship("TestSession", back_populates="responses")
    question = relationship("TestQuestion")


class SubmissionJob(Base):
    """Durable record of a requested submission, kept until the video and status are synced."""
    __tablename__ = "submission_jobs"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("test_sessions.id"), unique=True, nullable=False)
    reason = Column(String, nullable=False)
    requested_at = Column(DateTime, default=utc_now, nullable=False)
    recording_path = Column(String, nullable=True)
    attempts = Column(Integer, default=0)
    last_error = Column(Text, nullable=True)
    synced_at = Column(DateTime, nullable=True)

    session = relationship("TestSession", back_populates="submission_job")

    @property
    def is_synced(self) -> bool:
        return self.synced_at is not None
