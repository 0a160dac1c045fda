from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..utils.timezone import utc_now
from .base import Base


class ProctoringViolation(Base):
    __tablename__ = "proctoring_violations"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("test_sessions.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    violation_type = Column(String, nullable=False)
    severity = Column(String, default="medium")
    description = Column(Text)
    violation_metadata = Column(JSON)
    timestamp = Column(DateTime, default=utc_now)

    session = relationship("TestSession", back_populates="violations")
    candidate = relationship("User")

    def __repr__(self):
        return f"<ProctoringViolation {self.violation_type} for session {self.session_id}>"
