from .base import BaseModel
from .user import User, UserRole
from .company import Company
from .candidate import CandidateProfile, WorkExperience, Education, CandidateTest
from .catalog import JobCategory, JobSpecialization, TestQuestion
from .job import JobPool, Job, Application, JobStatus
from .test import TestSession, TestSessionQuestion, TestResponse, SubmissionJob, SessionStatus, SubmitReason
from .proctoring_violations import ProctoringViolation

__all__ = [
    "BaseModel",
    "User",
    "UserRole",
    "Company",
    "CandidateProfile",
    "WorkExperience",
    "Education",
    "CandidateTest",
    "JobCategory",
    "JobSpecialization",
    "TestQuestion",
    "JobPool",
    "Job",
    "Application",
    "JobStatus",
    "TestSession",
    "TestSessionQuestion",
    "TestResponse",
    "SubmissionJob",
    "SessionStatus",
    "SubmitReason",
    "ProctoringViolation",
]
