from .auth import Token
from .user import User, CandidateSignup, EmployerSignup, JobSeeker
from .test import TestSession, TestStartRequest, TestStartResponse, SubmissionResult
__all__ = [
    "Token",
    "User",
    "CandidateSignup",
    "EmployerSignup",
    "JobSeeker",
    "TestSession",
    "TestStartRequest",
    "TestStartResponse",
    "SubmissionResult",
]
