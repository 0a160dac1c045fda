"""
Pytest configuration for the Aguka API tests.

The environment is set before anything from ``aguka`` is imported: the
settings object and the engines are created at import time.
"""
import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="aguka-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT}/aguka.db"
os.environ["ASYNC_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/aguka.db"
os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["UPLOAD_BASE_DIR"] = _TEST_ROOT
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["AZURE_OPENAI_ENDPOINT"] = ""
os.environ["AZURE_OPENAI_API_KEY"] = ""

import shutil
from typing import List

import pytest
from fastapi.testclient import TestClient

from aguka import models  # noqa: F401  registers every table
from aguka.core.cache import CacheManager
from aguka.core.database import Base, engine, SessionLocal, AsyncSessionLocal
from aguka.core.security import create_access_token, get_password_hash
from aguka.models.candidate import CandidateProfile, WorkExperience
from aguka.models.catalog import TestQuestion
from aguka.models.company import Company
from aguka.models.user import User, UserRole
from aguka.schemas.ai import JobPoolAnalysis, MalformedResponse, ParsedResponse
from aguka.utils.file_paths import get_upload_root
from aguka.utils.recorder import ChunkRecorder
from aguka.utils.storage import ObjectStorage


class FakeCache:
    """In-memory stand-in for the Redis cache manager."""

    def __init__(self):
        self.store = {}

    make_key = staticmethod(CacheManager.make_key)

    async def aget(self, key):
        return self.store.get(key)

    async def aset(self, key, value, ttl=None):
        self.store[key] = value
        return True

    async def adelete(self, key):
        return self.store.pop(key, None) is not None

    async def ahealth_check(self):
        return True

    async def aclose(self):
        return None


class FakeAI:
    """Returns a canned job-pool classification, or a malformed result when ``malformed`` is set."""

    def __init__(self, pool_title="Senior Backend Engineer", confidence=0.9, malformed=False):
        self.pool_title = pool_title
        self.confidence = confidence
        self.malformed = malformed
        self.calls = []

    async def analyze_job_for_pool(self, title, description, level):
        self.calls.append((title, description, level))
        if self.malformed:
            return MalformedResponse(error="AI model returned invalid JSON", raw="not json")
        return ParsedResponse(data=JobPoolAnalysis.model_validate({
            "suggestedPool": {"title": self.pool_title, "description": "Backend engineers"},
            "confidence": self.confidence,
            "keywords": ["python", "sql"],
        }))


class CountingRecorder(ChunkRecorder):
    """ChunkRecorder that counts how many times the media tracks were actually stopped."""
    stops: List[str] = []

    def stop(self) -> bool:
        stopped = super().stop()
        if stopped:
            CountingRecorder.stops.append(self.session_id)
        return stopped


class FlakyStorage(ObjectStorage):
    """Object storage whose first ``failures`` uploads raise."""

    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures
        self.uploads = 0

    async def upload(self, bucket, key, data, upsert=False):
        self.uploads += 1
        if self.failures > 0:
            self.failures -= 1
            raise OSError("storage unavailable")
        return await super().upload(bucket, key, data, upsert=upsert)


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema and upload directory for every test."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    shutil.rmtree(get_upload_root(), ignore_errors=True)
    CountingRecorder.stops = []
    yield


@pytest.fixture(autouse=True)
def fake_cache(monkeypatch):
    cache = FakeCache()
    monkeypatch.setattr("aguka.utils.ai_service.cache", cache)
    monkeypatch.setattr("aguka.main.cache", cache)
    monkeypatch.setattr("aguka.api.v1.endpoints.health.cache", cache)
    return cache


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
async def async_db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def app():
    from aguka.main import app
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def _make_user(db, email, role, full_name="Test User", password="password123", **extra):
    user = User(
        email=email,
        full_name=full_name,
        phone="0700000000",
        role=role,
        hashed_password=get_password_hash(password),
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def candidate(db):
    user = _make_user(db, "candidate@example.com", UserRole.CANDIDATE, full_name="Amina Uwase")
    db.add(CandidateProfile(user_id=user.id, full_name=user.full_name, age_group="26-30",
                            career_summary="Backend developer"))
    db.add(WorkExperience(candidate_id=user.id, role="Python Developer", company="Kigali Tech"))
    db.commit()
    return user


@pytest.fixture
def other_candidate(db):
    user = _make_user(db, "other@example.com", UserRole.CANDIDATE, full_name="Jean Habimana")
    db.add(CandidateProfile(user_id=user.id, full_name=user.full_name, age_group="31-35"))
    db.add(WorkExperience(candidate_id=user.id, role="Accountant", company="Bank"))
    db.commit()
    return user


@pytest.fixture
def employer(db):
    company = Company(name="Acme Ltd")
    db.add(company)
    db.commit()
    return _make_user(db, "employer@example.com", UserRole.EMPLOYER, full_name="Grace Employer",
                      company_id=company.id)


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", UserRole.ADMIN, full_name="Site Admin")


def auth_headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def questions(db):
    """Thirty multiple-choice questions, enough for one official test."""
    created = []
    for i in range(30):
        question = TestQuestion(
            question=f"Question {i + 1}?",
            seniority="mid",
            is_multiple_choice=True,
            options=["A", "B", "C"],
            correct_answer="A",
            marks=1,
        )
        db.add(question)
        created.append(question)
    db.commit()
    return created


@pytest.fixture
def all_permissions():
    from aguka.schemas.test import DevicePermissions, LocationFix
    from aguka.services.devices import ClientReportedDevices
    return ClientReportedDevices(
        DevicePermissions(camera=True, microphone=True, location=True),
        LocationFix(latitude=-1.9441, longitude=30.0619),
    )


START_PAYLOAD = {
    "is_practice": False,
    "permissions": {"camera": True, "microphone": True, "location": True},
    "location": {"latitude": -1.9441, "longitude": 30.0619},
}
