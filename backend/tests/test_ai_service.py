"""
Tests for the Azure OpenAI wrapper and the résumé analysis endpoint.
"""
import json

import pytest

from aguka.schemas.ai import JobPoolAnalysis, ResumeAnalysis
from aguka.utils.ai_service import OpenAIService

POOL_JSON = json.dumps({
    "suggestedPool": {"title": "Senior Backend Engineer", "description": "Python and SQL"},
    "confidence": 0.82,
    "keywords": ["python", "postgres"],
})

RESUME_JSON = json.dumps({
    "name": "Amina Uwase",
    "email": "amina@example.com",
    "phone": "0788000000",
    "ageGroup": "26-30",
    "careerSummary": "Backend developer.",
    "workExperience": [{"role": "Python Developer", "company": "Kigali Tech", "description": []}],
    "education": [],
})


@pytest.fixture
def configured_service(monkeypatch):
    """An OpenAIService with a fake client whose completions are counted."""
    service = OpenAIService()
    service.client = object()
    calls = []

    async def fake_completion(messages, max_tokens=4096, temperature=0.2):
        calls.append(messages)
        return service.next_response

    service.next_response = POOL_JSON
    monkeypatch.setattr(service, "_generate_chat_completion", fake_completion)
    service.calls = calls
    return service


class TestParseJsonResponse:
    def test_valid_payload(self):
        result = OpenAIService()._parse_json_response(POOL_JSON, JobPoolAnalysis, "test")

        assert result.ok
        assert result.data.suggested_pool.title == "Senior Backend Engineer"
        assert result.data.confidence == pytest.approx(0.82)

    def test_invalid_json_is_malformed(self):
        result = OpenAIService()._parse_json_response("{not json", JobPoolAnalysis, "test")

        assert not result.ok
        assert result.error == "AI model returned invalid JSON"
        assert result.raw == "{not json"

    def test_schema_violation_is_malformed(self):
        payload = json.dumps({"suggestedPool": {"title": "X"}, "confidence": 7})

        result = OpenAIService()._parse_json_response(payload, JobPoolAnalysis, "test")

        assert not result.ok
        assert "failed validation" in result.error

    def test_empty_response_is_malformed(self):
        result = OpenAIService()._parse_json_response(None, ResumeAnalysis, "test")
        assert not result.ok


class TestAnalyses:
    async def test_unconfigured_client_reports_malformed(self):
        service = OpenAIService()
        assert service.client is None

        result = await service.analyze_job_for_pool("Backend Engineer", "Build APIs", "senior")

        assert not result.ok
        assert "not configured" in result.error

    async def test_pool_analysis_is_cached(self, configured_service, fake_cache):
        first = await configured_service.analyze_job_for_pool("Backend Engineer", "Build APIs", "senior")
        second = await configured_service.analyze_job_for_pool("Backend Engineer", "Build APIs", "senior")

        assert first.ok and second.ok
        assert second.data == first.data
        assert len(configured_service.calls) == 1
        assert len(fake_cache.store) == 1

    async def test_malformed_result_is_not_cached(self, configured_service, fake_cache):
        configured_service.next_response = "no json here"

        result = await configured_service.analyze_job_for_pool("Backend Engineer", "Build APIs", "senior")

        assert not result.ok
        assert fake_cache.store == {}

    async def test_resume_analysis_accepts_aliases(self, configured_service):
        configured_service.next_response = RESUME_JSON

        result = await configured_service.analyze_resume("Amina Uwase\nPython Developer")

        assert result.ok
        assert result.data.age_group == "26-30"
        assert result.data.work_experience[0].company == "Kigali Tech"


class TestResumeEndpoint:
    URL = "/api/v1/candidates/resume/analyze"

    def _upload(self, client, data=b"%PDF-1.4 fake", filename="cv.pdf", content_type="application/pdf"):
        return client.post(self.URL, files={"resume": (filename, data, content_type)})

    def test_successful_analysis(self, client, monkeypatch, configured_service):
        configured_service.next_response = RESUME_JSON
        monkeypatch.setattr("aguka.api.v1.endpoints.candidates.openai_service", configured_service)
        monkeypatch.setattr("aguka.api.v1.endpoints.candidates.extract_pdf_text", lambda data: "Amina Uwase")

        response = self._upload(client)

        assert response.status_code == 200
        assert response.json()["name"] == "Amina Uwase"
        assert response.json()["ageGroup"] == "26-30"

    def test_malformed_ai_output_is_bad_gateway(self, client, monkeypatch, configured_service):
        configured_service.next_response = "{}"
        monkeypatch.setattr("aguka.api.v1.endpoints.candidates.openai_service", configured_service)
        monkeypatch.setattr("aguka.api.v1.endpoints.candidates.extract_pdf_text", lambda data: "some text")

        response = self._upload(client)

        assert response.status_code == 502
        assert "failed validation" in response.json()["detail"]

    def test_non_pdf_is_rejected(self, client):
        response = self._upload(client, filename="cv.docx", content_type="application/msword")
        assert response.status_code == 400

    def test_unreadable_pdf_is_rejected(self, client):
        response = self._upload(client, data=b"definitely not a pdf")
        assert response.status_code == 400
