import json
import logging
from typing import Dict, List, Optional, Type

from openai import AsyncAzureOpenAI
from pydantic import BaseModel, ValidationError

from ..core.cache import cache
from ..core.config import settings
from ..schemas.ai import (
    AGE_GROUPS,
    AnalysisResult,
    JobPoolAnalysis,
    MalformedResponse,
    ParsedResponse,
    ResumeAnalysis,
)

logger = logging.getLogger(__name__)

MAX_RESUME_CHARS = 30000


class OpenAIService:
    def __init__(self):
        self.client: Optional[AsyncAzureOpenAI] = self._initialize_client()

    def _initialize_client(self) -> Optional[AsyncAzureOpenAI]:
        if not settings.azure_openai_endpoint or not settings.azure_openai_api_key:
            logger.warning("Azure OpenAI not configured (endpoint/api_key missing). Résumé and pool analysis disabled.")
            return None
        return AsyncAzureOpenAI(
            api_version=settings.azure_openai_api_version,
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            timeout=settings.ai_request_timeout,
            max_retries=2,
        )

    def _parse_json_response(self, response: Optional[str], schema: Type[BaseModel], method_name: str) -> AnalysisResult:
        """Parse and validate the model's JSON text into ``schema``."""
        if not response:
            return MalformedResponse(error="Empty response from AI model", raw=response)
        try:
            payload = json.loads(response)
        except json.JSONDecodeError as e:
            logger.error(f"AI model returned invalid JSON for {method_name}: {e}")
            return MalformedResponse(error="AI model returned invalid JSON", raw=response)
        try:
            return ParsedResponse(data=schema.model_validate(payload))
        except ValidationError as e:
            logger.error(f"AI model returned an unexpected shape for {method_name}: {e.error_count()} errors")
            return MalformedResponse(error=f"AI model response failed validation: {e.errors()[0]['msg']}", raw=response)

    async def _generate_chat_completion(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 4096,
        temperature: float = 0.2
    ) -> Optional[str]:
        """Call the chat deployment with a forced JSON response."""
        if not self.client:
            return None
        try:
            response = await self.client.chat.completions.create(
                model=settings.azure_openai_deployment,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                response_format={"type": "json_object"}
            )
        except Exception as e:
            logger.error(f"Error calling Azure OpenAI chat completion: {e}")
            return None
        content = response.choices[0].message.content
        logger.debug(f"AI response received, length: {len(content) if content else 0}")
        return content

    async def _cached_analysis(self, cache_prefix: str, key_parts: List[str], messages: List[Dict[str, str]],
                               schema: Type[BaseModel], method_name: str) -> AnalysisResult:
        if not self.client:
            return MalformedResponse(error="AI service is not configured")

        cache_key = cache.make_key(cache_prefix, *key_parts)
        cached = await cache.aget(cache_key)
        if cached:
            try:
                return ParsedResponse(data=schema.model_validate(cached))
            except ValidationError:
                await cache.adelete(cache_key)

        response = await self._generate_chat_completion(messages)
        result = self._parse_json_response(response, schema, method_name)
        if result.ok:
            await cache.aset(cache_key, result.data.model_dump(by_alias=True), ttl=settings.ai_cache_ttl)
        return result

    async def analyze_resume(self, resume_text: str) -> AnalysisResult:
        """Extract contact details, experience and education from résumé text."""
        system_prompt = f"""
You extract structured data from résumés.
Return ONLY valid JSON in this EXACT format with no extra text:
{{
    "name": "Full name",
    "email": "Email address",
    "phone": "Phone number",
    "ageGroup": "One of {', '.join(AGE_GROUPS)}",
    "careerSummary": "Two or three sentence career summary",
    "workExperience": [
        {{"role": "Role", "company": "Company", "startDate": "YYYY-MM", "endDate": "YYYY-MM or null if current", "description": ["Achievement"]}}
    ],
    "education": [
        {{"level": "Degree level", "schoolName": "School", "startDate": "YYYY", "endDate": "YYYY", "gpa": "GPA or empty", "achievements": ["Achievement"]}}
    ]
}}"""
        text = resume_text[:MAX_RESUME_CHARS]
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": f"Here's the resume text:\n{text}"},
        ]
        return await self._cached_analysis("resume_analysis", [text], messages, ResumeAnalysis, "analyze_resume")

    async def analyze_job_for_pool(self, title: str, description: str, level: str) -> AnalysisResult:
        """Suggest the job pool (target candidate profile) a posting belongs to."""
        system_prompt = """
Analyze a job posting and suggest a job pool title and description. A job pool groups similar jobs
based on the target recruitment audience. Consider the role, required skills, and experience level.
Return ONLY valid JSON in this EXACT format with no extra text:
{
    "suggestedPool": {
        "title": "A clear, specific title like 'Senior React Developer' or 'DevOps Team Lead'",
        "description": "A brief description of the target candidate profile"
    },
    "confidence": 0.85,
    "keywords": ["key", "skills", "and", "requirements"]
}
confidence is a number between 0 and 1 indicating match confidence."""
        user_prompt = f"Job details:\nTitle: {title}\nLevel: {level}\nDescription: {description}"
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self._cached_analysis(
            "job_pool_analysis", [title, level, description], messages, JobPoolAnalysis, "analyze_job_for_pool"
        )


openai_service = OpenAIService()
