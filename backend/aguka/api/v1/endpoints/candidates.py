import logging

from fastapi import APIRouter, File, HTTPException, UploadFile

from ....core.exceptions import AIResponseError
from ....schemas.ai import ResumeAnalysis
from ....utils.ai_service import openai_service
from ....utils.pdf_text import extract_pdf_text

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_RESUME_SIZE = 10 * 1024 * 1024


@router.post("/resume/analyze", response_model=ResumeAnalysis)
async def analyze_resume(resume: UploadFile = File(...)):
    """Turn an uploaded PDF résumé into the data used to prefill candidate signup."""
    if resume.content_type not in ("application/pdf", "application/x-pdf") and not (
        resume.filename or ""
    ).lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Please upload a PDF résumé")

    data = await resume.read()
    if not data:
        raise HTTPException(status_code=400, detail="The uploaded file is empty")
    if len(data) > MAX_RESUME_SIZE:
        raise HTTPException(status_code=413, detail="Résumé file is too large")

    try:
        text = extract_pdf_text(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await openai_service.analyze_resume(text)
    if not result.ok:
        logger.warning(f"Résumé analysis failed for '{resume.filename}': {result.error}")
        raise AIResponseError(result.error)
    return result.data
