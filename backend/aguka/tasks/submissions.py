import logging
from datetime import datetime

from aguka.core.async_task import AsyncTask
from aguka.core.celery_app import celery_app
from aguka.core.database import AsyncSessionLocal
from aguka.models.test import SessionStatus, SubmitReason
from aguka.services.proctoring_service import ProctoringSessionController
from aguka.services.submission_service import SubmissionService
from aguka.services.test_service import TestSessionService

logger = logging.getLogger(__name__)


async def sync_pending(limit: int = 50) -> dict:
    async with AsyncSessionLocal() as db:
        synced, failed = await SubmissionService(db).sync_pending(limit)
    return {"synced": synced, "failed": failed}


@celery_app.task(base=AsyncTask, name="sync_pending_submissions")
async def sync_pending_submissions(limit: int = 50):
    """Retry every queued submission whose video or status has not been synced yet."""
    return await sync_pending(limit)


async def enforce_exit(session_id: str, exited_at: str) -> dict:
    async with AsyncSessionLocal() as db:
        session = await TestSessionService(db).get_session(session_id)
        if session is None:
            return {"status": "missing"}
        if session.status != SessionStatus.IN_PROGRESS:
            return {"status": "already_completed"}
        # a later re-entry cleared or replaced the exit timestamp
        if session.fullscreen_exited_at is None or session.fullscreen_exited_at != datetime.fromisoformat(exited_at):
            return {"status": "restored"}

        controller = await ProctoringSessionController.resume(db, session.candidate_id, session_id)
        outcome = await controller.submit(SubmitReason.FULLSCREEN_EXIT)
        logger.info(f"Session {session_id} submitted after full-screen grace period (synced: {outcome.synced})")
        return {"status": "submitted", "synced": outcome.synced}


@celery_app.task(base=AsyncTask, name="enforce_fullscreen_exit")
async def enforce_fullscreen_exit(session_id: str, exited_at: str):
    """Submit the session unless the candidate returned to full-screen during the grace period."""
    return await enforce_exit(session_id, exited_at)
