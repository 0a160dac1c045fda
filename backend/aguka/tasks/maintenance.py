import asyncio
import logging
import os
import shutil
import time
from datetime import timedelta

from sqlalchemy import select

from aguka.core.async_task import AsyncTask
from aguka.core.celery_app import celery_app
from aguka.core.config import settings
from aguka.core.database import AsyncSessionLocal
from aguka.models.test import TestSession, SessionStatus, SubmitReason
from aguka.services.proctoring_service import ProctoringSessionController
from aguka.services.test_service import TestSessionService
from aguka.utils.file_paths import FileTypes, ensure_upload_directory
from aguka.utils.timezone import utc_now

logger = logging.getLogger(__name__)

CHUNK_RETENTION_SECONDS = 24 * 3600


async def expire_sessions() -> dict:
    """Submit sessions that outlived the maximum test duration with reason ``timeout``."""
    cutoff = utc_now() - timedelta(minutes=settings.max_test_duration_minutes)
    expired = []
    async with AsyncSessionLocal() as db:
        stale = await TestSessionService(db).get_stale_sessions(cutoff)
        # a failed submit rolls back and expires every loaded row
        targets = [(session.id, session.candidate_id) for session in stale]
        for session_id, candidate_id in targets:
            controller = await ProctoringSessionController.resume(db, candidate_id, session_id)
            try:
                await controller.submit(SubmitReason.TIMEOUT)
                expired.append(session_id)
            except Exception as e:
                await db.rollback()
                logger.error(f"Failed to expire session {session_id}: {e}", exc_info=True)
    if expired:
        logger.info(f"Expired {len(expired)} stale test sessions")
    return {"expired": expired}


@celery_app.task(base=AsyncTask, name="expire_stale_sessions")
async def expire_stale_sessions():
    return await expire_sessions()


async def cleanup_chunks(max_age_seconds: int = CHUNK_RETENTION_SECONDS) -> dict:
    """Remove chunk directories of sessions that are no longer in progress."""
    chunks_dir = ensure_upload_directory(FileTypes.CHUNKS)
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(TestSession.id).filter(TestSession.status == SessionStatus.IN_PROGRESS))
        active = set(result.scalars().all())

    removed = []
    now = time.time()
    for name in await asyncio.to_thread(os.listdir, chunks_dir):
        path = os.path.join(chunks_dir, name)
        if name in active or not os.path.isdir(path):
            continue
        if now - os.path.getmtime(path) < max_age_seconds:
            continue
        await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)
        removed.append(name)
        logger.info(f"Cleaned up orphaned chunks directory: {path}")
    return {"removed": removed}


@celery_app.task(base=AsyncTask, name="cleanup_orphaned_chunks")
async def cleanup_orphaned_chunks():
    return await cleanup_chunks()
