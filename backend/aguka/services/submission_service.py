import logging
import os
import uuid
from typing import List, Optional, Tuple

import aiofiles
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models.test import SubmissionJob, TestSession
from ..utils.file_paths import Buckets, FileTypes, ensure_upload_directory, safe_join
from ..utils.storage import ObjectStorage, object_storage
from ..utils.timezone import utc_now
from .test_service import TestSessionService

logger = logging.getLogger(__name__)


class SubmissionService:
    """
    Durable submission queue.

    A submission is first persisted (the assembled recording on disk plus a
    ``submission_jobs`` row) and only then synced: the video is uploaded and
    the session is marked completed. Failed syncs stay queued for retry.
    """

    def __init__(self, db: AsyncSession, storage: ObjectStorage = object_storage,
                 sessions: Optional[TestSessionService] = None):
        self.db = db
        self.storage = storage
        self.sessions = sessions or TestSessionService(db)

    async def get_job(self, session_id: str) -> Optional[SubmissionJob]:
        result = await self.db.execute(select(SubmissionJob).filter(SubmissionJob.session_id == session_id))
        return result.scalars().first()

    async def enqueue(self, session: TestSession, reason: str, video: bytes) -> SubmissionJob:
        """
        Persist the assembled recording and the queue row.

        Concurrent submissions of one session race on the unique
        ``session_id``; the loser drops its own copy and returns the winner's job.
        """
        session_id = session.id
        existing = await self.get_job(session_id)
        if existing:
            return existing

        # one file per writer, a losing writer never touches the winner's recording
        pending_dir = ensure_upload_directory(FileTypes.PENDING_SUBMISSIONS)
        recording_path = safe_join(pending_dir, f"{session_id}-{uuid.uuid4().hex}.webm")
        async with aiofiles.open(recording_path, "wb") as f:
            await f.write(video)

        job = SubmissionJob(
            session_id=session_id,
            reason=reason,
            requested_at=utc_now(),
            recording_path=recording_path,
            attempts=0,
        )
        session.submit_reason = reason
        self.db.add(job)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self.db.refresh(session)
            self._remove_recording(recording_path)
            logger.info(f"Submission for session {session_id} was already queued, using the existing job")
            return await self.get_job(session_id)

        logger.info(f"Submission queued for session {session_id} (reason: {reason}, {len(video)} bytes)")
        return job

    @staticmethod
    def _remove_recording(path: str) -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove pending recording {path}: {e}")

    async def sync(self, job: SubmissionJob) -> bool:
        """Upload the recording and complete the session. Returns False when the job stays queued."""
        if job.is_synced:
            return True

        job.attempts = (job.attempts or 0) + 1
        await self.db.commit()

        session_id = job.session_id
        try:
            session = await self.sessions.get_session(session_id)
            if session is None:
                raise LookupError(f"Test session {session_id} no longer exists")

            async with aiofiles.open(job.recording_path, "rb") as f:
                video = await f.read()

            key = f"{session_id}.webm"
            stored = await self.storage.upload(Buckets.TEST_RECORDINGS, key, video, upsert=True)
            await self.sessions.mark_completed(
                session,
                end_time=job.requested_at,
                video_url=f"{stored.bucket}/{stored.path}",
                reason=job.reason,
                commit=False,
            )
            job.synced_at = utc_now()
            job.last_error = None
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            await self.db.refresh(job)
            if job.is_synced:
                # a concurrent submission of the same session finished the sync
                logger.info(f"Submission for session {session_id} was synced by another writer")
                return True
            job.last_error = str(e) or e.__class__.__name__
            await self.db.commit()
            logger.warning(f"Submission sync failed for session {session_id} (attempt {job.attempts}): {e}")
            return False

        self._remove_recording(job.recording_path)

        logger.info(f"Submission synced for session {session_id}")
        return True

    async def pending_jobs(self, limit: int = 50) -> List[SubmissionJob]:
        result = await self.db.execute(
            select(SubmissionJob)
            .filter(
                SubmissionJob.synced_at.is_(None),
                SubmissionJob.attempts < settings.submission_max_attempts,
            )
            .order_by(SubmissionJob.requested_at)
            .limit(limit)
        )
        return result.scalars().all()

    async def sync_pending(self, limit: int = 50) -> Tuple[int, int]:
        synced = failed = 0
        for job in await self.pending_jobs(limit):
            if await self.sync(job):
                synced += 1
            else:
                failed += 1
        if synced or failed:
            logger.info(f"Pending submissions: {synced} synced, {failed} still queued")
        return synced, failed
