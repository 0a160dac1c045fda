import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import (
    ConflictError,
    DevicePermissionError,
    SessionClosedError,
    TestStartError,
)
from ..models.catalog import TestQuestion
from ..models.test import SessionStatus, SubmitReason, TestResponse, TestSession
from ..utils.recorder import ChunkRecorder, RecorderStoppedError
from ..utils.storage import ObjectStorage, object_storage
from ..utils.timezone import utc_now
from .devices import DeviceGateway
from .submission_service import SubmissionService
from .test_service import TestSessionService

logger = logging.getLogger(__name__)

NOT_STARTED = "not_started"


@dataclass
class SubmissionOutcome:
    session: TestSession
    synced: bool
    pending_error: Optional[str] = None


class ProctoringSessionController:
    """
    Drives one proctored attempt: start, answers, the fullscreen guard,
    submission and teardown.

    The recording handle is released through ``_release_recording`` only,
    guarded by the session's ``recording_released`` column, so the media
    tracks are stopped exactly once whichever path ends the attempt.
    Use it as an async context manager to make sure teardown runs.
    """

    def __init__(
        self,
        db: AsyncSession,
        candidate_id: int,
        storage: ObjectStorage = object_storage,
        sessions: Optional[TestSessionService] = None,
        submissions: Optional[SubmissionService] = None,
        recorder_factory: Callable[[str], ChunkRecorder] = ChunkRecorder,
    ):
        self.db = db
        self.candidate_id = candidate_id
        self.sessions = sessions or TestSessionService(db)
        self.submissions = submissions or SubmissionService(db, storage, self.sessions)
        self.recorder_factory = recorder_factory
        self.session: Optional[TestSession] = None
        self.recorder: Optional[ChunkRecorder] = None

    @classmethod
    async def resume(cls, db: AsyncSession, candidate_id: int, session_id: str, **kwargs) -> "ProctoringSessionController":
        """Rebuild the controller for an existing session owned by ``candidate_id``."""
        controller = cls(db, candidate_id, **kwargs)
        controller.session = await controller.sessions.get_owned_session(session_id, candidate_id)
        controller.recorder = controller.recorder_factory(session_id)
        return controller

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    @property
    def state(self) -> str:
        if self.session is None:
            return NOT_STARTED
        return self.session.status

    def _require_session(self) -> TestSession:
        if self.session is None:
            raise ConflictError("The test has not been started")
        return self.session

    async def _refresh(self) -> TestSession:
        session = self._require_session()
        fresh = await self.sessions.get_session(session.id)
        if fresh is not None:
            self.session = fresh
        return self.session

    async def start(self, devices: DeviceGateway, is_practice: bool = False) -> Tuple[TestSession, List[TestQuestion]]:
        """
        Acquire devices, create the session and deliver its questions.

        Raises:
            ConflictError: the candidate already has a test running or is in cooldown
            TestStartError: a device was denied or the session could not be created
        """
        if self.session is not None:
            raise ConflictError("This test has already been started")

        await self.sessions.ensure_can_start(self.candidate_id, is_practice)

        session_id = str(uuid.uuid4())
        question_count = (
            settings.practice_test_question_count if is_practice else settings.official_test_question_count
        )
        recorder = None
        try:
            devices.acquire_media()
            recorder = self.recorder_factory(session_id)
            recorder.open()
            location = devices.acquire_location()
            session, questions = await self.sessions.open_session(
                session_id, self.candidate_id, is_practice, location, question_count
            )
        except ConflictError:
            if recorder is not None:
                recorder.discard()
            raise
        except DevicePermissionError as e:
            if recorder is not None:
                recorder.discard()
            logger.info(f"Test start refused for candidate {self.candidate_id}: {e.message}")
            raise TestStartError(f"Please allow {e.device} access to start the test", e)
        except Exception as e:
            if recorder is not None:
                recorder.discard()
            logger.error(f"Failed to start test for candidate {self.candidate_id}: {e}")
            message = str(e) if isinstance(e, ValueError) else "Could not start the test, please try again"
            raise TestStartError(message, e)

        self.session = session
        self.recorder = recorder
        return session, questions

    async def questions(self) -> List[TestQuestion]:
        return await self.sessions.get_delivered_questions(self._require_session().id)

    async def record_answer(self, question_id: int, value: str) -> TestResponse:
        return await self.sessions.upsert_answer(self._require_session().id, question_id, value)

    async def append_chunk(self, chunk_index: int, data: bytes) -> int:
        session = await self._refresh()
        if session.status != SessionStatus.IN_PROGRESS or session.recording_released:
            raise SessionClosedError("Recording has already been stopped for this test")
        if len(data) > settings.max_recording_chunk_size:
            raise ValueError("Recording chunk is too large")
        try:
            return await self.recorder.append(chunk_index, data)
        except RecorderStoppedError as e:
            raise SessionClosedError(str(e))

    async def on_fullscreen_change(self, is_fullscreen: bool) -> Optional[SubmissionOutcome]:
        """
        React to the candidate entering or leaving full-screen.

        Leaving full-screen while the test runs submits it in the same call,
        unless a grace period is configured, in which case a delayed task
        submits it if the candidate has not come back by then.
        """
        session = await self._refresh()
        if session.status != SessionStatus.IN_PROGRESS:
            return None

        if is_fullscreen:
            if session.fullscreen_exited_at is not None:
                await self.sessions.set_fullscreen_exit(session, None)
                logger.info(f"Candidate returned to full-screen in session {session.id}")
            return None

        await self.sessions.log_violation(
            session,
            violation_type="fullscreen_exit",
            description="Candidate left full-screen mode",
            severity="high",
        )

        grace = settings.fullscreen_grace_seconds
        if grace <= 0:
            return await self.submit(SubmitReason.FULLSCREEN_EXIT)

        exited_at = utc_now()
        await self.sessions.set_fullscreen_exit(session, exited_at)
        try:
            from ..tasks.submissions import enforce_fullscreen_exit
            enforce_fullscreen_exit.apply_async(args=[session.id, exited_at.isoformat()], countdown=grace)
        except Exception as e:
            logger.error(f"Could not schedule fullscreen enforcement for session {session.id}, submitting now: {e}")
            return await self.submit(SubmitReason.FULLSCREEN_EXIT)
        logger.info(f"Session {session.id} will be submitted in {grace}s unless full-screen is restored")
        return None

    async def submit(self, reason: str = SubmitReason.MANUAL) -> SubmissionOutcome:
        """
        Stop the recording, persist the submission and try to sync it.

        A completed session is returned unchanged. When the sync fails the
        submission stays queued and ``pending_error`` says why.
        """
        if reason not in SubmitReason.ALL:
            raise ValueError(f"Unknown submit reason '{reason}'")

        session = await self._refresh()
        if session.status == SessionStatus.COMPLETED:
            return SubmissionOutcome(session=session, synced=True)

        await self._release_recording()

        job = await self.submissions.get_job(session.id)
        if job is None:
            video = await self.recorder.assemble()
            if not video:
                logger.warning(f"No recording chunks were received for session {session.id}")
            job = await self.submissions.enqueue(session, reason, video)
            self.recorder.discard()

        synced = await self.submissions.sync(job)
        session = await self._refresh()
        return SubmissionOutcome(session=session, synced=synced, pending_error=None if synced else job.last_error)

    async def _release_recording(self) -> bool:
        session = self._require_session()
        if not await self.sessions.claim_recording_release(session.id):
            return False
        if self.recorder is not None:
            self.recorder.stop()
        logger.info(f"Media tracks released for session {session.id}")
        return True

    async def close(self) -> bool:
        """Teardown: release the recording if nothing else has. Returns True when this call released it."""
        if self.session is None:
            return False
        try:
            return await self._release_recording()
        except Exception as e:
            logger.error(f"Failed to release recording for session {self.session.id}: {e}")
            return False
