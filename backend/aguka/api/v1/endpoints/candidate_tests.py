import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....api.deps import get_current_candidate, get_user_for_token
from ....core.database import get_async_db, AsyncSessionLocal
from ....core.exceptions import AgukaError
from ....models.user import User, UserRole
from ....schemas.catalog import CandidateQuestion
from ....schemas.test import (
    Answer,
    AnswerRequest,
    ChunkReceipt,
    FullscreenEvent,
    FullscreenResult,
    SubmissionResult,
    SubmitRequest,
    TestPrepInfo,
    TestSession,
    TestStartRequest,
    TestStartResponse,
)
from ....services.devices import ClientReportedDevices
from ....services.proctoring_service import ProctoringSessionController, SubmissionOutcome
from ....services.test_service import TestSessionService

logger = logging.getLogger(__name__)

router = APIRouter()


def _submission_result(outcome: SubmissionOutcome) -> SubmissionResult:
    return SubmissionResult(
        session=TestSession.model_validate(outcome.session),
        synced=outcome.synced,
        pending_error=outcome.pending_error,
    )


@router.get("/test-prep", response_model=TestPrepInfo)
async def get_test_prep(
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    return await TestSessionService(db).get_prep_info(current_user.id)


@router.get("/test-sessions", response_model=List[TestSession])
async def list_test_sessions(
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    return await TestSessionService(db).get_candidate_sessions(current_user.id)


@router.post("/test-sessions", response_model=TestStartResponse, status_code=status.HTTP_201_CREATED)
async def start_test_session(
    request: TestStartRequest,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Start an official or practice test.

    A refused device or a failed start answers 400 with ``redirect_to``
    pointing back to the preparation page.
    """
    controller = ProctoringSessionController(db, current_user.id)
    devices = ClientReportedDevices(request.permissions, request.location)
    session, questions = await controller.start(devices, is_practice=request.is_practice)
    return {"session": session, "questions": questions}


@router.get("/test-sessions/{session_id}", response_model=TestSession)
async def get_test_session(
    session_id: str,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    return await TestSessionService(db).get_owned_session(session_id, current_user.id)


@router.get("/test-sessions/{session_id}/questions", response_model=List[CandidateQuestion])
async def get_test_questions(
    session_id: str,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    return await controller.questions()


@router.put("/test-sessions/{session_id}/answers/{question_id}", response_model=Answer)
async def save_answer(
    session_id: str,
    question_id: int,
    request: AnswerRequest,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    try:
        return await controller.record_answer(question_id, request.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/test-sessions/{session_id}/fullscreen", response_model=FullscreenResult)
async def report_fullscreen(
    session_id: str,
    event: FullscreenEvent,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    outcome = await controller.on_fullscreen_change(event.is_fullscreen)
    if outcome is None:
        return FullscreenResult(submitted=False)
    return FullscreenResult(submitted=True, submission=_submission_result(outcome))


@router.post("/test-sessions/{session_id}/recording/chunks", response_model=ChunkReceipt)
async def upload_recording_chunk(
    session_id: str,
    chunk_index: int = Form(...),
    chunk: UploadFile = File(...),
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    data = await chunk.read()
    try:
        size = await controller.append_chunk(chunk_index, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ChunkReceipt(session_id=session_id, chunk_index=chunk_index, size=size)


@router.post("/test-sessions/{session_id}/submit", response_model=SubmissionResult)
async def submit_test(
    session_id: str,
    request: Optional[SubmitRequest] = None,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    reason = request.reason if request else "manual"
    outcome = await controller.submit(reason)
    return _submission_result(outcome)


@router.delete("/test-sessions/{session_id}/recording")
async def release_recording(
    session_id: str,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    """Teardown from the client (page unload); stops the recording if it is still running."""
    controller = await ProctoringSessionController.resume(db, current_user.id, session_id)
    released = await controller.close()
    return {"session_id": session_id, "released": released}


async def _handle_event(controller: ProctoringSessionController, raw: str) -> dict:
    try:
        message = json.loads(raw)
    except ValueError:
        return {"type": "error", "detail": "Events must be JSON objects"}
    if not isinstance(message, dict):
        return {"type": "error", "detail": "Events must be JSON objects"}

    event_type = message.get("type")
    try:
        if event_type == "answer":
            answer = await controller.record_answer(int(message["question_id"]), str(message["value"]))
            return {"type": "answer_saved", "question_id": answer.question_id}
        if event_type == "fullscreen":
            outcome = await controller.on_fullscreen_change(bool(message["is_fullscreen"]))
            if outcome is None:
                return {"type": "fullscreen_ack", "submitted": False}
            return {
                "type": "submitted",
                "submission": _submission_result(outcome).model_dump(mode="json"),
            }
        if event_type == "submit":
            outcome = await controller.submit(str(message.get("reason", "manual")))
            return {"type": "submitted", "submission": _submission_result(outcome).model_dump(mode="json")}
    except AgukaError as e:
        return {"type": "error", **e.to_dict()}
    except KeyError as e:
        return {"type": "error", "detail": f"Missing field {e}"}
    except (TypeError, ValueError) as e:
        return {"type": "error", "detail": str(e)}
    return {"type": "error", "detail": f"Unknown event type '{event_type}'"}


@router.websocket("/test-sessions/{session_id}/ws")
async def test_session_socket(websocket: WebSocket, session_id: str, token: Optional[str] = Query(None)):
    """
    One connection per attempt carrying ``answer``, ``fullscreen`` and
    ``submit`` events. Disconnecting is treated as teardown.
    """
    user = get_user_for_token(token)
    if user is None or user.role != UserRole.CANDIDATE:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    async with AsyncSessionLocal() as db:
        try:
            controller = await ProctoringSessionController.resume(db, user.id, session_id)
        except AgukaError as e:
            await websocket.send_json({"type": "error", **e.to_dict()})
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        async with controller:
            try:
                while True:
                    raw = await websocket.receive_text()
                    await websocket.send_json(await _handle_event(controller, raw))
            except WebSocketDisconnect:
                logger.info(f"Test session socket closed for session {session_id}")
