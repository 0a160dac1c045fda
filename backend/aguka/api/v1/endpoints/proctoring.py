from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

from ....core.database import get_async_db
from ....models.user import User
from ....models.test import SessionStatus
from ....api.deps import get_current_candidate
from ....schemas.admin import ViolationOut
from ....services.test_service import TestSessionService

router = APIRouter()


class ViolationCreate(BaseModel):
    session_id: str
    violation_type: str = Field(..., min_length=1, max_length=64)
    severity: Optional[str] = "medium"
    description: Optional[str] = None
    violation_metadata: Optional[Dict[str, Any]] = None


@router.post("/log-violation", response_model=ViolationOut)
async def log_proctoring_violation(
    violation: ViolationCreate,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    """Record a client-detected violation such as a tab switch or a second face."""
    service = TestSessionService(db)
    session = await service.get_owned_session(violation.session_id, current_user.id)
    if session.status != SessionStatus.IN_PROGRESS:
        raise HTTPException(status_code=409, detail="This test has already been submitted")

    return await service.log_violation(
        session,
        violation_type=violation.violation_type,
        description=violation.description or violation.violation_type,
        severity=violation.severity or "medium",
        metadata=violation.violation_metadata,
    )


@router.get("/sessions/{session_id}/violations", response_model=List[ViolationOut])
async def get_session_violations(
    session_id: str,
    current_user: User = Depends(get_current_candidate),
    db: AsyncSession = Depends(get_async_db)
):
    service = TestSessionService(db)
    await service.get_owned_session(session_id, current_user.id)
    return await service.get_violations(session_id)
