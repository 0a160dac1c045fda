from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import os

from .... import schemas
from ... import deps
from ....core.security import verify_token
from ....models.candidate import CandidateTest
from ....models.test import TestSession
from ....models.user import User
from ....schemas.admin import AdminDashboard, ReviewRequest, ReviewResult, SessionReview
from ....schemas.catalog import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Question,
    QuestionCreate,
    QuestionUpdate,
    Specialization,
    SpecializationCreate,
    SpecializationUpdate,
)
from ....schemas.company import Company
from ....schemas.user import AdminCreate
from ....services.admin_service import AdminService
from ....services.catalog_service import CatalogService
from ....services.company_service import CompanyService
from ....services.review_service import ReviewService
from ....services.user_service import UserService
from ....utils.file_paths import get_bucket_path

router = APIRouter()


@router.get("/dashboard", response_model=AdminDashboard)
def get_dashboard(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return AdminService(db).dashboard()


@router.get("/users", response_model=List[schemas.User])
def get_all_users(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    """
    Retrieve all users. Only accessible by superusers.
    """
    return db.query(User).order_by(User.created_at.desc()).all()


@router.post("/users", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_admin_user(
    data: AdminCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    try:
        return UserService(db).create_admin(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/users/{user_id}/reset-cooldown")
def reset_test_cooldown(
    user_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    """Let a candidate sit the official test again before the cooldown ends."""
    user = UserService(db).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    candidate_test = db.query(CandidateTest).filter(CandidateTest.candidate_id == user_id).first()
    previous = candidate_test.next_available_date if candidate_test else None
    if candidate_test:
        candidate_test.next_available_date = None
        db.commit()

    return {
        "message": f"Test cooldown reset for {user.full_name or user.email}",
        "user_id": user_id,
        "previous_next_available_date": previous,
    }


@router.get("/companies", response_model=List[Company])
def get_companies(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CompanyService(db).list_companies()


@router.get("/job-seekers", response_model=List[schemas.JobSeeker])
def get_job_seekers(
    search: Optional[str] = None,
    age_group: Optional[str] = None,
    experience: Optional[str] = None,
    talents_only: bool = False,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return AdminService(db).list_job_seekers(
        search=search, age_group=age_group, experience=experience, talents_only=talents_only
    )


# categories and specializations

@router.get("/categories", response_model=List[Category])
def list_categories(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CatalogService(db).list_categories()


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CatalogService(db).create_category(data)


@router.put("/categories/{category_id}", response_model=Category)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CatalogService(db).update_category(category_id, data)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    CatalogService(db).delete_category(category_id)


@router.post("/categories/{category_id}/specializations", response_model=Specialization,
             status_code=status.HTTP_201_CREATED)
def create_specialization(
    category_id: int,
    data: SpecializationCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CatalogService(db).create_specialization(category_id, data)


@router.put("/specializations/{specialization_id}", response_model=Specialization)
def update_specialization(
    specialization_id: int,
    data: SpecializationUpdate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return CatalogService(db).update_specialization(specialization_id, data)


@router.delete("/specializations/{specialization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_specialization(
    specialization_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    CatalogService(db).delete_specialization(specialization_id)


# question bank

def _question_out(question) -> Question:
    specialization = question.specialization
    return Question(
        **{column: getattr(question, column) for column in Question.model_fields if hasattr(question, column)},
        specialization_name=specialization.name if specialization else None,
        category_name=specialization.category.name if specialization and specialization.category else None,
    )


@router.get("/questions", response_model=List[Question])
def list_questions(
    specialization_id: Optional[int] = None,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return [_question_out(q) for q in CatalogService(db).list_questions(specialization_id)]


@router.post("/questions", response_model=Question, status_code=status.HTTP_201_CREATED)
def create_question(
    data: QuestionCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return _question_out(CatalogService(db).create_question(data))


@router.put("/questions/{question_id}", response_model=Question)
def update_question(
    question_id: int,
    data: QuestionUpdate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    try:
        return _question_out(CatalogService(db).update_question(question_id, data))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    CatalogService(db).delete_question(question_id)


# test review

@router.get("/test-sessions", response_model=List[schemas.TestSession])
def list_test_sessions(
    review_status: Optional[str] = Query(None, pattern="^(pending|passed|failed)$"),
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return ReviewService(db).list_sessions(review_status)


@router.get("/test-sessions/{session_id}", response_model=SessionReview)
def get_test_session_review(
    session_id: str,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    return ReviewService(db).get_review(session_id)


@router.post("/test-sessions/{session_id}/review", response_model=ReviewResult)
def review_test_session(
    session_id: str,
    request: ReviewRequest,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_superuser),
):
    try:
        return ReviewService(db).review(session_id, current_user, request.free_text_marks)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/test-sessions/{session_id}/recording")
def get_session_recording(
    session_id: str,
    token: str = Query(...),
    download: bool = Query(False, description="Force download instead of inline display"),
    db: Session = Depends(deps.get_db),
):
    """
    Stream a session's recording. The token travels in the query string so
    the URL can be used directly as a <video> source.
    """
    email = verify_token(token)
    if not email:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_superuser:
        raise HTTPException(status_code=403, detail="The user doesn't have enough privileges")

    session = db.query(TestSession).filter(TestSession.id == session_id).first()
    if not session or not session.video_url:
        raise HTTPException(status_code=404, detail="Recording not found")

    bucket, _, key = session.video_url.partition("/")
    path = get_bucket_path(bucket, key)
    if not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Recording file is missing")

    return FileResponse(
        path,
        media_type="video/webm",
        filename=f"{session_id}.webm" if download else None,
    )
