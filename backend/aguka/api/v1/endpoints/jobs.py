from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....api.deps import get_current_candidate, get_current_employer
from ....core.database import get_db
from ....models.user import User
from ....schemas.job import Job, JobCreate, JobDetail, JobPool, JobWithApplicationCount, EmployerDashboard
from ....services.job_service import JobService

router = APIRouter()
employer_router = APIRouter()


@router.post("", response_model=Job, status_code=status.HTTP_201_CREATED)
async def create_job(
    job_in: JobCreate,
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    """Create a draft job and attach it to a matching job pool."""
    return await JobService(db).create_job(current_user, job_in)


@router.get("", response_model=List[JobWithApplicationCount])
async def list_my_jobs(
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    rows = JobService(db).list_employer_jobs(current_user)
    return [
        JobWithApplicationCount(**Job.model_validate(job).model_dump(), applications_count=count)
        for job, count in rows
    ]


@router.get("/open", response_model=List[Job])
async def list_open_jobs(
    current_user: User = Depends(get_current_candidate),
    db: Session = Depends(get_db)
):
    return JobService(db).list_open_jobs()


@router.get("/{job_id}", response_model=JobDetail)
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    return JobService(db).get_job_detail(current_user, job_id)


@router.post("/{job_id}/publish", response_model=Job)
async def publish_job(
    job_id: int,
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    return JobService(db).publish_job(current_user, job_id)


@router.post("/{job_id}/close-pool", response_model=JobPool)
async def close_job_pool(
    job_id: int,
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    return JobService(db).close_pool(current_user, job_id)


@router.post("/{job_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    job_id: int,
    current_user: User = Depends(get_current_candidate),
    db: Session = Depends(get_db)
):
    application = JobService(db).apply(current_user, job_id)
    return {"id": application.id, "job_id": application.job_id, "status": application.status}


@employer_router.get("/dashboard", response_model=EmployerDashboard)
async def employer_dashboard(
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    return JobService(db).employer_dashboard(current_user)
