import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import AIResponseError, ConflictError, NotFoundError, PermissionDeniedError
from ..models.job import Application, Job, JobPool, JobStatus
from ..models.test import TestSession, SessionStatus
from ..models.user import User
from ..schemas.ai import JobPoolAnalysis
from ..schemas.job import JobCreate
from ..utils.ai_service import OpenAIService, openai_service
from ..utils.timezone import utc_now

logger = logging.getLogger(__name__)


class JobService:
    def __init__(self, db: Session, ai: OpenAIService = openai_service):
        self.db = db
        self.ai = ai

    def find_or_create_pool(self, analysis: JobPoolAnalysis) -> JobPool:
        """
        Reuse a pool with the same title (case-insensitive) while it still
        has open or pending jobs; otherwise start a new pool.
        """
        title = analysis.suggested_pool.title.strip()
        same_title = (
            self.db.query(JobPool)
            .filter(func.lower(JobPool.title) == title.lower())
            .order_by(JobPool.created_at.desc())
            .all()
        )
        for pool in same_title:
            has_active_jobs = (
                self.db.query(Job.id)
                .filter(Job.pool_id == pool.id, Job.status.in_(JobStatus.ACTIVE))
                .first()
            )
            if has_active_jobs:
                logger.info(f"Reusing job pool {pool.id} '{pool.title}'")
                return pool

        pool = JobPool(
            title=title,
            description=analysis.suggested_pool.description,
            keywords=analysis.keywords,
            is_active=True,
        )
        self.db.add(pool)
        self.db.flush()
        logger.info(f"Created job pool {pool.id} '{pool.title}' (confidence {analysis.confidence:.2f})")
        return pool

    async def create_job(self, employer: User, data: JobCreate) -> Job:
        result = await self.ai.analyze_job_for_pool(data.title, data.description, data.level)
        if not result.ok:
            raise AIResponseError(f"Could not classify the job: {result.error}")

        pool = self.find_or_create_pool(result.data)
        job = Job(
            employer_id=employer.id,
            pool_id=pool.id,
            category_id=data.category_id,
            specialization_id=data.specialization_id,
            title=data.title,
            description=data.description,
            required_candidates=data.required_candidates,
            level=data.level,
            start_date=data.start_date,
            applications_close_at=data.applications_close_at,
            status=JobStatus.DRAFT,
            publication_status="draft",
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def get_employer_job(self, employer: User, job_id: int) -> Job:
        job = self.db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFoundError("Job not found")
        if job.employer_id != employer.id:
            raise PermissionDeniedError("Not your job")
        return job

    def list_employer_jobs(self, employer: User) -> List[Tuple[Job, int]]:
        return (
            self.db.query(Job, func.count(Application.id))
            .outerjoin(Application, Application.job_id == Job.id)
            .filter(Job.employer_id == employer.id)
            .group_by(Job.id)
            .order_by(Job.created_at.desc())
            .all()
        )

    def list_open_jobs(self) -> List[Job]:
        now = utc_now()
        return (
            self.db.query(Job)
            .filter(
                Job.status == JobStatus.OPEN,
                Job.publication_status == "published",
                (Job.applications_close_at.is_(None)) | (Job.applications_close_at > now),
            )
            .order_by(Job.created_at.desc())
            .all()
        )

    def _latest_score(self, candidate_id: int) -> Optional[float]:
        return (
            self.db.query(TestSession.score)
            .filter(
                TestSession.candidate_id == candidate_id,
                TestSession.status == SessionStatus.COMPLETED,
                TestSession.score.isnot(None),
            )
            .order_by(TestSession.end_time.desc())
            .limit(1)
            .scalar()
        )

    def get_job_detail(self, employer: User, job_id: int) -> dict:
        job = self.get_employer_job(employer, job_id)
        applications = (
            self.db.query(Application)
            .options(selectinload(Application.candidate))
            .filter(Application.job_id == job.id)
            .order_by(Application.created_at.desc())
            .all()
        )
        return {
            "job": job,
            "pool": job.pool,
            "applications": [
                {
                    "id": application.id,
                    "job_id": application.job_id,
                    "status": application.status,
                    "created_at": application.created_at,
                    "candidate": {
                        "id": application.candidate.id,
                        "full_name": application.candidate.full_name,
                        "email": application.candidate.email,
                        "recent_marks": self._latest_score(application.candidate.id),
                    },
                }
                for application in applications
            ],
        }

    def publish_job(self, employer: User, job_id: int) -> Job:
        job = self.get_employer_job(employer, job_id)
        if job.status == JobStatus.CLOSED:
            raise ConflictError("A closed job cannot be published")
        job.status = JobStatus.OPEN
        job.publication_status = "published"
        self.db.commit()
        self.db.refresh(job)
        logger.info(f"Job {job.id} published")
        return job

    def close_pool(self, employer: User, job_id: int) -> JobPool:
        job = self.get_employer_job(employer, job_id)
        if not job.pool_id:
            raise NotFoundError("Job is not attached to a pool")
        pool = job.pool
        closed = (
            self.db.query(Job)
            .filter(Job.pool_id == pool.id)
            .update({Job.status: JobStatus.CLOSED}, synchronize_session="fetch")
        )
        pool.is_active = False
        self.db.commit()
        self.db.refresh(pool)
        logger.info(f"Job pool {pool.id} closed ({closed} jobs)")
        return pool

    def apply(self, candidate: User, job_id: int) -> Application:
        job = self.db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFoundError("Job not found")
        if job.status != JobStatus.OPEN or job.publication_status != "published":
            raise ConflictError("This job is not accepting applications")
        if job.applications_close_at and job.applications_close_at <= utc_now():
            raise ConflictError("Applications for this job are closed")

        application = Application(job_id=job.id, candidate_id=candidate.id, status="pending")
        self.db.add(application)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("You have already applied to this job")
        self.db.refresh(application)
        return application

    def employer_dashboard(self, employer: User) -> dict:
        total_jobs = self.db.query(func.count(Job.id)).filter(Job.employer_id == employer.id).scalar()

        def count_applications(status: str) -> int:
            return (
                self.db.query(func.count(Application.id))
                .join(Job, Job.id == Application.job_id)
                .filter(Job.employer_id == employer.id, Application.status == status)
                .scalar()
            )

        return {
            "total_jobs": total_jobs or 0,
            "pending_applications": count_applications("pending") or 0,
            "accepted_applications": count_applications("accepted") or 0,
        }
