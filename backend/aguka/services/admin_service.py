import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ..models.candidate import CandidateProfile, WorkExperience
from ..models.job import Job
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def dashboard(self) -> dict:
        def count_role(role: str) -> int:
            return self.db.query(func.count(User.id)).filter(User.role == role).scalar() or 0

        return {
            "total_users": self.db.query(func.count(User.id)).scalar() or 0,
            "total_recruiters": count_role(UserRole.EMPLOYER),
            "total_job_seekers": count_role(UserRole.CANDIDATE),
            "total_jobs": self.db.query(func.count(Job.id)).scalar() or 0,
        }

    def list_job_seekers(
        self,
        search: Optional[str] = None,
        age_group: Optional[str] = None,
        experience: Optional[str] = None,
        talents_only: bool = False,
    ) -> List[dict]:
        """Candidates with their profile, experience and education; every filter is optional."""
        query = (
            self.db.query(User)
            .join(CandidateProfile, CandidateProfile.user_id == User.id)
            .options(
                selectinload(User.candidate_profile),
                selectinload(User.work_experience),
                selectinload(User.education),
            )
            .filter(User.role == UserRole.CANDIDATE)
        )
        if talents_only:
            query = query.filter(User.is_verified_talent.is_(True))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(func.lower(User.full_name).like(pattern), func.lower(User.email).like(pattern)))
        if age_group:
            query = query.filter(CandidateProfile.age_group == age_group)
        if experience:
            query = query.filter(
                User.work_experience.any(func.lower(WorkExperience.role).like(f"%{experience.lower()}%"))
            )

        seekers = []
        for user in query.order_by(User.created_at.desc()).all():
            profile = user.candidate_profile
            seekers.append({
                "id": user.id,
                "email": user.email,
                "full_name": user.full_name,
                "phone": user.phone,
                "created_at": user.created_at,
                "age_group": profile.age_group if profile else None,
                "career_summary": profile.career_summary if profile else None,
                "is_verified_talent": user.is_verified_talent,
                "work_experience": user.work_experience,
                "education": user.education,
            })
        return seekers
