import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional

from ..models.user import User, UserRole
from ..models.company import Company
from ..models.candidate import CandidateProfile, WorkExperience, Education
from ..schemas.user import CandidateSignup, EmployerSignup, AdminCreate
from ..core.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def _commit_new_user(self, user: User) -> User:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValueError("Email already registered")
        self.db.refresh(user)
        return user

    def create_candidate(self, signup: CandidateSignup) -> User:
        """Create the candidate account with the profile, experience and education parsed from the résumé."""
        if self.get_user_by_email(signup.email):
            raise ValueError("Email already registered")

        resume = signup.resume
        user = User(
            email=signup.email.lower(),
            full_name=signup.name,
            phone=signup.phone,
            role=UserRole.CANDIDATE,
            hashed_password=get_password_hash(signup.password),
        )
        self.db.add(user)
        self.db.flush()

        self.db.add(CandidateProfile(
            user_id=user.id,
            full_name=signup.name,
            phone=signup.phone,
            age_group=resume.age_group,
            career_summary=resume.career_summary,
        ))
        self.db.add_all([
            WorkExperience(
                candidate_id=user.id,
                role=exp.role,
                company=exp.company,
                start_date=exp.start_date,
                end_date=exp.end_date,
                description=exp.description,
            )
            for exp in resume.work_experience
        ])
        self.db.add_all([
            Education(
                candidate_id=user.id,
                level=edu.level,
                school_name=edu.school_name,
                start_date=edu.start_date,
                end_date=edu.end_date,
                gpa=edu.gpa,
                achievements=edu.achievements,
            )
            for edu in resume.education
        ])
        user = self._commit_new_user(user)
        logger.info(f"Candidate {user.id} registered with {len(resume.work_experience)} experience entries")
        return user

    def create_employer(self, signup: EmployerSignup) -> User:
        if self.get_user_by_email(signup.email):
            raise ValueError("Email already registered")

        company = Company(name=signup.company_name)
        self.db.add(company)
        self.db.flush()

        user = User(
            email=signup.email.lower(),
            full_name=signup.full_name,
            phone=signup.phone,
            role=UserRole.EMPLOYER,
            company_id=company.id,
            hashed_password=get_password_hash(signup.password),
        )
        self.db.add(user)
        user = self._commit_new_user(user)
        logger.info(f"Employer {user.id} registered for company {company.id}")
        return user

    def create_admin(self, data: AdminCreate) -> User:
        if self.get_user_by_email(data.email):
            raise ValueError("Email already registered")
        user = User(
            email=data.email.lower(),
            full_name=data.full_name,
            role=UserRole.ADMIN,
            hashed_password=get_password_hash(data.password),
        )
        self.db.add(user)
        return self._commit_new_user(user)

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user
