import logging
from typing import List, Optional

from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.exceptions import ConflictError, NotFoundError
from ..models.catalog import JobCategory, JobSpecialization, TestQuestion
from ..models.job import Job
from ..models.test import TestSessionQuestion
from ..schemas.catalog import (
    CategoryCreate,
    CategoryUpdate,
    SpecializationCreate,
    SpecializationUpdate,
    QuestionCreate,
    QuestionUpdate,
    _check_question_shape,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Categories, specializations and the question bank behind them."""

    def __init__(self, db: Session):
        self.db = db

    # categories

    def list_categories(self) -> List[JobCategory]:
        return (
            self.db.query(JobCategory)
            .options(selectinload(JobCategory.specializations))
            .order_by(JobCategory.name)
            .all()
        )

    def get_category(self, category_id: int) -> JobCategory:
        category = self.db.query(JobCategory).filter(JobCategory.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(self, data: CategoryCreate) -> JobCategory:
        category = JobCategory(name=data.name.strip(), description=data.description)
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Category '{data.name}' already exists")
        self.db.refresh(category)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> JobCategory:
        category = self.get_category(category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Category '{data.name}' already exists")
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        if self.db.query(exists().where(Job.category_id == category_id)).scalar():
            raise ConflictError("Category is used by existing jobs")
        for specialization in category.specializations:
            self._ensure_specialization_unused(specialization.id)
        self.db.delete(category)
        self.db.commit()
        logger.info(f"Category {category_id} deleted")

    # specializations

    def get_specialization(self, specialization_id: int) -> JobSpecialization:
        specialization = (
            self.db.query(JobSpecialization)
            .filter(JobSpecialization.id == specialization_id)
            .first()
        )
        if not specialization:
            raise NotFoundError("Specialization not found")
        return specialization

    def create_specialization(self, category_id: int, data: SpecializationCreate) -> JobSpecialization:
        self.get_category(category_id)
        specialization = JobSpecialization(
            category_id=category_id,
            name=data.name.strip(),
            description=data.description,
        )
        self.db.add(specialization)
        self.db.commit()
        self.db.refresh(specialization)
        return specialization

    def update_specialization(self, specialization_id: int, data: SpecializationUpdate) -> JobSpecialization:
        specialization = self.get_specialization(specialization_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(specialization, field, value)
        self.db.commit()
        self.db.refresh(specialization)
        return specialization

    def _ensure_specialization_unused(self, specialization_id: int) -> None:
        if self.db.query(exists().where(Job.specialization_id == specialization_id)).scalar():
            raise ConflictError("Specialization is used by existing jobs")
        delivered = (
            self.db.query(TestSessionQuestion)
            .join(TestQuestion, TestQuestion.id == TestSessionQuestion.question_id)
            .filter(TestQuestion.specialization_id == specialization_id)
            .first()
        )
        if delivered:
            raise ConflictError("Specialization has questions that were used in tests")

    def delete_specialization(self, specialization_id: int) -> None:
        specialization = self.get_specialization(specialization_id)
        self._ensure_specialization_unused(specialization_id)
        self.db.delete(specialization)
        self.db.commit()

    # questions

    def list_questions(self, specialization_id: Optional[int] = None) -> List[TestQuestion]:
        query = (
            self.db.query(TestQuestion)
            .options(joinedload(TestQuestion.specialization).joinedload(JobSpecialization.category))
            .order_by(TestQuestion.created_at.desc(), TestQuestion.id.desc())
        )
        if specialization_id:
            query = query.filter(TestQuestion.specialization_id == specialization_id)
        return query.all()

    def get_question(self, question_id: int) -> TestQuestion:
        question = self.db.query(TestQuestion).filter(TestQuestion.id == question_id).first()
        if not question:
            raise NotFoundError("Question not found")
        return question

    def create_question(self, data: QuestionCreate) -> TestQuestion:
        self.get_specialization(data.specialization_id)
        question = TestQuestion(**data.model_dump())
        self.db.add(question)
        self.db.commit()
        self.db.refresh(question)
        return question

    def update_question(self, question_id: int, data: QuestionUpdate) -> TestQuestion:
        question = self.get_question(question_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(question, field, value)
        question.options = _check_question_shape(
            question.is_multiple_choice, question.options or [], question.correct_answer
        )
        self.db.commit()
        self.db.refresh(question)
        return question

    def delete_question(self, question_id: int) -> None:
        question = self.get_question(question_id)
        used = self.db.query(exists().where(TestSessionQuestion.question_id == question_id)).scalar()
        if used:
            raise ConflictError("Question was used in a test and cannot be deleted")
        self.db.delete(question)
        self.db.commit()
