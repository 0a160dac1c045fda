from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from .base import BaseModel


class JobCategory(BaseModel):
    __tablename__ = "job_categories"

    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)

    specializations = relationship(
        "JobSpecialization",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="JobSpecialization.name",
    )


class JobSpecialization(BaseModel):
    __tablename__ = "job_specializations"

    category_id = Column(Integer, ForeignKey("job_categories.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    category = relationship("JobCategory", back_populates="specializations")
    questions = relationship("TestQuestion", back_populates="specialization", cascade="all, delete-orphan")


class TestQuestion(BaseModel):
    __tablename__ = "test_questions"
    __test__ = False

    specialization_id = Column(Integer, ForeignKey("job_specializations.id"), nullable=True, index=True)
    chapter = Column(String, nullable=True)
    seniority = Column(String, default="junior")
    question = Column(Text, nullable=False)
    is_multiple_choice = Column(Boolean, default=False)
    options = Column(JSON, default=list)
    correct_answer = Column(Text, nullable=True)
    marks = Column(Integer, default=1)

    specialization = relationship("JobSpecialization", back_populates="questions")
