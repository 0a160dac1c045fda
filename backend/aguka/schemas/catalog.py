from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime

Seniority = Literal["junior", "mid", "senior", "expert"]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class SpecializationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class SpecializationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class Specialization(BaseModel):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class Category(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    specializations: List[Specialization] = []

    class Config:
        from_attributes = True


def _check_question_shape(is_multiple_choice: bool, options: List[str], correct_answer: Optional[str]) -> List[str]:
    if not is_multiple_choice:
        return []
    options = [o.strip() for o in options if o and o.strip()]
    if len(options) < 2:
        raise ValueError("A multiple-choice question needs at least two options")
    if correct_answer is not None and correct_answer not in options:
        raise ValueError("The correct answer must be one of the options")
    return options


class QuestionCreate(BaseModel):
    specialization_id: int
    chapter: Optional[str] = None
    seniority: Seniority = "junior"
    question: str = Field(..., min_length=1)
    is_multiple_choice: bool = False
    options: List[str] = []
    correct_answer: Optional[str] = None
    marks: int = Field(1, ge=1)

    @model_validator(mode="after")
    def normalize_options(self):
        self.options = _check_question_shape(self.is_multiple_choice, self.options, self.correct_answer)
        return self


class QuestionUpdate(BaseModel):
    chapter: Optional[str] = None
    seniority: Optional[Seniority] = None
    question: Optional[str] = Field(None, min_length=1)
    is_multiple_choice: Optional[bool] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    marks: Optional[int] = Field(None, ge=1)


class Question(BaseModel):
    id: int
    specialization_id: Optional[int] = None
    chapter: Optional[str] = None
    seniority: Optional[str] = None
    question: str
    is_multiple_choice: bool
    options: List[str] = []
    correct_answer: Optional[str] = None
    marks: int
    created_at: datetime
    specialization_name: Optional[str] = None
    category_name: Optional[str] = None

    class Config:
        from_attributes = True


class CandidateQuestion(BaseModel):
    """A question as shown to the candidate; never carries the answer key."""
    id: int
    question: str
    is_multiple_choice: bool
    options: List[str] = []

    class Config:
        from_attributes = True
