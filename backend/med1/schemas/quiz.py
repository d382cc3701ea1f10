"""
Quiz schemas.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import NonEmptyStr


class QuestionInput(BaseModel):
    text: NonEmptyStr
    type: str = "text"
    required: bool = True
    variable_name: Optional[str] = None
    options: List[Any] = Field(default_factory=list)


class QuizCreate(BaseModel):
    title: NonEmptyStr
    description: Optional[str] = None
    questions: List[QuestionInput] = Field(default_factory=list)


class QuestionResponse(BaseModel):
    id: int
    text: str
    type: str
    required: bool
    variable_name: Optional[str] = None
    options: List[Any] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("options", mode="before")
    @classmethod
    def default_options(cls, v: Any) -> Any:
        return v or []


class QuizResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    description: Optional[str] = None
    created_at: datetime
    questions: List[QuestionResponse] = []

    model_config = {"from_attributes": True}


class QuizOwner(BaseModel):
    id: UUID
    name: str
    specialty: Optional[str] = None
    image: Optional[str] = None
    slug: str

    model_config = {"from_attributes": True}


class PublicQuizResponse(BaseModel):
    """``id`` is the latest indication attached to the quiz, when any."""
    id: Optional[UUID] = None
    quiz: QuizResponse
    user: QuizOwner


class QuizAnswer(BaseModel):
    question_id: int
    value: Any = None


class QuizSubmitRequest(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    indication_id: UUID
    answers: List[QuizAnswer]


class QuizSubmitResponse(BaseModel):
    success: bool = True
    lead_id: UUID
    created: bool
