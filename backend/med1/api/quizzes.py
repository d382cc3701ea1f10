"""
Quiz endpoints: doctor-side management and the public quiz flow.
"""

import json
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db, utcnow
from ..core.transactions import transaction
from ..models.indication import Indication
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.quiz import Quiz, QuizQuestion
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.quiz import (
    PublicQuizResponse,
    QuizCreate,
    QuizOwner,
    QuizResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
)
from ..services.cache import get_cache
from ..services.slugs import slugify, unique_slug


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])
public_router = APIRouter(prefix="/api/quiz", tags=["Quizzes"])


def get_owned_quiz(db: Session, user: User, quiz_id: UUID) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.user_id == user.id).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


def answers_to_notes(quiz: Quiz, answers) -> str:
    """
    Serialize submitted answers as the JSON stored in ``lead.medical_notes``.

    Each answer is paired with its question text and variable name; answers
    to unknown questions are kept with a null question.
    """
    questions = {question.id: question for question in quiz.questions}
    processed = []
    for answer in answers:
        question = questions.get(answer.question_id)
        processed.append({
            "question_id": answer.question_id,
            "question": question.text if question else None,
            "variable_name": question.variable_name if question else None,
            "value": answer.value,
        })
    metadata = {
        "quiz_id": str(quiz.id),
        "quiz_title": quiz.title,
        "submitted_at": utcnow().isoformat(),
        "answers": processed,
    }
    return json.dumps(metadata, ensure_ascii=False, default=str)


# =============================================================================
# Doctor
# =============================================================================

@router.get("", response_model=List[QuizResponse])
async def list_quizzes(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Quiz]:
    return (
        db.query(Quiz)
        .filter(Quiz.user_id == user.id)
        .order_by(Quiz.created_at.desc())
        .all()
    )


@router.post("", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    body: QuizCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Quiz:
    """Create a quiz with its questions, kept in submission order."""
    try:
        with transaction(db):
            quiz = Quiz(
                user_id=user.id,
                title=body.title,
                slug=unique_slug(db, Quiz, user.id, slugify(body.title)),
                description=body.description,
            )
            quiz.questions = [
                QuizQuestion(
                    text=question.text,
                    type=question.type,
                    required=question.required,
                    variable_name=question.variable_name,
                    options=question.options,
                    order=position,
                )
                for position, question in enumerate(body.questions)
            ]
            db.add(quiz)
    except Exception as e:
        logger.error(f"Error creating quiz for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create quiz")

    return quiz


@router.get("/{quiz_id}", response_model=QuizResponse)
async def get_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Quiz:
    return get_owned_quiz(db, user, quiz_id)


@router.delete("/{quiz_id}", response_model=SuccessResponse)
async def delete_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    quiz = get_owned_quiz(db, user, quiz_id)
    try:
        db.delete(quiz)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting quiz {quiz_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete quiz")
    return SuccessResponse(message="Quiz deleted")


# =============================================================================
# Public
# =============================================================================

@public_router.get("/by-id/{quiz_id}", response_model=PublicQuizResponse)
async def get_public_quiz(quiz_id: UUID, db: Session = Depends(get_db)) -> PublicQuizResponse:
    """Quiz with ordered questions, its owner and the latest indication using it."""
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")

    latest = quiz.indications[0] if quiz.indications else None
    return PublicQuizResponse(
        id=latest.id if latest else None,
        quiz=QuizResponse.model_validate(quiz),
        user=QuizOwner.model_validate(quiz.user),
    )


@public_router.post("/submit", response_model=QuizSubmitResponse)
async def submit_quiz(body: QuizSubmitRequest, db: Session = Depends(get_db)) -> QuizSubmitResponse:
    """
    Record a quiz submission as a lead of the indication's doctor.

    A lead with the same phone is updated in place; otherwise a new ``quiz``
    lead is created. The answers are stored as JSON in ``medical_notes``.
    """
    indication = db.query(Indication).filter(Indication.id == body.indication_id).first()
    if not indication:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    if indication.quiz is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No quiz is configured for this indication",
        )

    notes = answers_to_notes(indication.quiz, body.answers)
    lead = (
        db.query(Lead)
        .filter(Lead.user_id == indication.user_id, Lead.phone == body.phone)
        .first()
    )
    created = lead is None

    try:
        if created:
            lead = Lead(
                user_id=indication.user_id,
                name=body.name,
                phone=body.phone,
                status=LeadStatus.NOVO.value,
                source=LeadSource.QUIZ.value,
                indication_id=indication.id,
                utm_source="quiz",
                utm_medium=indication.slug,
                medical_notes=notes,
            )
            db.add(lead)
        else:
            lead.name = body.name
            lead.indication_id = indication.id
            lead.medical_notes = notes
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving quiz submission for indication {indication.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save answers")

    get_cache().invalidate_user(indication.user_id)
    logger.info(f"Quiz submission {'created' if created else 'updated'} lead {lead.id}")
    return QuizSubmitResponse(lead_id=lead.id, created=created)
