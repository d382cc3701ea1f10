"""
Personal productivity endpoints: circles, habits, thoughts, Eisenhower
tasks and pomodoro stars.

Each resource has its own router; every row is private to its owner and a
foreign id answers 404.
"""

import calendar
import logging
from collections import Counter
from datetime import date, datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db, utcnow
from ..models.productivity import Circle, DayProgress, EisenhowerTask, Habit, PomodoroStar, Thought
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.productivity import (
    CircleClicksUpdate,
    CircleCreate,
    CircleResponse,
    DayProgressResponse,
    HabitCreate,
    HabitProgressToggle,
    HabitResponse,
    HabitUpdate,
    StarCountsResponse,
    StarCreate,
    StarCreatedResponse,
    StarResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    ThoughtInput,
    ThoughtResponse,
)


logger = logging.getLogger(__name__)
circles_router = APIRouter(prefix="/api/circles", tags=["Productivity"])
habits_router = APIRouter(prefix="/api/habits", tags=["Productivity"])
thoughts_router = APIRouter(prefix="/api/thoughts", tags=["Productivity"])
tasks_router = APIRouter(prefix="/api/tasks", tags=["Productivity"])
stars_router = APIRouter(prefix="/api/pomodoro-stars", tags=["Productivity"])

DEFAULT_THOUGHT_LIMIT = 50


def get_owned(db: Session, model, user: User, row_id: int, label: str):
    row = db.query(model).filter(model.id == row_id, model.user_id == user.id).first()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return row


def _save(db: Session, row, action: str):
    try:
        db.add(row)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error {action} {type(row).__name__}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed {action} {type(row).__name__.lower()}")
    return row


def _delete(db: Session, row) -> SuccessResponse:
    try:
        db.delete(row)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting {type(row).__name__} {row.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete")
    return SuccessResponse(message=f"{type(row).__name__} deleted")


def month_bounds(month: Optional[str]) -> Tuple[date, date]:
    """
    First and last day of ``month`` (``YYYY-MM``); the current month when empty.

    >>> month_bounds("2024-02")
    (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29))
    """
    if month:
        try:
            parsed = datetime.strptime(month, "%Y-%m")
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="month must be formatted as YYYY-MM",
            )
        year, month_number = parsed.year, parsed.month
    else:
        today = utcnow().date()
        year, month_number = today.year, today.month
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)


# =============================================================================
# Circles
# =============================================================================

@circles_router.get("", response_model=List[CircleResponse])
async def list_circles(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Circle]:
    return db.query(Circle).filter(Circle.user_id == user.id).order_by(Circle.created_at).all()


@circles_router.post("", response_model=CircleResponse, status_code=status.HTTP_201_CREATED)
async def create_circle(
    body: CircleCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Circle:
    return _save(db, Circle(user_id=user.id, title=body.title, max_clicks=body.max_clicks, clicks=0), "creating")


@circles_router.patch("/{circle_id}", response_model=CircleResponse)
async def update_circle_clicks(
    circle_id: int,
    body: CircleClicksUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Circle:
    circle = get_owned(db, Circle, user, circle_id, "Circle")
    circle.clicks = body.clicks
    return _save(db, circle, "updating")


@circles_router.delete("/{circle_id}", response_model=SuccessResponse)
async def delete_circle(
    circle_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    return _delete(db, get_owned(db, Circle, user, circle_id, "Circle"))


# =============================================================================
# Habits
# =============================================================================

def _habit_response(habit: Habit, start: date, end: date) -> HabitResponse:
    return HabitResponse(
        id=habit.id,
        title=habit.title,
        category=habit.category,
        progress=[
            DayProgressResponse.model_validate(day)
            for day in habit.progress
            if start <= day.date <= end
        ],
    )


@habits_router.get("", response_model=List[HabitResponse])
async def list_habits(
    month: Optional[str] = Query(None, description="Month to load progress for, as YYYY-MM"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[HabitResponse]:
    """Own habits, oldest first, each with its progress within ``month``."""
    start, end = month_bounds(month)
    habits = db.query(Habit).filter(Habit.user_id == user.id).order_by(Habit.created_at).all()
    return [_habit_response(habit, start, end) for habit in habits]


@habits_router.post("", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
async def create_habit(
    body: HabitCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    habit = _save(db, Habit(user_id=user.id, title=body.title, category=body.category), "creating")
    return HabitResponse(id=habit.id, title=habit.title, category=habit.category)


@habits_router.post("/progress", response_model=DayProgressResponse)
async def toggle_habit_progress(
    body: HabitProgressToggle,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DayProgress:
    """Flip the check mark of a habit on ``date``; the first toggle checks it."""
    habit = get_owned(db, Habit, user, body.habit_id, "Habit")
    progress = (
        db.query(DayProgress)
        .filter(DayProgress.habit_id == habit.id, DayProgress.date == body.date)
        .first()
    )
    if progress is None:
        progress = DayProgress(habit_id=habit.id, date=body.date, is_checked=True)
    else:
        progress.is_checked = not progress.is_checked
    return _save(db, progress, "toggling")


@habits_router.put("/{habit_id}", response_model=HabitResponse)
async def update_habit(
    habit_id: int,
    body: HabitUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    habit = get_owned(db, Habit, user, habit_id, "Habit")
    habit.title = body.title
    if body.category:
        habit.category = body.category
    _save(db, habit, "updating")
    start, end = month_bounds(None)
    return _habit_response(habit, start, end)


@habits_router.delete("/{habit_id}", response_model=SuccessResponse)
async def delete_habit(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    return _delete(db, get_owned(db, Habit, user, habit_id, "Habit"))


# =============================================================================
# Thoughts
# =============================================================================

@thoughts_router.get("", response_model=List[ThoughtResponse])
async def list_thoughts(
    limit: int = Query(DEFAULT_THOUGHT_LIMIT, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Thought]:
    return (
        db.query(Thought)
        .filter(Thought.user_id == user.id)
        .order_by(Thought.created_at.desc())
        .limit(limit)
        .all()
    )


@thoughts_router.post("", response_model=ThoughtResponse, status_code=status.HTTP_201_CREATED)
async def create_thought(
    body: ThoughtInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Thought:
    return _save(db, Thought(user_id=user.id, content=body.content), "creating")


@thoughts_router.put("/{thought_id}", response_model=ThoughtResponse)
async def update_thought(
    thought_id: int,
    body: ThoughtInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Thought:
    thought = get_owned(db, Thought, user, thought_id, "Thought")
    thought.content = body.content
    return _save(db, thought, "updating")


@thoughts_router.delete("/{thought_id}", response_model=SuccessResponse)
async def delete_thought(
    thought_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    return _delete(db, get_owned(db, Thought, user, thought_id, "Thought"))


# =============================================================================
# Eisenhower tasks
# =============================================================================

@tasks_router.get("", response_model=List[TaskResponse])
async def list_tasks(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[EisenhowerTask]:
    """Most important first, then newest."""
    return (
        db.query(EisenhowerTask)
        .filter(EisenhowerTask.user_id == user.id)
        .order_by(EisenhowerTask.importance.asc(), EisenhowerTask.created_at.desc())
        .all()
    )


@tasks_router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EisenhowerTask:
    task = EisenhowerTask(
        user_id=user.id,
        title=body.title,
        notes=body.notes,
        due_date=body.due_date,
        importance=body.importance,
    )
    return _save(db, task, "creating")


@tasks_router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EisenhowerTask:
    task = get_owned(db, EisenhowerTask, user, task_id, "Task")
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None or field == "notes":
            setattr(task, field, value)
    return _save(db, task, "updating")


@tasks_router.put("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EisenhowerTask:
    task = get_owned(db, EisenhowerTask, user, task_id, "Task")
    task.is_completed = not task.is_completed
    return _save(db, task, "toggling")


@tasks_router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    return _delete(db, get_owned(db, EisenhowerTask, user, task_id, "Task"))


# =============================================================================
# Pomodoro stars
# =============================================================================

@stars_router.get("", response_model=StarCountsResponse)
async def star_counts(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StarCountsResponse:
    """Stars earned per day (ISO date keys)."""
    dates = [row.date for row in db.query(PomodoroStar.date).filter(PomodoroStar.user_id == user.id)]
    counts = Counter(day.isoformat() for day in dates)
    return StarCountsResponse(counts=dict(counts), total=len(dates))


@stars_router.post("", response_model=StarCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_star(
    body: StarCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StarCreatedResponse:
    """Record a completed pomodoro and return the day's running total."""
    star = _save(db, PomodoroStar(user_id=user.id, date=body.date), "creating")
    total = (
        db.query(func.count(PomodoroStar.id))
        .filter(PomodoroStar.user_id == user.id, PomodoroStar.date == body.date)
        .scalar()
    )
    return StarCreatedResponse(star=StarResponse.model_validate(star), total_stars=total or 0)
