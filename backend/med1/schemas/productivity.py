"""
Schemas for circles, habits, thoughts, Eisenhower tasks and pomodoro stars.
"""

from datetime import date as date_type, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .common import NonEmptyStr


# =============================================================================
# Circles
# =============================================================================

class CircleCreate(BaseModel):
    title: NonEmptyStr
    max_clicks: int = Field(default=5, ge=1)


class CircleClicksUpdate(BaseModel):
    clicks: int = Field(..., ge=0)


class CircleResponse(BaseModel):
    id: int
    title: str
    max_clicks: int
    clicks: int
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Habits
# =============================================================================

class HabitCreate(BaseModel):
    title: NonEmptyStr
    category: NonEmptyStr


class HabitUpdate(BaseModel):
    title: NonEmptyStr
    category: Optional[str] = None


class DayProgressResponse(BaseModel):
    date: date_type
    is_checked: bool

    model_config = {"from_attributes": True}


class HabitResponse(BaseModel):
    id: int
    title: str
    category: str
    progress: List[DayProgressResponse] = []


class HabitProgressToggle(BaseModel):
    habit_id: int
    date: date_type


# =============================================================================
# Thoughts
# =============================================================================

class ThoughtInput(BaseModel):
    content: NonEmptyStr


class ThoughtResponse(BaseModel):
    id: int
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Eisenhower tasks
# =============================================================================

class TaskCreate(BaseModel):
    title: NonEmptyStr
    due_date: datetime
    importance: int = Field(..., ge=1, le=4, description="1 = urgent and important, 4 = neither")
    notes: Optional[str] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    due_date: Optional[datetime] = None
    importance: Optional[int] = Field(None, ge=1, le=4)
    notes: Optional[str] = None
    is_completed: Optional[bool] = None


class TaskResponse(BaseModel):
    id: int
    title: str
    notes: Optional[str] = None
    due_date: datetime
    importance: int
    is_completed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Pomodoro stars
# =============================================================================

class StarCreate(BaseModel):
    date: date_type


class StarResponse(BaseModel):
    id: int
    date: date_type
    created_at: datetime

    model_config = {"from_attributes": True}


class StarCreatedResponse(BaseModel):
    star: StarResponse
    total_stars: int


class StarCountsResponse(BaseModel):
    counts: Dict[str, int]
    total: int
