"""
Personal productivity models: circles, habits, thoughts, Eisenhower tasks
and pomodoro stars. All rows are private to the doctor who created them.
"""

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Integer,
    Text,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


DEFAULT_MAX_CLICKS = 5


class Circle(Base):
    """A click counter that fills up to ``max_clicks``."""

    __tablename__ = "circles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    max_clicks = Column(Integer, nullable=False, default=DEFAULT_MAX_CLICKS)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    progress = relationship(
        "DayProgress",
        back_populates="habit",
        order_by="DayProgress.date",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DayProgress(Base):
    __tablename__ = "day_progress"
    __table_args__ = (
        UniqueConstraint("habit_id", "date", name="uq_day_progress_habit_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    is_checked = Column(Boolean, nullable=False, default=False)

    habit = relationship("Habit", back_populates="progress")


class Thought(Base):
    __tablename__ = "thoughts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class EisenhowerTask(Base):
    """Task placed on the importance/urgency matrix; ``importance`` 1 is highest."""

    __tablename__ = "eisenhower_tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False)
    importance = Column(Integer, nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class PomodoroStar(Base):
    """One completed pomodoro on a given day."""

    __tablename__ = "pomodoro_stars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
