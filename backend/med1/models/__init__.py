"""
SQLAlchemy ORM models for MED1.

Contains database table definitions and relationships.
Importing this package registers every mapper on ``Base.metadata``.
"""

from .user import User, UserStatus, UserPlan, VerificationToken, PasswordResetToken
from .lead import Lead, LeadStatus, LeadSource, Event, EventType, EDITABLE_LEAD_STATUSES
from .patient import Patient
from .page import Page, PageBlock, BlockType, PageAddress, SocialLink, SocialPlatform
from .indication import Indication
from .quiz import Quiz, QuizQuestion
from .referral import PatientReferral, ReferralReward, RewardType, UnlockType
from .productivity import Circle, Habit, DayProgress, Thought, EisenhowerTask, PomodoroStar
from .outbound import Outbound, OutboundClinic, ContactInteraction, InteractionType
from .pipeline import Pipeline
from .catalog import InterestOption, Service
from .dre import Product, CostCenter, FactEntry, PivotSnapshot

__all__ = [
    # Accounts
    "User",
    "UserStatus",
    "UserPlan",
    "VerificationToken",
    "PasswordResetToken",
    # Leads and tracking
    "Lead",
    "LeadStatus",
    "LeadSource",
    "Event",
    "EventType",
    "EDITABLE_LEAD_STATUSES",
    "Patient",
    # Pages, indications, quizzes
    "Page",
    "PageBlock",
    "BlockType",
    "PageAddress",
    "SocialLink",
    "SocialPlatform",
    "Indication",
    "Quiz",
    "QuizQuestion",
    # Referrals
    "PatientReferral",
    "ReferralReward",
    "RewardType",
    "UnlockType",
    # Productivity
    "Circle",
    "Habit",
    "DayProgress",
    "Thought",
    "EisenhowerTask",
    "PomodoroStar",
    # Outbound and pipelines
    "Outbound",
    "OutboundClinic",
    "ContactInteraction",
    "InteractionType",
    "Pipeline",
    # Catalog
    "InterestOption",
    "Service",
    # DRE
    "Product",
    "CostCenter",
    "FactEntry",
    "PivotSnapshot",
]
