"""
API route controllers for MED1.

Contains FastAPI routers for different endpoints.
Routes handle HTTP requests and delegate to services for business logic.
"""

from .health import router as health_router
from .auth import router as auth_router
from .users import router as users_router, doctors_router
from .leads import router as leads_router
from .patients import router as patients_router
from .referrals import router as referrals_router, doctor_router as doctor_referrals_router
from .indications import router as indications_router, slugify_router
from .pages import router as pages_router
from .quizzes import router as quizzes_router, public_router as quiz_public_router
from .public import router as public_router
from .productivity import (
    circles_router,
    habits_router,
    stars_router,
    tasks_router,
    thoughts_router,
)
from .outbound import router as outbound_router
from .pipelines import router as pipelines_router
from .interest_options import router as interest_options_router
from .clinic_services import router as services_router
from .dre import router as dre_router, pivot_router
from .portal import router as portal_router
from .dashboard import router as dashboard_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "doctors_router",
    "leads_router",
    "patients_router",
    "referrals_router",
    "doctor_referrals_router",
    "indications_router",
    "slugify_router",
    "pages_router",
    "quizzes_router",
    "quiz_public_router",
    "public_router",
    "circles_router",
    "habits_router",
    "thoughts_router",
    "tasks_router",
    "stars_router",
    "outbound_router",
    "pipelines_router",
    "interest_options_router",
    "services_router",
    "dre_router",
    "pivot_router",
    "portal_router",
    "dashboard_router",
]
