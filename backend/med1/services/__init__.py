"""
Business logic services for MED1.

Contains logic shared by several routers: slugs, reward unlocking,
imports, pivot queries, dashboard statistics, caching and email.
"""

from .cache import CacheService, get_cache
from .email_service import EmailService, email_service
from .rewards import reward_progress, serialize_reward, unlock_reached_rewards
from .slugs import slugify, page_slug, unique_slug

__all__ = [
    "CacheService",
    "get_cache",
    "EmailService",
    "email_service",
    "reward_progress",
    "serialize_reward",
    "unlock_reached_rewards",
    "slugify",
    "page_slug",
    "unique_slug",
]
