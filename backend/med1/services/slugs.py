"""
Slug generation for indications, pages and quizzes.

Slugs are unique per owning doctor. Collisions are resolved by probing
``base``, ``base-1``, ``base-2`` ... until a free value is found.
"""

import logging
import re
import unicodedata
from typing import Any, Optional

from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)

FALLBACK_SLUG = "indication"

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w-]+")
_DASH_RUN = re.compile(r"-{2,}")
_PAGE_INVALID = re.compile(r"[^a-z0-9-]")


def slugify(text: str) -> str:
    """
    Turn a display name into an indication slug.

    Diacritics are stripped, the text is lower-cased and whitespace removed,
    anything that is not a word character or ``-`` is dropped and runs of
    dashes collapse to one. Empty results fall back to ``indication``.

    >>> slugify("Cirurgia Cardíaca")
    'cirurgiacardiaca'
    """
    normalized = unicodedata.normalize("NFD", text or "")
    without_marks = "".join(c for c in normalized if not unicodedata.combining(c))
    slug = without_marks.lower().strip()
    slug = _WHITESPACE.sub("", slug)
    slug = _NON_WORD.sub("", slug)
    slug = _DASH_RUN.sub("-", slug)
    return slug or FALLBACK_SLUG


def page_slug(text: str) -> str:
    """
    Turn a page title into a URL slug.

    >>> page_slug("Dr. Ana  Souza!")
    'dr--ana--souza'
    """
    slug = _PAGE_INVALID.sub("-", (text or "").lower())
    return slug.strip("-")


def unique_slug(
    db: Session,
    model: Any,
    user_id: Any,
    base: str,
    exclude_id: Optional[Any] = None,
) -> str:
    """
    Return ``base`` or the first free ``base-N`` among ``model`` rows owned by ``user_id``.

    ``exclude_id`` lets an update keep its own current slug.
    """
    candidate = base
    counter = 1
    while _slug_taken(db, model, user_id, candidate, exclude_id):
        candidate = f"{base}-{counter}"
        counter += 1
    if candidate != base:
        logger.debug(f"Slug '{base}' taken, using '{candidate}'")
    return candidate


def _slug_taken(db: Session, model: Any, user_id: Any, slug: str, exclude_id: Optional[Any]) -> bool:
    query = db.query(model.id).filter(model.user_id == user_id, model.slug == slug)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return query.first() is not None
