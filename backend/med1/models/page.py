"""
Landing page models.

Pages are public link-in-bio style pages addressed by ``/{user_slug}/{slug}``.
Their content is an ordered list of blocks, plus the practice addresses and
social network links shown on the page.
"""

import enum
import uuid

from sqlalchemy import Column, String, Boolean, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, JSONType, utcnow


class BlockType(str, enum.Enum):
    BUTTON = "BUTTON"
    FORM = "FORM"
    ADDRESS = "ADDRESS"


class SocialPlatform(str, enum.Enum):
    INSTAGRAM = "INSTAGRAM"
    WHATSAPP = "WHATSAPP"
    YOUTUBE = "YOUTUBE"
    FACEBOOK = "FACEBOOK"
    LINKEDIN = "LINKEDIN"
    TIKTOK = "TIKTOK"
    TWITTER = "TWITTER"


DEFAULT_LAYOUT = "classic"
DEFAULT_PRIMARY_COLOR = "#0070df"


class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_pages_user_slug"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    slug = Column(String(255), nullable=False)
    layout = Column(String(50), nullable=False, default=DEFAULT_LAYOUT)
    primary_color = Column(String(20), nullable=False, default=DEFAULT_PRIMARY_COLOR)
    is_modal = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    blocks = relationship(
        "PageBlock",
        order_by="PageBlock.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    addresses = relationship(
        "PageAddress",
        order_by="PageAddress.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    social_links = relationship(
        "SocialLink",
        order_by="SocialLink.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PageBlock(Base):
    __tablename__ = "page_blocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    content = Column(JSONType, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PageAddress(Base):
    """A practice address; at most one per page is the default."""

    __tablename__ = "page_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class SocialLink(Base):
    __tablename__ = "social_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(20), nullable=False)
    username = Column(String(255), nullable=False)
    url = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
