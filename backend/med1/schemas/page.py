"""
Landing page and block schemas.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from .common import NonEmptyStr
from .indication import IndicationResponse
from .user import PublicDoctorResponse
from ..models.page import BlockType, SocialPlatform


class PageCreate(BaseModel):
    title: NonEmptyStr
    subtitle: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    slug: Optional[str] = Field(None, description="Custom slug; derived from title when empty")
    layout: Optional[str] = None
    primary_color: Optional[str] = None
    is_modal: bool = False


class PageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    slug: Optional[str] = None
    layout: Optional[str] = None
    primary_color: Optional[str] = None
    is_modal: Optional[bool] = None


class BlockInput(BaseModel):
    type: BlockType
    content: Optional[Any] = None
    order: int


class BlocksUpdate(BaseModel):
    blocks: List[BlockInput]


class BlockResponse(BaseModel):
    id: int
    type: str
    content: Optional[Any] = None
    order: int

    model_config = {"from_attributes": True}


class AddressInput(BaseModel):
    name: NonEmptyStr
    address: NonEmptyStr
    is_default: bool = False


class AddressesUpdate(BaseModel):
    addresses: List[AddressInput]


class AddressResponse(BaseModel):
    id: int
    name: str
    address: str
    is_default: bool

    model_config = {"from_attributes": True}


class SocialLinkInput(BaseModel):
    platform: SocialPlatform
    username: str
    url: HttpUrl


class SocialLinksUpdate(BaseModel):
    links: List[SocialLinkInput]


class SocialLinkResponse(BaseModel):
    id: int
    platform: str
    username: str
    url: str

    model_config = {"from_attributes": True}


class PageResponse(BaseModel):
    id: UUID
    title: str
    subtitle: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    slug: str
    layout: str
    primary_color: str
    is_modal: bool
    created_at: datetime
    blocks: List[BlockResponse] = []
    addresses: List[AddressResponse] = []
    social_links: List[SocialLinkResponse] = []

    model_config = {"from_attributes": True}


class ContentResponse(BaseModel):
    """Public content behind ``/{user_slug}/{slug}``: a page or else an indication."""
    type: Literal["page", "indication"]
    user: PublicDoctorResponse
    page: Optional[PageResponse] = None
    indication: Optional[IndicationResponse] = None
