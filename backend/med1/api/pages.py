"""
Landing page endpoints: pages, their blocks, practice addresses and social
network links.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..core.retry import with_retry
from ..core.transactions import transaction
from ..models.page import DEFAULT_LAYOUT, DEFAULT_PRIMARY_COLOR, Page, PageAddress, PageBlock, SocialLink
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.page import (
    AddressesUpdate,
    AddressInput,
    AddressResponse,
    BlocksUpdate,
    PageCreate,
    PageResponse,
    PageUpdate,
    SocialLinksUpdate,
)
from ..services.slugs import page_slug, unique_slug


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pages", tags=["Pages"])

FALLBACK_PAGE_SLUG = "page"


def get_owned_page(db: Session, user: User, page_id: UUID) -> Page:
    page = db.query(Page).filter(Page.id == page_id, Page.user_id == user.id).first()
    if not page:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return page


def _slug_for(db: Session, user: User, text: str, exclude_id: UUID = None) -> str:
    return unique_slug(db, Page, user.id, page_slug(text) or FALLBACK_PAGE_SLUG, exclude_id=exclude_id)


@router.get("", response_model=List[PageResponse])
async def list_pages(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Page]:
    return (
        db.query(Page)
        .filter(Page.user_id == user.id)
        .order_by(Page.created_at.desc())
        .all()
    )


@router.post("", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
async def create_page(
    body: PageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page:
    """Create a page; the slug comes from ``slug`` or else the title."""
    slug = _slug_for(db, user, body.slug if body.slug and body.slug.strip() else body.title)
    try:
        page = Page(
            user_id=user.id,
            title=body.title,
            subtitle=body.subtitle,
            bio=body.bio,
            avatar_url=body.avatar_url,
            slug=slug,
            layout=body.layout or DEFAULT_LAYOUT,
            primary_color=body.primary_color or DEFAULT_PRIMARY_COLOR,
            is_modal=body.is_modal,
        )
        db.add(page)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating page for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create page")

    logger.info(f"Page {page.id} ({slug}) created for user {user.id}")
    return page


@router.get("/{page_id}", response_model=PageResponse)
async def get_page(
    page_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page:
    return get_owned_page(db, user, page_id)


@router.put("/{page_id}", response_model=PageResponse)
async def update_page(
    page_id: UUID,
    body: PageUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page:
    page = get_owned_page(db, user, page_id)
    changes = body.model_dump(exclude_unset=True)

    slug = changes.pop("slug", None)
    if slug and slug.strip():
        page.slug = _slug_for(db, user, slug, exclude_id=page.id)

    try:
        for field, value in changes.items():
            if value is not None or field in ("subtitle", "bio", "avatar_url"):
                setattr(page, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update page")
    return page


@router.delete("/{page_id}", response_model=SuccessResponse)
async def delete_page(
    page_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    page = get_owned_page(db, user, page_id)
    try:
        db.delete(page)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete page")
    return SuccessResponse(message="Page deleted")


@router.put("/{page_id}/blocks", response_model=PageResponse)
def replace_blocks(
    page_id: UUID,
    body: BlocksUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page:
    """
    Replace every block of the page with ``blocks``.

    Deletion and insertion happen in one transaction, retried on dropped
    connections.
    """
    page = get_owned_page(db, user, page_id)

    def _replace() -> None:
        with transaction(db):
            db.query(PageBlock).filter(PageBlock.page_id == page.id).delete(synchronize_session=False)
            db.add_all(
                PageBlock(page_id=page.id, type=block.type.value, content=block.content, order=block.order)
                for block in body.blocks
            )

    try:
        with_retry(_replace)
    except Exception as e:
        logger.error(f"Error replacing blocks of page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save blocks")

    db.expire(page, ["blocks"])
    return page


# =============================================================================
# Addresses
# =============================================================================

@router.get("/{page_id}/addresses", response_model=List[AddressResponse])
async def list_addresses(
    page_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[PageAddress]:
    return get_owned_page(db, user, page_id).addresses


@router.post("/{page_id}/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
async def add_address(
    page_id: UUID,
    body: AddressInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PageAddress:
    """Add an address; a new default takes the flag from the previous one."""
    page = get_owned_page(db, user, page_id)
    try:
        with transaction(db):
            if body.is_default:
                db.query(PageAddress).filter(
                    PageAddress.page_id == page.id,
                    PageAddress.is_default.is_(True),
                ).update({PageAddress.is_default: False}, synchronize_session=False)
            address = PageAddress(page_id=page.id, **body.model_dump())
            db.add(address)
    except Exception as e:
        logger.error(f"Error adding address to page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create address")
    return address


@router.put("/{page_id}/addresses", response_model=List[AddressResponse])
async def replace_addresses(
    page_id: UUID,
    body: AddressesUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[PageAddress]:
    """
    Replace every address of the page.

    Exactly one address ends up as the default: the first one flagged, or
    the first one of the list when none is.
    """
    page = get_owned_page(db, user, page_id)
    default_index = next((i for i, item in enumerate(body.addresses) if item.is_default), 0)
    try:
        with transaction(db):
            db.query(PageAddress).filter(PageAddress.page_id == page.id).delete(synchronize_session=False)
            db.add_all(
                PageAddress(page_id=page.id, name=item.name, address=item.address, is_default=i == default_index)
                for i, item in enumerate(body.addresses)
            )
    except Exception as e:
        logger.error(f"Error replacing addresses of page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update addresses")

    db.expire(page, ["addresses"])
    return page.addresses


# =============================================================================
# Social links
# =============================================================================

@router.put("/{page_id}/social-links", response_model=PageResponse)
async def replace_social_links(
    page_id: UUID,
    body: SocialLinksUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page:
    """Replace every social link of the page and return the updated page."""
    page = get_owned_page(db, user, page_id)
    try:
        with transaction(db):
            db.query(SocialLink).filter(SocialLink.page_id == page.id).delete(synchronize_session=False)
            db.add_all(
                SocialLink(page_id=page.id, platform=link.platform.value, username=link.username, url=str(link.url))
                for link in body.links
            )
    except Exception as e:
        logger.error(f"Error replacing social links of page {page_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update social links")

    db.expire(page, ["social_links"])
    return page
