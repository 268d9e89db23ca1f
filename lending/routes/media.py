from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional
from lending.models.admin import Admin
from lending.services.auth import get_current_admin
from lending.services.desk import LendingDesk, get_desk, ledger_lock
from lending.schemas.media import MediaCreate, MediaResponse

router = APIRouter(prefix="/api/media", tags=["Media Catalog"])

@router.get("/", response_model=List[MediaResponse])
async def list_media(
    search: Optional[str] = Query(None, description="Search by title, creator, or identifier"),
    media_type: Optional[str] = Query(None, description="Filter by media type (BOOK, CD)"),
    desk: LendingDesk = Depends(get_desk)
):
    """List media items with optional search and type filter."""
    if search:
        items = desk.catalog.search(search)
        if media_type:
            items = [i for i in items if i.media_type == media_type.upper()]
    else:
        items = desk.catalog.list_items(media_type)
    return [MediaResponse(**item.to_dict()) for item in items]

@router.get("/{media_type}/{identifier}", response_model=MediaResponse)
async def get_media(media_type: str, identifier: str, desk: LendingDesk = Depends(get_desk)):
    """Get a media item by type and identifier."""
    item = desk.catalog.find_item(identifier, media_type)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Media item not found"
        )
    return MediaResponse(**item.to_dict())

@router.post("/", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
async def add_media(
    media_data: MediaCreate,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Add a book or CD to the catalog (admin only)."""
    with ledger_lock:
        item = desk.catalog.add_item(
            media_data.identifier,
            media_data.media_type,
            media_data.title,
            media_data.creator,
            genre=media_data.genre,
            track_count=media_data.track_count,
        )
    return MediaResponse(**item.to_dict())
