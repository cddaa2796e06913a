"""Company profile and marketplace endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.db.models import User
from app.schemas.profile import (
    MarketplaceResponse,
    ProfileRead,
    ProfileUpdate,
    PublicProfileRead,
)
from app.services import profile_service
from app.utils.pagination import PaginationParams, get_pagination, page_meta

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileRead)
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.require_profile(db, user.id)


@router.put("", response_model=ProfileRead)
def put_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or update the caller's profile and recompute its strength."""
    profile = profile_service.upsert_profile(
        db,
        user.id,
        company_name=body.company_name,
        industry=body.industry,
        contact_info=body.contact_info,
        visibility=body.visibility,
    )
    db.commit()
    db.refresh(profile)
    return profile


@router.delete("")
def delete_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile_service.delete_profile(db, user.id)
    db.commit()
    return {"success": True}


# =============================================================================
# Marketplace
# =============================================================================

@router.get("/marketplace", response_model=MarketplaceResponse)
def marketplace(
    industry: str | None = Query(None),
    search: str | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Public profiles, strongest first."""
    profiles, total = profile_service.list_marketplace(
        db,
        industry=industry,
        search=search,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return MarketplaceResponse(
        items=[PublicProfileRead.model_validate(p) for p in profiles],
        **page_meta(total, pagination),
    )


@router.get("/{profile_id}", response_model=PublicProfileRead)
def get_public_profile(
    profile_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.get_public_profile(db, profile_id)
