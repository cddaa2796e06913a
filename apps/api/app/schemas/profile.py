"""Company profile Pydantic schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class ProfileRead(BaseModel):
    """Response schema for the caller's own profile."""
    id: UUID
    user_id: UUID
    company_name: str
    industry: str | None
    visibility: str
    contact_info: dict[str, Any]
    profile_strength: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Upsert body; omitted fields are left unchanged."""
    company_name: str | None = None
    industry: str | None = None
    contact_info: dict[str, Any] | None = None
    visibility: str | None = None


class PublicProfileRead(BaseModel):
    """Marketplace card."""
    id: UUID
    company_name: str
    industry: str | None
    contact_info: dict[str, Any]
    profile_strength: int

    model_config = {"from_attributes": True}


class MarketplaceResponse(BaseModel):
    items: list[PublicProfileRead]
    total: int
    limit: int
    offset: int
