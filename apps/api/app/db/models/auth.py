"""User accounts and company profiles."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, ForeignKey, Integer, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import ProfileVisibility
from app.db.types import utcnow

if TYPE_CHECKING:
    from app.db.models import Document, QRCode, RFPUpload


class User(Base):
    """
    An authenticated account.

    `token_version` is embedded in every issued token; bumping it revokes
    all outstanding access and refresh tokens (logout, password reset).
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    profile: Mapped[CompanyProfile | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class CompanyProfile(Base):
    """
    A company's account record (one per user).

    `contact_info` is a free-form JSON document that also carries the
    denormalized `teams`, `teamMembers`, `industryPlaybooks` and `smsNumber`.
    """

    __tablename__ = "company_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    visibility: Mapped[str] = mapped_column(
        String(20), default=ProfileVisibility.PRIVATE.value, nullable=False
    )
    contact_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    profile_strength: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="profile")
    documents: Mapped[list[Document]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )
    rfp_uploads: Mapped[list[RFPUpload]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )
    qr_codes: Mapped[list[QRCode]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )
