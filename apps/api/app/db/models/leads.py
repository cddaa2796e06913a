"""QR codes and the leads captured through them."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import utcnow

if TYPE_CHECKING:
    from app.db.models import CompanyProfile


class QRCode(Base):
    """
    A short public code bound to a profile.

    Every public page view increments `scan_count`; there is no
    de-duplication of repeat views.
    """

    __tablename__ = "qr_codes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("company_profiles.id", ondelete="CASCADE"), nullable=False
    )
    unique_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    scan_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    last_scanned_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    profile: Mapped[CompanyProfile] = relationship(back_populates="qr_codes")
    leads: Mapped[list[Lead]] = relationship(
        back_populates="qr_code", cascade="all, delete-orphan", order_by="Lead.created_at.desc()"
    )


class Lead(Base):
    """A contact captured through the public lead form."""

    __tablename__ = "qr_leads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    qr_code_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("qr_codes.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("company_profiles.id", ondelete="CASCADE"), nullable=False
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    invited_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    qr_code: Mapped[QRCode] = relationship(back_populates="leads")
