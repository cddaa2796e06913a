"""SQLAlchemy ORM models."""

from app.db.models.auth import CompanyProfile, User
from app.db.models.documents import Document, RFPUpload
from app.db.models.leads import Lead, QRCode
from app.db.models.proposals import Proposal, ProposalTeamInvitation, ProposalTimeTracking

__all__ = [
    "CompanyProfile",
    "Document",
    "Lead",
    "Proposal",
    "ProposalTeamInvitation",
    "ProposalTimeTracking",
    "QRCode",
    "RFPUpload",
    "User",
]
