"""Company profiles, profile strength and the public marketplace."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.db.enums import DocumentType, ProfileVisibility
from app.db.models import CompanyProfile, Document, User

DEFAULT_COMPANY_NAME = "My Company"

# Strength weights: documents on file (capability + resume) and an SMS contact number
STRENGTH_DOCUMENTS = 66
STRENGTH_SMS = 34


class ProfileNotFoundError(NotFoundError):
    """Caller has no company profile yet."""

    def __init__(self, message: str = "Profile not found"):
        super().__init__(message)


def get_profile_for_user(db: Session, user_id: UUID) -> CompanyProfile | None:
    return db.query(CompanyProfile).filter(CompanyProfile.user_id == user_id).first()


def require_profile(db: Session, user_id: UUID, message: str = "Profile not found") -> CompanyProfile:
    profile = get_profile_for_user(db, user_id)
    if not profile:
        raise ProfileNotFoundError(message)
    return profile


def create_default_profile(db: Session, user: User) -> CompanyProfile:
    """Profile created at registration: private, strength 0."""
    profile = CompanyProfile(
        user_id=user.id,
        company_name=DEFAULT_COMPANY_NAME,
        visibility=ProfileVisibility.PRIVATE.value,
        contact_info={},
        profile_strength=0,
    )
    db.add(profile)
    db.flush()
    return profile


def calculate_profile_strength(profile: CompanyProfile, document_types: set[str]) -> int:
    strength = 0
    if {DocumentType.CAPABILITY.value, DocumentType.RESUME.value} <= document_types:
        strength += STRENGTH_DOCUMENTS
    if (profile.contact_info or {}).get("smsNumber"):
        strength += STRENGTH_SMS
    return strength


def recalculate_strength(db: Session, profile: CompanyProfile) -> int:
    document_types = {
        row[0]
        for row in db.query(Document.file_type).filter(Document.profile_id == profile.id).distinct()
    }
    profile.profile_strength = calculate_profile_strength(profile, document_types)
    return profile.profile_strength


def upsert_profile(
    db: Session,
    user_id: UUID,
    *,
    company_name: str | None = None,
    industry: str | None = None,
    contact_info: dict | None = None,
    visibility: str | None = None,
) -> CompanyProfile:
    """
    Create or update the caller's profile.

    Raises:
        ValidationError: unknown visibility, or no company name for a new profile
    """
    if visibility is not None and not ProfileVisibility.has_value(visibility):
        raise ValidationError("Visibility must be 'private' or 'public'")

    profile = get_profile_for_user(db, user_id)
    if profile is None:
        if not company_name:
            raise ValidationError("Company name is required")
        profile = CompanyProfile(
            user_id=user_id,
            company_name=company_name,
            industry=industry,
            contact_info=contact_info or {},
            visibility=visibility or ProfileVisibility.PRIVATE.value,
        )
        db.add(profile)
        db.flush()
    else:
        if company_name is not None:
            profile.company_name = company_name
        if industry is not None:
            profile.industry = industry
        if contact_info is not None:
            # Reassign so the JSON column is flagged dirty
            profile.contact_info = dict(contact_info)
        if visibility is not None:
            profile.visibility = visibility

    recalculate_strength(db, profile)
    db.flush()
    return profile


def delete_profile(db: Session, user_id: UUID) -> None:
    profile = require_profile(db, user_id)
    db.delete(profile)
    db.flush()


def list_marketplace(
    db: Session,
    *,
    industry: str | None = None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[CompanyProfile], int]:
    """Public profiles, strongest first."""
    query = db.query(CompanyProfile).filter(
        CompanyProfile.visibility == ProfileVisibility.PUBLIC.value
    )
    if industry:
        query = query.filter(CompanyProfile.industry == industry)
    if search:
        query = query.filter(func.lower(CompanyProfile.company_name).contains(search.lower()))
    total = query.count()
    profiles = (
        query.order_by(CompanyProfile.profile_strength.desc(), CompanyProfile.company_name)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return profiles, total


def get_public_profile(db: Session, profile_id: UUID) -> CompanyProfile:
    profile = (
        db.query(CompanyProfile)
        .filter(
            CompanyProfile.id == profile_id,
            CompanyProfile.visibility == ProfileVisibility.PUBLIC.value,
        )
        .first()
    )
    if not profile:
        raise ProfileNotFoundError()
    return profile


def find_playbook(profile: CompanyProfile, playbook_id: str | None) -> dict | None:
    """Industry playbook stored in contact_info.industryPlaybooks."""
    if not playbook_id:
        return None
    for playbook in (profile.contact_info or {}).get("industryPlaybooks") or []:
        if isinstance(playbook, dict) and str(playbook.get("id")) == str(playbook_id):
            return playbook
    raise NotFoundError("Playbook not found")


def profile_context(profile: CompanyProfile) -> dict:
    """Profile fields passed to AI prompts."""
    contact_info = dict(profile.contact_info or {})
    contact_info.pop("industryPlaybooks", None)
    return {
        "company_name": profile.company_name,
        "industry": profile.industry,
        "contact_info": contact_info,
    }
