"""Enum definitions for application constants."""

from enum import Enum


class _ValueEnum(str, Enum):
    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid member value."""
        return value in cls._value2member_map_

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class ProfileVisibility(_ValueEnum):
    PRIVATE = "private"
    PUBLIC = "public"


class DocumentType(_ValueEnum):
    """Kinds of company documents used as generation context."""
    CAPABILITY = "capability"
    RESUME = "resume"
    CERTIFICATION = "certification"
    OTHER = "other"


class RFPStatus(_ValueEnum):
    PARSED = "parsed"
    VALIDATED = "validated"


class ProposalStatus(_ValueEnum):
    """
    Proposal status values.

    Transitions are free-form: an owner may set any value in this enumeration.
    """
    DRAFT = "draft"
    TEAM_BUILDING = "team_building"
    READY = "ready"
    SUBMITTED = "submitted"
    WITHDRAWN = "withdrawn"


class ProposalTemplate(_ValueEnum):
    STANDARD = "standard"
    CREATIVE = "creative"
    TECHNICAL = "technical"


class InvitationStatus(_ValueEnum):
    """
    Team invitation states.

    invited → accepted | declined; declined → invited (re-invite); accepted is terminal.
    """
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class DuplicatePolicy(_ValueEnum):
    """How batch generation treats an RFP whose file name already exists."""
    OVERWRITE = "overwrite"
    SKIP = "skip"
