"""Baseline migration - accounts, documents, RFPs, proposals and lead capture

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates the full schema for the RFP response API.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Accounts
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        _timestamp('created_at'),
        _timestamp('last_login_at', nullable=True),
    )

    op.create_table(
        'company_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('industry', sa.String(255), nullable=True),
        sa.Column('visibility', sa.String(20), nullable=False),
        sa.Column('contact_info', sa.JSON(), nullable=False),
        sa.Column('profile_strength', sa.Integer(), server_default=sa.text('0'), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    # ==========================================================================
    # Documents & RFPs
    # ==========================================================================
    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('profile_id', sa.Uuid(), sa.ForeignKey('company_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_type', sa.String(30), nullable=False),
        sa.Column('storage_path', sa.String(1024), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        _timestamp('uploaded_at'),
    )
    op.create_index('ix_documents_profile_type', 'documents', ['profile_id', 'file_type'])

    op.create_table(
        'rfp_uploads',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('profile_id', sa.Uuid(), sa.ForeignKey('company_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('storage_path', sa.String(1024), nullable=False),
        sa.Column('extracted_text', sa.Text(), nullable=True),
        sa.Column('parsed_data', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_rfp_uploads_profile_file', 'rfp_uploads', ['profile_id', 'file_name'])

    # ==========================================================================
    # Proposals
    # ==========================================================================
    op.create_table(
        'proposals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rfp_id', sa.Uuid(), sa.ForeignKey('rfp_uploads.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('template', sa.String(30), nullable=False),
        sa.Column('score', sa.Integer(), server_default=sa.text('0'), nullable=False),
        _timestamp('exported_at', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_proposals_user_status', 'proposals', ['user_id', 'status'])

    op.create_table(
        'proposal_team_invitations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('proposal_id', sa.Uuid(), sa.ForeignKey('proposals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('member_email', sa.String(320), nullable=False),
        sa.Column('role', sa.String(255), nullable=False),
        sa.Column('rate_range', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('invitation_token', sa.String(64), nullable=False, unique=True),
        sa.Column('member_profile_id', sa.Uuid(), sa.ForeignKey('company_profiles.id', ondelete='SET NULL'), nullable=True),
        _timestamp('invited_at'),
        _timestamp('responded_at', nullable=True),
        sa.UniqueConstraint('proposal_id', 'member_email', name='uq_invitation_proposal_email'),
    )
    op.create_index('ix_invitations_member_email', 'proposal_team_invitations', ['member_email'])

    op.create_table(
        'proposal_time_tracking',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('proposal_id', sa.Uuid(), sa.ForeignKey('proposals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage', sa.String(100), nullable=False),
        _timestamp('started_at'),
        _timestamp('completed_at', nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
    )
    op.create_index('ix_time_tracking_user_proposal', 'proposal_time_tracking', ['user_id', 'proposal_id'])

    # ==========================================================================
    # QR lead capture
    # ==========================================================================
    op.create_table(
        'qr_codes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('profile_id', sa.Uuid(), sa.ForeignKey('company_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unique_code', sa.String(16), nullable=False, unique=True),
        sa.Column('label', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('scan_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        _timestamp('last_scanned_at', nullable=True),
        _timestamp('created_at'),
    )

    op.create_table(
        'qr_leads',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('qr_code_id', sa.Uuid(), sa.ForeignKey('qr_codes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('profile_id', sa.Uuid(), sa.ForeignKey('company_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('contact_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        _timestamp('invited_at', nullable=True),
        _timestamp('created_at'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('qr_leads')
    op.drop_table('qr_codes')
    op.drop_index('ix_time_tracking_user_proposal', table_name='proposal_time_tracking')
    op.drop_table('proposal_time_tracking')
    op.drop_index('ix_invitations_member_email', table_name='proposal_team_invitations')
    op.drop_table('proposal_team_invitations')
    op.drop_index('ix_proposals_user_status', table_name='proposals')
    op.drop_table('proposals')
    op.drop_index('ix_rfp_uploads_profile_file', table_name='rfp_uploads')
    op.drop_table('rfp_uploads')
    op.drop_index('ix_documents_profile_type', table_name='documents')
    op.drop_table('documents')
    op.drop_table('company_profiles')
    op.drop_table('users')
