"""initial_schema

Revision ID: a1c3e5f7b901
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c3e5f7b901'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _status(name: str, nullable: bool = False, default: str | None = None) -> sa.Column:
    return sa.Column(name, sa.String(32), nullable=nullable, server_default=default)


def _ts(name: str) -> sa.Column:
    return sa.Column(name, sa.TIMESTAMP(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('email', sa.TEXT(), nullable=False),
        _status('role'),
        sa.Column('full_name', sa.TEXT()),
        sa.Column('phone_number', sa.TEXT()),
        sa.Column('organization_name', sa.TEXT()),
        sa.Column('is_active', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column('is_verified', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _status('verification_status', nullable=True),
        sa.Column('verified_by', sa.TEXT()),
        _ts('verified_at'),
        sa.Column('created_by', sa.TEXT()),
        *_timestamps(),
    )
    op.create_index('idx_profiles_role', 'profiles', ['role'])

    op.create_table(
        'donors',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('full_name', sa.TEXT(), nullable=False),
        sa.Column('phone_number', sa.TEXT()),
        sa.Column('date_of_birth', sa.DATE()),
        sa.Column('occupation', sa.TEXT()),
        sa.Column('address', sa.TEXT()),
        sa.Column('city', sa.TEXT()),
        sa.Column('state', sa.TEXT()),
        sa.Column('country', sa.TEXT()),
        sa.Column('postal_code', sa.TEXT()),
        sa.Column('id_type', sa.TEXT()),
        sa.Column('id_number', sa.TEXT()),
        sa.Column('organization_name', sa.TEXT()),
        sa.Column('tax_id', sa.TEXT()),
        sa.Column('preferred_contact_method', sa.TEXT()),
        sa.Column('terms_accepted', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _ts('terms_accepted_at'),
        sa.Column('privacy_policy_accepted', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _ts('privacy_policy_accepted_at'),
        sa.Column('aml_acknowledgment', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _ts('aml_acknowledged_at'),
        sa.Column('is_verified', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _status('verification_status', default='pending'),
        sa.Column('verified_by', sa.TEXT()),
        _ts('verified_at'),
        sa.Column('rejection_reason', sa.TEXT()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['id'], ['profiles.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_donors_verification', 'donors', ['verification_status'])

    op.create_table(
        'schools',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('school_name', sa.TEXT(), nullable=False),
        sa.Column('registration_number', sa.TEXT()),
        sa.Column('school_type', sa.TEXT()),
        sa.Column('province', sa.TEXT()),
        sa.Column('district', sa.TEXT()),
        sa.Column('physical_address', sa.TEXT()),
        sa.Column('head_teacher_name', sa.TEXT()),
        sa.Column('head_teacher_phone', sa.TEXT()),
        sa.Column('total_students', sa.INTEGER(), nullable=False, server_default='0'),
        sa.Column('total_teachers', sa.INTEGER(), nullable=False, server_default='0'),
        sa.Column('has_electricity', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column('has_running_water', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column('has_library', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _status('approval_status', default='pending'),
        sa.Column('is_verified', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column('verified_by', sa.TEXT()),
        _ts('verified_at'),
        sa.Column('rejection_reason', sa.TEXT()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['id'], ['profiles.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_schools_approval', 'schools', ['approval_status'])

    op.create_table(
        'donations',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('donor_id', sa.TEXT(), nullable=False),
        sa.Column('title', sa.TEXT(), nullable=False),
        sa.Column('description', sa.TEXT(), nullable=False),
        sa.Column('donation_type', sa.TEXT(), nullable=False),
        sa.Column('condition', sa.TEXT()),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('available_quantity', sa.INTEGER()),
        sa.Column('city', sa.TEXT()),
        sa.Column('province', sa.TEXT()),
        sa.Column('delivery_available', sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        _status('status', default='pending'),
        _status('approval_status', default='pending'),
        sa.Column('rejection_reason', sa.TEXT()),
        sa.Column('screened_by', sa.TEXT()),
        _ts('screened_at'),
        sa.Column('approved_by', sa.TEXT()),
        _ts('approved_at'),
        sa.Column('allocated_to', sa.TEXT()),
        _ts('allocated_at'),
        _ts('delivered_at'),
        sa.Column('version', sa.INTEGER(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['donor_id'], ['donors.id']),
        # approved/allocated/delivered only after content approval
        sa.CheckConstraint(
            "status NOT IN ('approved', 'allocated', 'delivered') OR approval_status = 'approved'",
            name='ck_donations_status_requires_approval',
        ),
    )
    op.create_index('idx_donations_donor', 'donations', ['donor_id'])
    op.create_index('idx_donations_approval_status', 'donations', ['approval_status'])

    op.create_table(
        'resource_applications',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('school_id', sa.TEXT(), nullable=False),
        sa.Column('application_title', sa.TEXT(), nullable=False),
        sa.Column('application_type', sa.TEXT(), nullable=False),
        sa.Column('priority_level', sa.TEXT()),
        sa.Column('resources_needed', sa.JSON(), nullable=False),
        sa.Column('current_situation', sa.TEXT(), nullable=False),
        sa.Column('expected_impact', sa.TEXT(), nullable=False),
        sa.Column('beneficiaries_count', sa.INTEGER()),
        sa.Column('needed_by_date', sa.DATE()),
        _status('status', default='draft'),
        _ts('submitted_at'),
        sa.Column('reviewed_by', sa.TEXT()),
        _ts('reviewed_at'),
        sa.Column('review_notes', sa.TEXT()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
    )
    op.create_index('idx_applications_school', 'resource_applications', ['school_id'])
    op.create_index('idx_applications_status', 'resource_applications', ['status'])

    op.create_table(
        'donation_matches',
        sa.Column('id', sa.TEXT(), primary_key=True),
        sa.Column('donation_id', sa.TEXT(), nullable=False),
        sa.Column('application_id', sa.TEXT(), nullable=False),
        sa.Column('school_id', sa.TEXT(), nullable=False),
        sa.Column('match_score', sa.FLOAT(), nullable=False),
        sa.Column('match_justification', sa.TEXT(), nullable=False),
        sa.Column('priority_rank', sa.INTEGER()),
        _status('status', default='pending_admin_allocation'),
        sa.Column('admin_notes', sa.TEXT()),
        sa.Column('allocated_by', sa.TEXT()),
        _ts('allocated_at'),
        sa.Column('reviewed_by', sa.TEXT()),
        _ts('reviewed_at'),
        sa.Column('approver_notes', sa.TEXT()),
        sa.Column('rejection_reason', sa.TEXT()),
        sa.Column('version', sa.INTEGER(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['donation_id'], ['donations.id']),
        sa.ForeignKeyConstraint(['application_id'], ['resource_applications.id']),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
        sa.CheckConstraint('match_score >= 0 AND match_score <= 100', name='ck_matches_score_range'),
    )
    op.create_index('idx_matches_donation_status', 'donation_matches', ['donation_id', 'status'])
    op.create_index('idx_matches_status', 'donation_matches', ['status'])


def downgrade() -> None:
    op.drop_table('donation_matches')
    op.drop_table('resource_applications')
    op.drop_table('donations')
    op.drop_table('schools')
    op.drop_table('donors')
    op.drop_table('profiles')
