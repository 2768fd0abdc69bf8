"""school_head_teacher_email

Revision ID: c4e6a8b0d213
Revises: a1c3e5f7b901
Create Date: 2026-10-16 14:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c4e6a8b0d213'
down_revision = 'a1c3e5f7b901'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('schools', sa.Column('head_teacher_email', sa.TEXT(), nullable=True))


def downgrade() -> None:
    op.drop_column('schools', 'head_teacher_email')
