"""add campaign payment columns

Owners submit payment for an approved plan; admins approve it before
invitations go out.

Revision ID: add_campaign_payment_002
Revises: ziyara_initial_001
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'add_campaign_payment_002'
down_revision = 'ziyara_initial_001'
branch_labels = None
depends_on = None


def upgrade():
    op.add_column('campaigns', sa.Column('payment_amount', sa.Integer(), nullable=True))
    op.add_column('campaigns', sa.Column('payment_submitted_at', sa.DateTime(), nullable=True))
    op.add_column('campaigns', sa.Column('payment_approved', sa.Boolean(), nullable=True, server_default='false'))
    op.add_column('campaigns', sa.Column('payment_approved_at', sa.DateTime(), nullable=True))

    # New notification type (Postgres only; SQLite stores enums as VARCHAR)
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("""
            DO $$
            BEGIN
                IF NOT EXISTS (SELECT 1 FROM pg_type t JOIN pg_enum e ON t.oid = e.enumtypid WHERE t.typname = 'notificationtypedb' AND e.enumlabel = 'campaign_payment_approved') THEN
                    ALTER TYPE notificationtypedb ADD VALUE 'campaign_payment_approved';
                END IF;
            END$$;
        """)


def downgrade():
    op.drop_column('campaigns', 'payment_approved_at')
    op.drop_column('campaigns', 'payment_approved')
    op.drop_column('campaigns', 'payment_submitted_at')
    op.drop_column('campaigns', 'payment_amount')
