"""Create Ziyara marketplace tables

This migration creates:
1. users and branches
2. influencer_profiles
3. campaigns
4. campaign_influencer_suggestions
5. influencer_invitations (unique per campaign and influencer)
6. notifications

Revision ID: ziyara_initial_001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = 'ziyara_initial_001'
down_revision = None
branch_labels = None
depends_on = None


user_type = sa.Enum('owner', 'influencer', 'admin', name='usertype')
main_type = sa.Enum('restaurant', 'cafe', name='maintype')
campaign_status = sa.Enum(
    'draft', 'waiting_match_plan', 'plan_ready', 'waiting_influencer_responses',
    'in_progress', 'completed', 'cancelled', name='campaignstatusdb'
)
campaign_goal = sa.Enum('opening', 'promotions', 'new_products', 'other', name='campaigngoaldb')
influencer_category = sa.Enum(
    'food_reviews', 'lifestyle', 'fashion', 'travel', 'comedy', 'general', name='influencercategorydb'
)
avg_range = sa.Enum('0-10k', '10k-50k', '50k-100k', '100k-500k', '500k+', name='avgrangedb')
invitation_status = sa.Enum('pending', 'accepted', 'declined', 'cancelled', name='invitationstatusdb')
proof_status = sa.Enum('pending_submission', 'submitted', 'approved', 'rejected', name='proofstatusdb')
notification_type = sa.Enum(
    'invitation_received', 'invitation_accepted', 'invitation_declined', 'invitation_expired',
    'replacement_invited', 'proof_submitted', 'proof_approved', 'proof_rejected',
    'payment_completed', 'profile_approved', 'system', name='notificationtypedb'
)


def upgrade():
    # 1. Users and branches
    op.create_table('users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('user_type', user_type, server_default='owner'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('branches',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('main_type', main_type, server_default='restaurant'),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('neighborhood', sa.String(100)),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 2. Influencer profiles
    op.create_table('influencer_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('bio', sa.Text),
        sa.Column('city_served', sa.String(100)),
        sa.Column('cities', sa.JSON),
        sa.Column('category', influencer_category, server_default='general'),
        sa.Column('content_type', sa.String(100)),
        sa.Column('primary_platforms', sa.JSON),
        sa.Column('instagram_handle', sa.String(100)),
        sa.Column('tiktok_username', sa.String(100)),
        sa.Column('snapchat_username', sa.String(100)),
        sa.Column('avg_views_instagram', avg_range),
        sa.Column('avg_views_tiktok', avg_range),
        sa.Column('avg_views_snapchat', avg_range),
        sa.Column('avg_views_val', sa.Integer),
        sa.Column('accept_hospitality', sa.Boolean, server_default=sa.false()),
        sa.Column('accept_paid', sa.Boolean, server_default=sa.true()),
        sa.Column('type_label', sa.String(50)),
        sa.Column('min_price', sa.Integer),
        sa.Column('max_price', sa.Integer),
        sa.Column('is_approved', sa.Boolean, server_default=sa.false()),
        sa.Column('agreement_accepted', sa.Boolean, server_default=sa.false()),
        sa.Column('bank_name', sa.String(100)),
        sa.Column('iban', sa.String(34)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 3. Campaigns
    op.create_table('campaigns',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('branch_id', sa.String(36), sa.ForeignKey('branches.id'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('content_requirements', sa.Text),
        sa.Column('goal', campaign_goal),
        sa.Column('budget', sa.Integer, server_default='0'),
        sa.Column('status', campaign_status, nullable=False, server_default='draft'),
        sa.Column('start_date', sa.Date),
        sa.Column('duration_days', sa.Integer),
        sa.Column('add_bonus_hospitality', sa.Boolean, server_default=sa.false()),
        sa.Column('strategy_summary', sa.JSON),
        sa.Column('algorithm_version', sa.String(20)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 4. Suggestions
    op.create_table('campaign_influencer_suggestions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('campaigns.id', ondelete='CASCADE'), nullable=False),
        sa.Column('influencer_id', sa.String(36), sa.ForeignKey('influencer_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('city_served', sa.String(100)),
        sa.Column('platform', sa.String(50)),
        sa.Column('content_type', sa.String(100)),
        sa.Column('min_price', sa.Integer),
        sa.Column('avg_views_val', sa.Integer),
        sa.Column('type_label', sa.String(20)),
        sa.Column('match_score', sa.Float, server_default='0'),
        sa.Column('is_hospitality_bonus', sa.Boolean, server_default=sa.false()),
        sa.Column('in_plan', sa.Boolean, server_default=sa.false()),
        sa.Column('selected', sa.Boolean, server_default=sa.false()),
        sa.Column('scheduled_date', sa.Date),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_campaign_influencer_suggestions_campaign_id',
                    'campaign_influencer_suggestions', ['campaign_id'])

    # 5. Invitations
    op.create_table('influencer_invitations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('campaigns.id'), nullable=False),
        sa.Column('influencer_id', sa.String(36), sa.ForeignKey('influencer_profiles.id'), nullable=False),
        sa.Column('replaces_invitation_id', sa.String(36), sa.ForeignKey('influencer_invitations.id'), unique=True),
        sa.Column('status', invitation_status, nullable=False, server_default='pending'),
        sa.Column('scheduled_date', sa.Date),
        sa.Column('offered_price', sa.Integer),
        sa.Column('responded_at', sa.DateTime),
        sa.Column('proof_url', sa.String(1000)),
        sa.Column('proof_status', proof_status, nullable=False, server_default='pending_submission'),
        sa.Column('proof_submitted_at', sa.DateTime),
        sa.Column('proof_rejected_reason', sa.Text),
        sa.Column('proof_approved_at', sa.DateTime),
        sa.Column('proof_auto_approved', sa.Boolean, server_default=sa.false()),
        sa.Column('payment_completed', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime),
        sa.UniqueConstraint('campaign_id', 'influencer_id', name='uq_invitation_campaign_influencer'),
    )
    op.create_index('ix_influencer_invitations_campaign_id', 'influencer_invitations', ['campaign_id'])
    op.create_index('ix_influencer_invitations_influencer_id', 'influencer_invitations', ['influencer_id'])
    # Expiration sweep lookup
    op.create_index('ix_influencer_invitations_status_created', 'influencer_invitations', ['status', 'created_at'])

    # 6. Notifications
    op.create_table('notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('action_url', sa.String(500)),
        sa.Column('data', sa.JSON),
        sa.Column('is_read', sa.Boolean, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('influencer_invitations')
    op.drop_table('campaign_influencer_suggestions')
    op.drop_table('campaigns')
    op.drop_table('influencer_profiles')
    op.drop_table('branches')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (notification_type, proof_status, invitation_status, avg_range,
                      influencer_category, campaign_goal, campaign_status, main_type, user_type):
        enum_type.drop(bind, checkfirst=True)
