"""Notification events and push subscriptions.

Revision ID: 001_notifications_and_subscriptions
Revises:
Create Date: 2026-10-18

- Create notifications table (raw event log, owned by the receiver)
- Create user_subscriptions table with a unique endpoint
- Indexes for the bell/feed queries and the unread count

Databases that already have these tables (created by the hosted backend)
only get the missing indexes; existing duplicate endpoints are collapsed to
the newest row before the unique index is added.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_notifications_and_subscriptions'
down_revision = None
branch_labels = None
depends_on = None


def _now(dialect: str):
    if dialect == 'postgresql':
        return sa.text('NOW()')
    return sa.text("(datetime('now'))")


def upgrade() -> None:
    """Create notifications and user_subscriptions tables."""
    bind = op.get_bind()
    dialect = bind.dialect.name
    existing = set(sa.inspect(bind).get_table_names())

    # =========================================================================
    # notifications
    # =========================================================================
    if 'notifications' not in existing:
        op.create_table(
            'notifications',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('type', sa.String(30), nullable=False),
            sa.Column('actor_id', sa.String(36), nullable=True),
            sa.Column('receiver_id', sa.String(36), nullable=False),
            sa.Column('card_id', sa.String(36), nullable=True),
            sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=_now(dialect)),
        )

    op.create_index('ix_notifications_receiver_id', 'notifications', ['receiver_id'], if_not_exists=True)
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'], if_not_exists=True)
    op.create_index(
        'ix_notifications_receiver_unread',
        'notifications',
        ['receiver_id', 'is_read'],
        if_not_exists=True,
    )

    # =========================================================================
    # user_subscriptions
    # =========================================================================
    if 'user_subscriptions' not in existing:
        op.create_table(
            'user_subscriptions',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('user_id', sa.String(36), nullable=False),
            sa.Column('endpoint', sa.String(1024), nullable=False),
            sa.Column('p256dh', sa.String(255), nullable=False),
            sa.Column('auth', sa.String(255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=_now(dialect)),
        )
    elif dialect == 'postgresql':
        # Keep the newest row per endpoint so the unique index can be built
        op.execute(
            """
            DELETE FROM user_subscriptions a
            USING user_subscriptions b
            WHERE a.endpoint = b.endpoint
              AND (a.created_at, a.id::text) < (b.created_at, b.id::text)
            """
        )

    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'], if_not_exists=True)
    op.create_index(
        'ix_user_subscriptions_endpoint',
        'user_subscriptions',
        ['endpoint'],
        unique=True,
        if_not_exists=True,
    )


def downgrade() -> None:
    """Remove notification and push subscription tables."""
    op.drop_index('ix_user_subscriptions_endpoint', table_name='user_subscriptions')
    op.drop_index('ix_user_subscriptions_user_id', table_name='user_subscriptions')
    op.drop_table('user_subscriptions')

    op.drop_index('ix_notifications_receiver_unread', table_name='notifications')
    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notifications_receiver_id', table_name='notifications')
    op.drop_table('notifications')
