"""Create social graph tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('user', 'admin', name='user_role')
relation_kind = sa.Enum('following', 'followers', 'blocked', name='relation_kind')


def upgrade() -> None:
    """Create social graph tables"""

    # 1. Create users table
    op.create_table('users',
        sa.Column('user_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('profile_picture', sa.String(500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('organization', sa.String(200), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='user'),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hide_from_suggestions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('following_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('followers_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('username'),
    )

    op.create_index('ix_users_username', 'users', ['username'])

    # 2. Create user_relations table (one row per set element)
    op.create_table('user_relations',
        sa.Column('relation_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('kind', relation_kind, nullable=False),
        sa.Column('member_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('relation_id'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.UniqueConstraint('owner_id', 'kind', 'member_id', name='uq_user_relations_owner_kind_member'),
    )

    op.create_index('ix_user_relations_member', 'user_relations', ['member_id', 'kind'])

    # 3. Create notifications table
    op.create_table('notifications',
        sa.Column('notification_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('recipient_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('sender_id', sa.Uuid(as_uuid=False), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('notification_id'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.user_id'], ondelete='CASCADE'),
    )

    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])


def downgrade() -> None:
    """Drop social graph tables"""
    op.drop_table('notifications')
    op.drop_table('user_relations')
    op.drop_table('users')
    relation_kind.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
