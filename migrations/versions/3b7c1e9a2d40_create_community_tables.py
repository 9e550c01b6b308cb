"""create community tables

Revision ID: 3b7c1e9a2d40
Revises:
Create Date: 2026-10-18 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b7c1e9a2d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

content_status = postgresql.ENUM('active', 'deleted', 'flagged', name='content_status', create_type=False)
interaction_type = postgresql.ENUM('like', 'repost', name='interaction_type', create_type=False)


def upgrade() -> None:
    """Upgrade schema."""
    # Both tables share content_status, so the types are created once up front
    content_status.create(op.get_bind(), checkfirst=True)
    interaction_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('avatar', sa.String(512), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'community_posts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_name', sa.String(50), nullable=False),
        sa.Column('author_avatar', sa.String(512), nullable=True),
        sa.Column('author_badge', sa.String(32), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media', sa.JSON(), nullable=False),
        sa.Column('topic', sa.String(50), nullable=False, server_default='general'),
        sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('replies_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reposts_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', content_status, nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('likes_count >= 0', name='ck_posts_likes_nonneg'),
        sa.CheckConstraint('replies_count >= 0', name='ck_posts_replies_nonneg'),
        sa.CheckConstraint('reposts_count >= 0', name='ck_posts_reposts_nonneg'),
    )
    op.create_index('ix_community_posts_topic', 'community_posts', ['topic'])
    op.create_index('idx_posts_topic_created', 'community_posts', ['topic', sa.text('created_at DESC')])
    op.create_index('idx_posts_created', 'community_posts', [sa.text('created_at DESC')])
    op.create_index('idx_posts_author_created', 'community_posts', ['author_id', sa.text('created_at DESC')])

    op.create_table(
        'community_comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('community_posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_name', sa.String(50), nullable=False),
        sa.Column('author_avatar', sa.String(512), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media', sa.JSON(), nullable=False),
        sa.Column('status', content_status, nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_community_comments_post_id', 'community_comments', ['post_id'])
    op.create_index('idx_comments_post_created', 'community_comments', ['post_id', 'created_at'])

    op.create_table(
        'interactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('community_posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', interaction_type, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        # One like / one repost per user per post
        sa.UniqueConstraint('post_id', 'user_id', 'type', name='uq_interactions_post_user_type'),
    )
    op.create_index('ix_interactions_user_id', 'interactions', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('interactions')
    op.drop_table('community_comments')
    op.drop_table('community_posts')
    op.drop_table('users')
    interaction_type.drop(op.get_bind(), checkfirst=True)
    content_status.drop(op.get_bind(), checkfirst=True)
