"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

Create profiles, podcasts, episodes and the subscription and favorite
relationship tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('google_id', sa.String(128), unique=True, nullable=True),
        sa.Column('email', sa.String(256), unique=True, nullable=False),
        sa.Column('username', sa.String(128), unique=True, nullable=False),
        sa.Column('avatar_url', sa.String(2048), nullable=True),
        sa.Column('is_creator', sa.Boolean, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.Column('last_login', sa.DateTime, nullable=True),
    )
    op.create_index('ix_profiles_google_id', 'profiles', ['google_id'])
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'podcasts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'author_id',
            sa.String(36),
            sa.ForeignKey('profiles.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('title', sa.String(512), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('cover_image_url', sa.String(2048), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_podcasts_author_id', 'podcasts', ['author_id'])
    op.create_index('ix_podcasts_created_at', 'podcasts', ['created_at'])

    op.create_table(
        'episodes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'podcast_id',
            sa.String(36),
            sa.ForeignKey('podcasts.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('title', sa.String(512), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('audio_url', sa.String(2048), nullable=False),
        sa.Column('duration', sa.Integer, nullable=False),
        sa.Column('published_at', sa.DateTime, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_episodes_podcast_id', 'episodes', ['podcast_id'])
    op.create_index('ix_episodes_published_at', 'episodes', ['published_at'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('profiles.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column(
            'podcast_id',
            sa.String(36),
            sa.ForeignKey('podcasts.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'podcast_id', name='uq_user_podcast_subscription'),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_podcast_id', 'subscriptions', ['podcast_id'])

    op.create_table(
        'favorites',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('profiles.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column(
            'episode_id',
            sa.String(36),
            sa.ForeignKey('episodes.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'episode_id', name='uq_user_episode_favorite'),
    )
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_episode_id', 'favorites', ['episode_id'])


def downgrade() -> None:
    op.drop_index('ix_favorites_episode_id', 'favorites')
    op.drop_index('ix_favorites_user_id', 'favorites')
    op.drop_table('favorites')
    op.drop_index('ix_subscriptions_podcast_id', 'subscriptions')
    op.drop_index('ix_subscriptions_user_id', 'subscriptions')
    op.drop_table('subscriptions')
    op.drop_index('ix_episodes_published_at', 'episodes')
    op.drop_index('ix_episodes_podcast_id', 'episodes')
    op.drop_table('episodes')
    op.drop_index('ix_podcasts_created_at', 'podcasts')
    op.drop_index('ix_podcasts_author_id', 'podcasts')
    op.drop_table('podcasts')
    op.drop_index('ix_profiles_email', 'profiles')
    op.drop_index('ix_profiles_google_id', 'profiles')
    op.drop_table('profiles')
