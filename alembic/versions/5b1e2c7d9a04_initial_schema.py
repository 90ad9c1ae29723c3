"""Initial schema: users, notes, tags, shares, refresh tokens, public links

Revision ID: 5b1e2c7d9a04
Revises:
Create Date: 2026-10-19 09:12:31.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from notesuite.core.models.types import GUID


# revision identifiers, used by Alembic.
revision: str = '5b1e2c7d9a04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('id', GUID(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        *_audit_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('email = lower(email)', name='ck_users_email_lowercase'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('idx_users_active', 'users', ['is_active'])

    op.create_table(
        'notes',
        *_audit_columns(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('visibility', sa.String(length=20), nullable=False),
        sa.Column('view_count', sa.BigInteger(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('owner_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.CheckConstraint('view_count >= 0', name='ck_notes_view_count_positive'),
    )
    op.create_index('idx_notes_owner_id', 'notes', ['owner_id'])
    op.create_index('idx_notes_visibility', 'notes', ['visibility'])
    op.create_index('idx_notes_owner_updated', 'notes', ['owner_id', 'updated_at'])

    op.create_table(
        'tags',
        *_audit_columns(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.UniqueConstraint('name', name='uq_tags_name'),
        sa.CheckConstraint('name = lower(name)', name='ck_tags_name_lowercase'),
        sa.CheckConstraint('usage_count >= 0', name='ck_tags_usage_count_positive'),
    )
    op.create_index('idx_tags_usage_count', 'tags', ['usage_count'])

    op.create_table(
        'note_tags',
        *_audit_columns(),
        sa.Column('note_id', GUID(), sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tag_id', GUID(), sa.ForeignKey('tags.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('note_id', 'tag_id', name='uq_note_tags_note_tag'),
    )
    op.create_index('idx_note_tags_note_id', 'note_tags', ['note_id'])
    op.create_index('idx_note_tags_tag_id', 'note_tags', ['tag_id'])

    op.create_table(
        'shares',
        *_audit_columns(),
        sa.Column('note_id', GUID(), sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shared_with_user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shared_by_user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', sa.String(length=20), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index(
        'uq_shares_active_note_recipient',
        'shares',
        ['note_id', 'shared_with_user_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )
    op.create_index('idx_shares_note_id', 'shares', ['note_id'])
    op.create_index('idx_shares_shared_with', 'shares', ['shared_with_user_id'])
    op.create_index('idx_shares_expires_at', 'shares', ['expires_at'])

    op.create_table(
        'refresh_tokens',
        *_audit_columns(),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revocation_reason', sa.String(length=100), nullable=True),
        sa.Column(
            'replaced_by_token_id',
            GUID(),
            sa.ForeignKey('refresh_tokens.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('token'),
    )
    op.create_index('idx_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])
    op.create_index('idx_refresh_tokens_expires_at', 'refresh_tokens', ['expires_at'])
    op.create_index('idx_refresh_tokens_user_revoked', 'refresh_tokens', ['user_id', 'is_revoked'])

    op.create_table(
        'public_links',
        *_audit_columns(),
        sa.Column('note_id', GUID(), sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url_token', sa.String(length=128), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_access_count', sa.BigInteger(), nullable=True),
        sa.Column('access_count', sa.BigInteger(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.UniqueConstraint('url_token'),
        sa.CheckConstraint('access_count >= 0', name='ck_public_links_access_count_positive'),
        sa.CheckConstraint(
            'max_access_count IS NULL OR max_access_count >= 1',
            name='ck_public_links_max_access_positive',
        ),
    )
    op.create_index('idx_public_links_note_id', 'public_links', ['note_id'])
    op.create_index('idx_public_links_expires_at', 'public_links', ['expires_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('public_links')
    op.drop_table('refresh_tokens')
    op.drop_table('shares')
    op.drop_table('note_tags')
    op.drop_table('tags')
    op.drop_table('notes')
    op.drop_table('users')
