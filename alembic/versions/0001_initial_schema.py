"""Initial schema: users, api_keys, usage_logs, short_urls

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, comment="User's email address (used for login)"),
        sa.Column('username', sa.String(length=50), nullable=False, comment='Unique username'),
        sa.Column('hashed_password', sa.String(length=255), nullable=False, comment='Bcrypt hashed password'),
        sa.Column('role', sa.String(length=20), nullable=False, comment='Role: user or admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, comment='Whether the account is active'),
        sa.Column('daily_limit', sa.Integer(), nullable=False, comment='Admitted requests allowed per calendar day'),
        sa.Column('requests_today', sa.Integer(), nullable=False, comment='Admitted requests counted for last_reset_date'),
        sa.Column('last_reset_date', sa.Date(), nullable=True, comment='Calendar day the counter belongs to'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, comment='When the user registered'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, comment='When the user row was last updated'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True, comment='When the user last logged in'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table('api_keys',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='Owning identity'),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Human-readable name for the API key'),
        sa.Column('key_hash', sa.String(length=255), nullable=False, comment='bcrypt hash of the API key'),
        sa.Column('key_prefix', sa.String(length=16), nullable=False, comment='First 16 characters of key for lookup'),
        sa.Column('is_active', sa.Boolean(), nullable=False, comment='Whether the key is currently active'),
        sa.Column('rate_limit', sa.Integer(), nullable=False, comment='Declared requests per minute (not enforced)'),
        sa.Column('allowed_endpoints', sa.JSON(), nullable=False, comment='Declared endpoint allow-list (not enforced)'),
        sa.Column('usage_count', sa.Integer(), nullable=False, comment='Successful validations of this key'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True, comment='When the key was last used'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True, comment='When the key was revoked (null = never)'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, comment='When the key was created'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_api_keys_user_id'), 'api_keys', ['user_id'], unique=False)
    op.create_index(op.f('ix_api_keys_key_prefix'), 'api_keys', ['key_prefix'], unique=False)

    op.create_table('usage_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('api_key_id', sa.Integer(), nullable=True, comment='Key the request was made with'),
        sa.Column('user_id', sa.Integer(), nullable=True, comment='Identity owning the key'),
        sa.Column('key_display', sa.String(length=16), nullable=False, comment="First 8 characters of the presented key + '...'"),
        sa.Column('endpoint', sa.String(length=100), nullable=False, comment='Logical endpoint name, e.g. shorturl_create'),
        sa.Column('ip', sa.String(length=64), nullable=False),
        sa.Column('user_agent', sa.String(length=512), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False, comment='Arbitrary request context'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['api_key_id'], ['api_keys.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_usage_logs_api_key_id'), 'usage_logs', ['api_key_id'], unique=False)
    op.create_index(op.f('ix_usage_logs_user_id'), 'usage_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_usage_logs_endpoint'), 'usage_logs', ['endpoint'], unique=False)
    op.create_index(op.f('ix_usage_logs_created_at'), 'usage_logs', ['created_at'], unique=False)

    op.create_table('short_urls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('short_code', sa.String(length=64), nullable=False),
        sa.Column('original_url', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('click_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('api_key_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['api_key_id'], ['api_keys.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_short_urls_short_code'), 'short_urls', ['short_code'], unique=True)
    op.create_index(op.f('ix_short_urls_user_id'), 'short_urls', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_short_urls_user_id'), table_name='short_urls')
    op.drop_index(op.f('ix_short_urls_short_code'), table_name='short_urls')
    op.drop_table('short_urls')
    op.drop_index(op.f('ix_usage_logs_created_at'), table_name='usage_logs')
    op.drop_index(op.f('ix_usage_logs_endpoint'), table_name='usage_logs')
    op.drop_index(op.f('ix_usage_logs_user_id'), table_name='usage_logs')
    op.drop_index(op.f('ix_usage_logs_api_key_id'), table_name='usage_logs')
    op.drop_table('usage_logs')
    op.drop_index(op.f('ix_api_keys_key_prefix'), table_name='api_keys')
    op.drop_index(op.f('ix_api_keys_user_id'), table_name='api_keys')
    op.drop_table('api_keys')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
