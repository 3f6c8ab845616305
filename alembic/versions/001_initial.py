"""Admin tables: admin roles, impersonation tokens, moderation records.

Tables are also created by app startup (Base.metadata.create_all), so every
statement is guarded with IF NOT EXISTS and safe on repeated deploys.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS admin_roles (
                id VARCHAR(36) PRIMARY KEY,
                user_id VARCHAR(36) NOT NULL UNIQUE,
                role VARCHAR NOT NULL DEFAULT 'admin',
                granted_by VARCHAR(36),
                granted_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS temp_login_tokens (
                id VARCHAR(36) PRIMARY KEY,
                token VARCHAR NOT NULL UNIQUE,
                target_user_id VARCHAR(36) NOT NULL,
                admin_id VARCHAR(36) NOT NULL,
                expires_at TIMESTAMP NOT NULL,
                used_at TIMESTAMP,
                created_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS user_moderation (
                id VARCHAR(36) PRIMARY KEY,
                user_id VARCHAR(36) NOT NULL,
                admin_id VARCHAR(36) NOT NULL,
                action_type VARCHAR NOT NULL DEFAULT 'ban',
                reason VARCHAR,
                expires_at TIMESTAMP,
                is_active BOOLEAN NOT NULL DEFAULT true,
                created_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            "CREATE INDEX IF NOT EXISTS ix_user_moderation_user_id ON user_moderation (user_id);"
        )
    )


def downgrade() -> None:
    """Keep audit tables for safety; no-op downgrade."""
    pass
