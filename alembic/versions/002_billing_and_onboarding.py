"""Subscribers, profiles, onboarding progress, chatbots and knowledge bases.

Revision ID: 002_billing_and_onboarding
Revises: 001_initial
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_billing_and_onboarding"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS subscribers (
                id VARCHAR(36) PRIMARY KEY,
                email VARCHAR NOT NULL UNIQUE,
                user_id VARCHAR(36),
                stripe_customer_id VARCHAR,
                subscribed BOOLEAN NOT NULL DEFAULT false,
                is_trial BOOLEAN NOT NULL DEFAULT false,
                trial_end TIMESTAMP,
                subscription_tier VARCHAR,
                subscription_end TIMESTAMP,
                webhook_received TIMESTAMP,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id VARCHAR(36) PRIMARY KEY,
                first_name VARCHAR,
                last_name VARCHAR,
                company VARCHAR,
                onboarding_completed BOOLEAN NOT NULL DEFAULT false,
                subscription_status VARCHAR,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS onboarding_progress (
                id VARCHAR(36) PRIMARY KEY,
                user_id VARCHAR(36) NOT NULL,
                step_id INTEGER NOT NULL,
                step_data JSON,
                completed_at TIMESTAMP NOT NULL,
                created_at TIMESTAMP,
                updated_at TIMESTAMP,
                CONSTRAINT uq_onboarding_progress_user_step UNIQUE (user_id, step_id)
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS chatbots (
                id VARCHAR(36) PRIMARY KEY,
                user_id VARCHAR(36) NOT NULL,
                name VARCHAR NOT NULL,
                description VARCHAR,
                configuration JSON,
                is_active BOOLEAN DEFAULT true,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            );
            """
        )
    )
    conn.execute(
        sa.text(
            """
            CREATE TABLE IF NOT EXISTS knowledge_base (
                id VARCHAR(36) PRIMARY KEY,
                user_id VARCHAR(36) NOT NULL,
                chatbot_id VARCHAR(36) REFERENCES chatbots (id) ON DELETE SET NULL,
                title VARCHAR NOT NULL,
                content TEXT,
                file_type VARCHAR,
                file_size INTEGER,
                gcp_file_path VARCHAR,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            );
            """
        )
    )


def downgrade() -> None:
    pass
