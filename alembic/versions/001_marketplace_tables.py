"""Marketplace tables — accounts, opportunities, registrations, saved opportunities.

Revision ID: 001_marketplace_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_marketplace_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Accounts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            kind VARCHAR(16) NOT NULL,
            verified BOOLEAN NOT NULL DEFAULT false,
            full_name VARCHAR(128),
            organization_name VARCHAR(128),
            phone VARCHAR(32),
            address VARCHAR(256),
            city VARCHAR(128),
            state VARCHAR(32),
            zip_code VARCHAR(16),
            service_hours_goal INTEGER NOT NULL DEFAULT 100,
            total_hours_logged INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_kind CHECK (kind IN ('student', 'organization')),
            CONSTRAINT ck_accounts_student_unverified CHECK (kind = 'organization' OR verified = false),
            CONSTRAINT ck_accounts_goal CHECK (service_hours_goal >= 0),
            CONSTRAINT ck_accounts_total_hours CHECK (total_hours_logged >= 0)
        )
    """)

    # --- Opportunities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS opportunities (
            id BIGSERIAL PRIMARY KEY,
            organization_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category VARCHAR(16) NOT NULL,
            hours_needed INTEGER NOT NULL,
            max_volunteers INTEGER NOT NULL,
            current_volunteers INTEGER NOT NULL DEFAULT 0,
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            date DATE,
            time TIME,
            location VARCHAR(256),
            city VARCHAR(128),
            state VARCHAR(32),
            zip_code VARCHAR(16),
            requirements TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_opportunities_category
                CHECK (category IN ('STEM', 'Environment', 'Health', 'Education', 'Other')),
            CONSTRAINT ck_opportunities_status CHECK (status IN ('active', 'inactive', 'completed')),
            CONSTRAINT ck_opportunities_hours_needed CHECK (hours_needed > 0),
            CONSTRAINT ck_opportunities_max_volunteers CHECK (max_volunteers > 0),
            CONSTRAINT ck_opportunities_capacity
                CHECK (current_volunteers >= 0 AND current_volunteers <= max_volunteers)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_opportunities_org
        ON opportunities(organization_id)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_opportunities_status_date
        ON opportunities(status, date)
    """)

    # --- Registrations ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS volunteer_registrations (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            opportunity_id BIGINT NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
            registered_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            status VARCHAR(16) NOT NULL DEFAULT 'registered',
            hours_completed INTEGER NOT NULL DEFAULT 0,
            CONSTRAINT uq_registrations_user_opportunity UNIQUE (user_id, opportunity_id),
            CONSTRAINT ck_registrations_status CHECK (status IN ('registered', 'completed', 'cancelled')),
            CONSTRAINT ck_registrations_hours CHECK (hours_completed >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_registrations_opportunity
        ON volunteer_registrations(opportunity_id)
    """)

    # --- Saved opportunities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS saved_opportunities (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
            opportunity_id BIGINT NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
            saved_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_saved_user_opportunity UNIQUE (user_id, opportunity_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS saved_opportunities")
    op.execute("DROP TABLE IF EXISTS volunteer_registrations")
    op.execute("DROP TABLE IF EXISTS opportunities")
    op.execute("DROP TABLE IF EXISTS accounts")
