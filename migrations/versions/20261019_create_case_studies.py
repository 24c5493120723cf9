"""create case_studies and usage_events tables

Revision ID: 20261019_case_studies
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = '20261019_case_studies'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create case study storage and the usage log."""
    op.create_table(
        "case_studies",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("prompt", sa.Text, nullable=False),
        sa.Column("generated_text", sa.Text, nullable=False),
        sa.Column("image_url", sa.Text, nullable=False),
        sa.Column("image_design_description", sa.Text, nullable=False, server_default=""),
        sa.Column("user_id", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_case_studies_created_at", "case_studies", ["created_at"])
    op.create_index("ix_case_studies_user_id", "case_studies", ["user_id"])

    # Append-only; counted per dimension for the usage limit
    op.create_table(
        "usage_events",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_usage_events_user_id", "usage_events", ["user_id"])
    op.create_index("ix_usage_events_email", "usage_events", ["email"])
    op.create_index("ix_usage_events_ip_address", "usage_events", ["ip_address"])


def downgrade() -> None:
    """Drop case study tables."""
    op.drop_index("ix_usage_events_ip_address", table_name="usage_events")
    op.drop_index("ix_usage_events_email", table_name="usage_events")
    op.drop_index("ix_usage_events_user_id", table_name="usage_events")
    op.drop_table("usage_events")
    op.drop_index("ix_case_studies_user_id", table_name="case_studies")
    op.drop_index("ix_case_studies_created_at", table_name="case_studies")
    op.drop_table("case_studies")
