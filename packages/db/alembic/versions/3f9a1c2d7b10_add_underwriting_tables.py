# This project was developed with assistance from AI tools.
"""add underwriting tables

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-17 09:12:44.512093

"""

import sqlalchemy as sa
from alembic import op

revision = "3f9a1c2d7b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "loan_applications",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("borrower_email", sa.String(255), nullable=False),
        sa.Column("borrower_name", sa.String(255), nullable=True),
        sa.Column("loan_type", sa.String(50), nullable=True),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("purchase_details", sa.JSON(), nullable=True),
        sa.Column("stage_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pre_approval_decision", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("decision_notes", sa.Text(), nullable=True),
        sa.Column("intake_status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("intake", sa.JSON(), nullable=True),
        sa.Column("history", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loan_applications_borrower_email", "loan_applications", ["borrower_email"])

    op.create_table(
        "role_forms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.String(50), nullable=False),
        sa.Column("form_type", sa.String(20), nullable=False),
        sa.Column("values", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_updated_by", sa.String(255), nullable=True),
        sa.Column("last_updated_role", sa.String(20), nullable=True),
        sa.ForeignKeyConstraint(["application_id"], ["loan_applications.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id", "form_type", name="uq_role_forms_application_form"),
    )
    op.create_index("ix_role_forms_application_id", "role_forms", ["application_id"])

    op.create_table(
        "underwriting_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("values", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("updated_by", sa.String(255), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("underwriting_settings")
    op.drop_table("role_forms")
    op.drop_table("loan_applications")
