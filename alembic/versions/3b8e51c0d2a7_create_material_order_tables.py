"""create jobs, material_orders and order_sequences

Revision ID: 3b8e51c0d2a7
Revises:
Create Date: 2026-10-12 09:41:18.203114

Tables may already exist when Base.metadata.create_all() ran first, so each
table is only created if missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3b8e51c0d2a7'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("jobs"):
        op.create_table(
            "jobs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("customer_name", sa.String(), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("roof_area_sqft", sa.Float(), nullable=True),
            sa.Column("predominant_pitch_rise", sa.Integer(), nullable=True),
            sa.Column("eave_length_ft", sa.Float(), nullable=True),
            sa.Column("rake_length_ft", sa.Float(), nullable=True),
            sa.Column("ridge_length_ft", sa.Float(), nullable=True),
            sa.Column("valley_length_ft", sa.Float(), nullable=True),
            sa.Column("measurement_source", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_jobs_id", "jobs", ["id"])

    if not _table_exists("material_orders"):
        op.create_table(
            "material_orders",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("job_id", sa.Integer(), nullable=False),
            sa.Column("order_number", sa.String(), nullable=False),
            sa.Column("job_address", sa.Text(), nullable=True),
            sa.Column("shingle_color", sa.String(), nullable=False),
            sa.Column("material_system", sa.String(), nullable=False),
            sa.Column("roof_complexity", sa.String(), nullable=False),
            sa.Column("total_squares", sa.Float(), nullable=False),
            sa.Column("waste_percent", sa.Integer(), nullable=False),
            sa.Column("line_items", sa.JSON(), nullable=False),
            sa.Column("measurement_json", sa.JSON(), nullable=True),
            sa.Column("csv_export", sa.LargeBinary(), nullable=True),
            sa.Column("pdf_export", sa.LargeBinary(), nullable=True),
            sa.Column("csv_url", sa.String(), nullable=True),
            sa.Column("pdf_url", sa.String(), nullable=True),
            sa.Column("created_by", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("order_number"),
        )
        op.create_index("ix_material_orders_id", "material_orders", ["id"])
        op.create_index("ix_material_orders_job_id", "material_orders", ["job_id"])

    if not _table_exists("order_sequences"):
        op.create_table(
            "order_sequences",
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("value", sa.Integer(), nullable=False),
            sa.PrimaryKeyConstraint("name"),
        )
        # Start after any orders that already exist
        op.execute(
            "INSERT INTO order_sequences (name, value) "
            "SELECT 'material_order', COUNT(*) FROM material_orders"
        )


def downgrade() -> None:
    for table_name in ["order_sequences", "material_orders", "jobs"]:
        if _table_exists(table_name):
            op.drop_table(table_name)
