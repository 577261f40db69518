"""partners

Revision ID: 5c1e9a27d4b0
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5c1e9a27d4b0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "partners",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("did", sa.String(512), nullable=True),
        sa.Column("label", sa.String(512), nullable=True),
        sa.Column("verifiable_presentation", postgresql.JSON, nullable=True),
        sa.Column("valid", sa.Boolean, nullable=True),
        sa.Column("incoming", sa.Boolean, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_partners_did", "partners", ["did"])

    op.create_table(
        "partner_proofs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("partner_id", sa.String(64), nullable=False),
        sa.Column("schema_id", sa.String(512), nullable=True),
        sa.Column("proof", postgresql.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_partner_proofs_partner_id", "partner_proofs", ["partner_id"]
    )


def downgrade() -> None:
    op.drop_table("partner_proofs")
    op.drop_table("partners")
