"""payment_records immutability triggers

Revision ID: f7e19a3c5b62
Revises: d2a7b6e04c19
Create Date: 2026-03-04 16:40:18.905322

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "f7e19a3c5b62"
down_revision: Union[str, Sequence[str], None] = "d2a7b6e04c19"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    from timecard.services.payment_immutability import POSTGRES_DDL, SQLITE_DDL

    if op.get_bind().dialect.name == "postgresql":
        op.execute(POSTGRES_DDL)
    else:
        for statement in SQLITE_DDL:
            op.execute(statement)


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            """
            DROP TRIGGER IF EXISTS trg_payment_records_block_update ON payment_records;
            DROP TRIGGER IF EXISTS trg_payment_records_block_delete ON payment_records;
            DROP FUNCTION IF EXISTS payment_records_block_paid_mutation();
            """
        )
    else:
        op.execute("DROP TRIGGER IF EXISTS trg_payment_records_block_update")
        op.execute("DROP TRIGGER IF EXISTS trg_payment_records_block_delete")
