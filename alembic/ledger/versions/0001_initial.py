"""initial ledger schema

Revision ID: 0001_ledger
Revises:
Create Date: 2026-10-12
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("balance_after_cents", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "sequence", name="uq_ledger_transactions_account_sequence"),
        sa.CheckConstraint("amount_cents > 0", name="ck_ledger_transactions_positive_amount"),
        sa.CheckConstraint("balance_after_cents >= 0", name="ck_ledger_transactions_non_negative_balance"),
        sa.CheckConstraint("kind IN ('deposit', 'withdraw')", name="ck_ledger_transactions_kind"),
    )
    op.create_index("ix_ledger_transactions_account_id", "ledger_transactions", ["account_id"])
    op.create_index(
        "ix_ledger_transactions_account_created_at",
        "ledger_transactions",
        ["account_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_transactions_account_created_at", table_name="ledger_transactions")
    op.drop_index("ix_ledger_transactions_account_id", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
