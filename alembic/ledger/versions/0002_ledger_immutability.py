"""make ledger transactions append-only

Balances are derived from the newest row of each account, and every row
caches the balance its predecessor implies. An UPDATE or DELETE would silently
change an account balance and break the chain that reconciliation replays, so
the database refuses both for every writer, not only this service.

Revision ID: 0002_ledger_immutability
Revises: 0001_ledger
Create Date: 2026-10-13
"""

from alembic import op


revision = "0002_ledger_immutability"
down_revision = "0001_ledger"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION prevent_ledger_transaction_mutation()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'ledger_transactions is append-only; % is not allowed', TG_OP;
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_ledger_transactions_immutable
        BEFORE UPDATE OR DELETE ON ledger_transactions
        FOR EACH ROW
        EXECUTE FUNCTION prevent_ledger_transaction_mutation();
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_ledger_transactions_immutable ON ledger_transactions;")
    op.execute("DROP FUNCTION IF EXISTS prevent_ledger_transaction_mutation();")
