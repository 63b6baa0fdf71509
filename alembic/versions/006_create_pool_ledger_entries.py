"""006: create pool_ledger_entries table

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pool_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            pool_key        VARCHAR(32)     NOT NULL REFERENCES pool_balances (pool_key),
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pool_ledger_entry_type CHECK (
                entry_type IN (
                    'SETTLEMENT_FEE', 'SETTLEMENT_RESIDUE',
                    'TRANSFER_OUT', 'TRANSFER_IN'
                )
            ),
            CONSTRAINT ck_pool_ledger_amount_ne_0 CHECK (amount <> 0),
            CONSTRAINT ck_pool_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_pool_ledger_pool_time ON pool_ledger_entries (pool_key, created_at DESC);"
    )
    op.execute("""
        CREATE INDEX idx_pool_ledger_reference
        ON pool_ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_pool_ledger_append_only
            BEFORE UPDATE OR DELETE ON pool_ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute(
        "COMMENT ON TABLE pool_ledger_entries IS "
        "'Pool journal - append-only, SUM(amount) per pool = pool_balances.balance';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pool_ledger_entries CASCADE;")
