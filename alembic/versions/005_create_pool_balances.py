"""005: create pool_balances table and seed the pool registry

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pool_balances (
            pool_key        VARCHAR(32)     PRIMARY KEY,
            balance         BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pool_balances_gte_0 CHECK (balance >= 0),
            CONSTRAINT ck_pool_balances_key CHECK (
                pool_key IN ('treasury', 'leaderboard', 'referral', 'wheel', 'main_pool')
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_pool_balances_updated_at
            BEFORE UPDATE ON pool_balances
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # main_pool is the legacy alias of wheel, kept equal by the application
    op.execute("""
        INSERT INTO pool_balances (pool_key, balance) VALUES
            ('treasury', 0),
            ('leaderboard', 0),
            ('referral', 0),
            ('wheel', 0),
            ('main_pool', 0)
        ON CONFLICT (pool_key) DO NOTHING;
    """)
    op.execute(
        "COMMENT ON TABLE pool_balances IS "
        "'Platform pool counters - micro-MYST, main_pool mirrors wheel';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pool_balances CASCADE;")
