"""004: create myst_transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE myst_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            type            VARCHAR(40)     NOT NULL,
            amount          BIGINT          NOT NULL,
            meta            JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_myst_transactions_type CHECK (
                type IN (
                    'ton_deposit', 'admin_grant', 'onboarding_bonus',
                    'referral_milestone', 'wheel_prize',
                    'prediction_win', 'prediction_refund',
                    'referral_reward_l1', 'referral_reward_l2',
                    'spend_bet', 'spend_boost', 'spend_campaign',
                    'withdraw_request', 'withdraw_fee', 'withdraw_burn'
                )
            ),
            CONSTRAINT ck_myst_transactions_settlement_positive CHECK (
                type NOT IN ('prediction_win', 'prediction_refund') OR amount > 0
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_myst_transactions_user ON myst_transactions (user_id, id DESC);"
    )
    op.execute("""
        CREATE INDEX idx_myst_transactions_prediction
        ON myst_transactions ((meta->>'prediction_id'))
        WHERE type IN ('prediction_win', 'prediction_refund');
    """)
    op.execute("""
        CREATE TRIGGER trg_myst_transactions_append_only
            BEFORE UPDATE OR DELETE ON myst_transactions
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute(
        "COMMENT ON TABLE myst_transactions IS "
        "'User MYST ledger - append-only, balance = SUM(amount), micro-MYST';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS myst_transactions CASCADE;")
