"""003: create bets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id              VARCHAR(64)     PRIMARY KEY,
            prediction_id   VARCHAR(64)     NOT NULL REFERENCES predictions (id),
            user_id         VARCHAR(64)     NOT NULL,
            option          TEXT            NOT NULL,
            myst_bet        BIGINT          NOT NULL DEFAULT 0,
            myst_payout     BIGINT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bets_stake_gte_0  CHECK (myst_bet >= 0),
            CONSTRAINT ck_bets_payout_gte_0 CHECK (myst_payout IS NULL OR myst_payout >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_bets_prediction ON bets (prediction_id, created_at, id);")
    op.execute("CREATE INDEX idx_bets_user ON bets (user_id, created_at DESC);")
    # myst_payout goes NULL -> value exactly once, nothing else ever changes
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_bets_settle_once()
        RETURNS TRIGGER AS $$
        BEGIN
            IF OLD.myst_payout IS NOT NULL
               OR NEW.myst_bet IS DISTINCT FROM OLD.myst_bet
               OR NEW.option IS DISTINCT FROM OLD.option
               OR NEW.user_id IS DISTINCT FROM OLD.user_id
               OR NEW.prediction_id IS DISTINCT FROM OLD.prediction_id THEN
                RAISE EXCEPTION 'bet % can only receive its payout once', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_bets_settle_once
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_bets_settle_once();
    """)
    op.execute("COMMENT ON TABLE bets IS 'Stakes on prediction options - micro-MYST';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_bets_settle_once();")
