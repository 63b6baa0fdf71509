"""002: create predictions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE predictions (
            id              VARCHAR(64)     PRIMARY KEY,
            title           VARCHAR(500)    NOT NULL,
            options         TEXT[]          NOT NULL,
            option_pools    BIGINT[]        NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            winning_option  TEXT,
            resolved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_predictions_status CHECK (status IN ('ACTIVE', 'RESOLVED')),
            CONSTRAINT ck_predictions_min_options CHECK (cardinality(options) >= 2),
            CONSTRAINT ck_predictions_pools_aligned CHECK (
                cardinality(options) = cardinality(option_pools)
            ),
            CONSTRAINT ck_predictions_pools_gte_0 CHECK (0 <= ALL (option_pools)),
            CONSTRAINT ck_predictions_resolution CHECK (
                (status = 'ACTIVE' AND winning_option IS NULL AND resolved_at IS NULL)
                OR (status = 'RESOLVED' AND winning_option = ANY (options)
                    AND resolved_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_predictions_status ON predictions (status);")
    op.execute("""
        CREATE TRIGGER trg_predictions_updated_at
            BEFORE UPDATE ON predictions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # Once resolved, the outcome and the pools are frozen
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_predictions_resolution_immutable()
        RETURNS TRIGGER AS $$
        BEGIN
            IF OLD.status = 'RESOLVED' AND (
                NEW.status IS DISTINCT FROM OLD.status
                OR NEW.winning_option IS DISTINCT FROM OLD.winning_option
                OR NEW.resolved_at IS DISTINCT FROM OLD.resolved_at
                OR NEW.option_pools IS DISTINCT FROM OLD.option_pools
                OR NEW.options IS DISTINCT FROM OLD.options
            ) THEN
                RAISE EXCEPTION 'prediction % is resolved and immutable', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_predictions_resolution_immutable
            BEFORE UPDATE ON predictions
            FOR EACH ROW EXECUTE FUNCTION fn_predictions_resolution_immutable();
    """)
    op.execute(
        "COMMENT ON TABLE predictions IS "
        "'Pari-mutuel predictions - option_pools in micro-MYST, aligned with options';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS predictions CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_predictions_resolution_immutable();")
