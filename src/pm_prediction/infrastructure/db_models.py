"""SQLAlchemy ORM models for pm_prediction.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import ARRAY, BigInteger, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class PredictionORM(Base):
    __tablename__ = "predictions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    options: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    option_pools: Mapped[list[int]] = mapped_column(ARRAY(BigInteger), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")
    winning_option: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class BetORM(Base):
    __tablename__ = "bets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    prediction_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("predictions.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    option: Mapped[str] = mapped_column(Text, nullable=False)
    myst_bet: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # NULL until settlement, then written exactly once
    myst_payout: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
