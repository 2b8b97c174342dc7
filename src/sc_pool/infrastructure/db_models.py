"""SQLAlchemy ORM models for sc_pool.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.sc_common.database import Base


class RoundORM(Base):
    __tablename__ = "rounds"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    locked_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    up_pool_usd: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    down_pool_usd: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_fees_usd: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    outcome: Mapped[str] = mapped_column(String(10), nullable=False, default="PENDING")
    final_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    resolved_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    fees_collected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class RoundPoolORM(Base):
    __tablename__ = "round_pools"

    round_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    currency: Mapped[str] = mapped_column(String(16), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # config order, base first
    up_pool: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    down_pool: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    up_fees: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    down_fees: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    paid_out: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class UserBetORM(Base):
    __tablename__ = "user_bets"

    round_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), primary_key=True)
    side_up: Mapped[bool] = mapped_column(Boolean, nullable=False)
    currency: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gross_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    fee_paid: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    usd_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class BetClaimORM(Base):
    __tablename__ = "bet_claims"

    round_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), primary_key=True)
    currency: Mapped[str] = mapped_column(String(16), primary_key=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
