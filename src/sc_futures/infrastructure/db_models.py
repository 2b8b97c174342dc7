"""SQLAlchemy ORM model for positions.

Maps to the table created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.sc_common.database import Base


class PositionORM(Base):
    __tablename__ = "positions"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False)
    market_id: Mapped[str] = mapped_column(String(64), nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)
    direction: Mapped[str] = mapped_column(String(5), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    deposit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fee_paid: Mapped[int] = mapped_column(BigInteger, nullable=False)
    collateral: Mapped[int] = mapped_column(BigInteger, nullable=False)
    entry_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    opened_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    exit_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    realized_pnl: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    payout: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    closed_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    closed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
