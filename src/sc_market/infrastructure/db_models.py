"""SQLAlchemy ORM model for markets.

Maps to the table created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.sc_common.database import Base


class MarketORM(Base):
    __tablename__ = "markets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    mark_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    authority: Mapped[str] = mapped_column(String(128), nullable=False)
    last_price_update: Mapped[int] = mapped_column(BigInteger, nullable=False)
    open_interest_long: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    open_interest_short: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_fees_collected: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
