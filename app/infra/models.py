from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base

# ---------- users & sessions ----------


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # uuid4 string
    email = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    holdings = relationship("Holding", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    __tablename__ = "user_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="sessions")


# ---------- portfolio ----------


class Holding(Base):
    __tablename__ = "holdings"
    __table_args__ = (UniqueConstraint("user_id", "symbol", name="uq_holdings_user_symbol"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(32), nullable=False)

    shares = Column(Float, nullable=False)
    average_cost = Column(Float, nullable=False, default=0.0)

    # quote snapshot taken when the holding was last written
    name = Column(Text, nullable=False)
    current_price = Column(Float, nullable=False, default=0.0)
    dividend_yield = Column(Float, nullable=False, default=0.0)  # percent
    annual_dividend = Column(Float, nullable=False, default=0.0)
    payout_ratio = Column(Float, nullable=False, default=0.0)
    dividend_growth_rate = Column(Float, nullable=False, default=0.0)
    sector = Column(Text, nullable=False, default="Other")
    market_cap = Column(Text, nullable=False, default="N/A")
    pe_ratio = Column(Float, nullable=False, default=0.0)
    fifty_two_week_high = Column(Float, nullable=False, default=0.0)
    fifty_two_week_low = Column(Float, nullable=False, default=0.0)

    added_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="holdings")

    @property
    def total_value(self) -> float:
        return float(self.shares or 0.0) * float(self.current_price or 0.0)

    @property
    def total_dividend(self) -> float:
        return float(self.shares or 0.0) * float(self.annual_dividend or 0.0)
