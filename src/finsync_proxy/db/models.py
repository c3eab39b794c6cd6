"""Database models for the FinSync proxy.

Only credential and portfolio state is persisted. Quotes and profit/loss
figures are fetched from the Friend API on demand and never stored.
Timestamps are timezone-aware UTC.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CredentialRecord(SQLModel, table=True):
    """Friend API login secret and latest session cookie for one local user."""

    user_id: str = Field(primary_key=True)
    email: str = Field(index=True)
    password_encrypted: str  # Fernet token, see credentials.cipher
    name: str | None = None
    session_cookie: str | None = None  # "name=value; name2=value2"
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class PortfolioHolding(SQLModel, table=True):
    """A position in a user's portfolio, replayed to the Friend API before P/L reads."""

    __table_args__ = (UniqueConstraint("user_id", "symbol"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    symbol: str
    name: str | None = None
    quantity: float = 0
    average_price: float = 0
    purchase_date: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class InvestorProfile(SQLModel, table=True):
    """Profile answers sent with the portfolio sync; unset fields use API defaults."""

    user_id: str = Field(primary_key=True)
    age: int | None = None
    risk_score: int | None = None
    investment_horizon: int | None = None
    financial_goal: int | None = None
    financial_condition: int | None = None
    annual_income: float | None = None
    total_net_worth: float | None = None
    dependents: int | None = None
    investment_knowledge: int | None = None
