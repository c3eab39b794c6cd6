"""Pydantic schemas for API and runtime use. Not persisted to DB.

Responses serialize with camelCase aliases (``changePercent``, ``rawData``)
because that is the shape the dashboard UI consumes.
"""
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that accepts snake_case or camelCase and emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StockQuote(CamelModel):
    """Normalized quote for one symbol."""

    symbol: str
    name: str
    price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw_data: Any = None


class ProfitLoss(CamelModel):
    """Normalized profit/loss summary for a user's portfolio."""

    total_profit: float = 0.0
    percentage: float = 0.0
    data: list[Any] = Field(default_factory=list)
    message: str = "Profit/Loss data retrieved"
    raw_data: Any = None


class LoginRequest(BaseModel):
    """Friend API login body forwarded by ``POST /user/login``."""

    email: str
    password: str


class HoldingIn(BaseModel):
    """Body for ``PUT /portfolio/holdings/{symbol}``."""

    name: str | None = None
    quantity: float = Field(ge=0)
    average_price: float = Field(ge=0)
    purchase_date: datetime | None = None


class TradeIn(BaseModel):
    """Body for ``POST /portfolio/buy`` and ``POST /portfolio/sell``."""

    symbol: str = Field(min_length=1)
    name: str | None = None
    quantity: float = Field(gt=0)
    price: float = Field(gt=0)


class HoldingOut(BaseModel):
    symbol: str
    name: str | None = None
    quantity: float
    average_price: float
    purchase_date: datetime


class ProfileIn(BaseModel):
    """Body for ``PUT /portfolio/profile``; uses the Friend API's field names."""

    Age: int | None = None
    RiskScore: int | None = None
    InvestmentHorizon: int | None = None
    FinancialGoal: int | None = None
    FinancialCondition: int | None = None
    AnnualIncome: float | None = None
    TotalNetWorth: float | None = None
    Dependents: int | None = None
    InvestmentKnowledge: int | None = None


__all__ = [
    "CamelModel",
    "HoldingIn",
    "HoldingOut",
    "LoginRequest",
    "ProfileIn",
    "ProfitLoss",
    "StockQuote",
    "TradeIn",
]
