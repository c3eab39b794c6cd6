"""Payload models for the Friend API (request bodies sent upstream)."""
from datetime import datetime

from pydantic import BaseModel, Field


class PortfolioSyncItem(BaseModel):
    """One holding as the Friend API expects it in ``portfolio``."""

    symbol: str
    name: str
    quantity: float
    average_price: float
    purchase_date: datetime


class UpdateUserPayload(BaseModel):
    """Body for ``POST /api/input/updateUser``.

    The Friend API needs a full profile on every update; fields the local
    profile lacks are sent with these defaults.
    """

    name: str
    email: str
    password: str
    portfolio: list[PortfolioSyncItem] = Field(default_factory=list)
    Age: int = 32
    RiskScore: int = 7
    InvestmentHorizon: int = 20
    FinancialGoal: int = 2
    FinancialCondition: int = 2
    AnnualIncome: float = 2000000
    TotalNetWorth: float = 10000000
    Dependents: int = 3
    InvestmentKnowledge: int = 2
