"""Portfolio and investor-profile persistence used to build the Friend API sync payload.

Public methods are coroutines; the SQLModel session work runs in a worker
thread so request handlers never block the event loop.
"""
import asyncio
import logging
import math
from datetime import datetime

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from finsync_proxy.db import (InvestorProfile, PortfolioHolding, as_utc,
                              session_scope)
from finsync_proxy.providers.core import HoldingNotFound, InsufficientQuantity

logger = logging.getLogger(__name__)


def _find_holding(session: Session, user_id: str, symbol: str) -> PortfolioHolding | None:
    return session.exec(
        select(PortfolioHolding).where(
            PortfolioHolding.user_id == user_id,
            PortfolioHolding.symbol == symbol,
        )
    ).first()


class SqlPortfolioRepository:
    """Holdings keyed by (user_id, symbol) and one investor profile per user.

    Symbols are stored upper-case.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def list_holdings(self, user_id: str) -> list[PortfolioHolding]:
        return await asyncio.to_thread(self._list_holdings_sync, user_id)

    async def upsert_holding(
        self,
        user_id: str,
        symbol: str,
        *,
        quantity: float,
        average_price: float,
        name: str | None = None,
        purchase_date: datetime | None = None,
    ) -> PortfolioHolding:
        """Create or replace the holding for ``symbol``."""
        return await asyncio.to_thread(
            self._upsert_holding_sync,
            user_id,
            symbol.upper(),
            quantity,
            average_price,
            name,
            as_utc(purchase_date) if purchase_date is not None else None,
        )

    async def buy_holding(
        self,
        user_id: str,
        symbol: str,
        *,
        quantity: float,
        price: float,
        name: str | None = None,
    ) -> PortfolioHolding:
        """Add ``quantity`` shares bought at ``price``.

        An existing holding's ``average_price`` becomes the quantity-weighted
        average of the old position and the new shares.
        """
        return await asyncio.to_thread(
            self._buy_holding_sync, user_id, symbol.upper(), quantity, price, name
        )

    async def sell_holding(
        self, user_id: str, symbol: str, *, quantity: float
    ) -> PortfolioHolding | None:
        """Remove ``quantity`` shares; returns None when the position is closed.

        Raises:
            HoldingNotFound: the user holds no ``symbol``.
            InsufficientQuantity: ``quantity`` exceeds the shares held.
        """
        return await asyncio.to_thread(
            self._sell_holding_sync, user_id, symbol.upper(), quantity
        )

    async def get_profile(self, user_id: str) -> InvestorProfile | None:
        return await asyncio.to_thread(self._get_profile_sync, user_id)

    async def save_profile(self, profile: InvestorProfile) -> InvestorProfile:
        return await asyncio.to_thread(self._save_profile_sync, profile)

    def _list_holdings_sync(self, user_id: str) -> list[PortfolioHolding]:
        with session_scope(self._engine) as session:
            statement = (
                select(PortfolioHolding)
                .where(PortfolioHolding.user_id == user_id)
                .order_by(PortfolioHolding.symbol)
            )
            return list(session.exec(statement).all())

    def _upsert_holding_sync(
        self,
        user_id: str,
        symbol: str,
        quantity: float,
        average_price: float,
        name: str | None,
        purchase_date: datetime | None,
    ) -> PortfolioHolding:
        with session_scope(self._engine) as session:
            holding = _find_holding(session, user_id, symbol)
            if holding is None:
                holding = PortfolioHolding(user_id=user_id, symbol=symbol)
            holding.quantity = quantity
            holding.average_price = average_price
            if name is not None:
                holding.name = name
            if purchase_date is not None:
                holding.purchase_date = purchase_date
            session.add(holding)
            session.flush()
            session.refresh(holding)
            return holding

    def _buy_holding_sync(
        self, user_id: str, symbol: str, quantity: float, price: float, name: str | None
    ) -> PortfolioHolding:
        with session_scope(self._engine) as session:
            holding = _find_holding(session, user_id, symbol)
            if holding is None:
                holding = PortfolioHolding(
                    user_id=user_id,
                    symbol=symbol,
                    name=name,
                    quantity=quantity,
                    average_price=price,
                )
            else:
                total = holding.quantity + quantity
                holding.average_price = (
                    holding.average_price * holding.quantity + price * quantity
                ) / total
                holding.quantity = total
                if name and not holding.name:
                    holding.name = name
            session.add(holding)
            session.flush()
            session.refresh(holding)
            logger.info("User %s bought %s %s at %s", user_id, quantity, symbol, price)
            return holding

    def _sell_holding_sync(
        self, user_id: str, symbol: str, quantity: float
    ) -> PortfolioHolding | None:
        with session_scope(self._engine) as session:
            holding = _find_holding(session, user_id, symbol)
            if holding is None:
                raise HoldingNotFound(f"No {symbol} holding")
            if quantity > holding.quantity and not math.isclose(quantity, holding.quantity):
                raise InsufficientQuantity(
                    f"Holding {holding.quantity:g} {symbol}, cannot sell {quantity:g}"
                )
            remaining = holding.quantity - quantity
            logger.info("User %s sold %s %s", user_id, quantity, symbol)
            if math.isclose(remaining, 0, abs_tol=1e-9):
                session.delete(holding)
                return None
            holding.quantity = remaining
            session.add(holding)
            session.flush()
            session.refresh(holding)
            return holding

    def _get_profile_sync(self, user_id: str) -> InvestorProfile | None:
        with session_scope(self._engine) as session:
            return session.get(InvestorProfile, user_id)

    def _save_profile_sync(self, profile: InvestorProfile) -> InvestorProfile:
        with session_scope(self._engine) as session:
            merged = session.merge(profile)
            session.flush()
            return merged
