"""Finance service: the operations behind the HTTP routes.

Wires the token codec, credential store, session refresher and proxy
executor together for login, quotes, profit/loss and predictions.
"""
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from finsync_proxy.auth import TokenCodec
from finsync_proxy.credentials import CredentialStoreABC
from finsync_proxy.db import InvestorProfile, PortfolioHolding, as_utc
from finsync_proxy.providers.core import (ProxyError, RetryExhausted,
                                          UpstreamAuthFailure,
                                          UpstreamCallFailure,
                                          UpstreamTimeout, retry_with_backoff)
from finsync_proxy.providers.friend_api import (NEW_USER_PATH, PREDICT_PATH,
                                                PROFIT_LOSS_PATH,
                                                UPDATE_USER_PATH,
                                                FriendApiClient,
                                                PortfolioSyncItem,
                                                UpdateUserPayload, stock_path)
from finsync_proxy.schemas import ProfitLoss, StockQuote
from finsync_proxy.services.normalizer import EndpointKind, FieldRule
from finsync_proxy.services.portfolio import SqlPortfolioRepository
from finsync_proxy.services.proxy_executor import (ProxiedRequest,
                                                   ProxyRequestExecutor)
from finsync_proxy.services.session_refresher import SessionRefresher

logger = logging.getLogger(__name__)

# Friend API profile field -> InvestorProfile column
PROFILE_FIELDS: dict[str, str] = {
    "Age": "age",
    "RiskScore": "risk_score",
    "InvestmentHorizon": "investment_horizon",
    "FinancialGoal": "financial_goal",
    "FinancialCondition": "financial_condition",
    "AnnualIncome": "annual_income",
    "TotalNetWorth": "total_net_worth",
    "Dependents": "dependents",
    "InvestmentKnowledge": "investment_knowledge",
}

LOGIN_USER_ID = FieldRule("userId", ("foundUser._id", "user._id", "_id", "userId"))
LOGIN_USER_NAME = FieldRule("name", ("foundUser.name", "user.name", "name"))
ERROR_MESSAGE = FieldRule("message", ("message", "error"))


def _is_transient(exc: Exception) -> bool:
    """Timeouts, 429 and 5xx are worth retrying; other 4xx are not."""
    if isinstance(exc, UpstreamTimeout):
        return True
    if isinstance(exc, UpstreamCallFailure):
        return exc.status_code >= 500 or exc.status_code == 429
    return False


class FinanceService:
    """Operations exposed by the HTTP routers."""

    def __init__(
        self,
        client: FriendApiClient,
        store: CredentialStoreABC,
        refresher: SessionRefresher,
        executor: ProxyRequestExecutor,
        portfolio: SqlPortfolioRepository,
        token_codec: TokenCodec,
        *,
        predict_attempts: int = 3,
        predict_delay: float = 2.0,
    ) -> None:
        self._client = client
        self._store = store
        self._refresher = refresher
        self._executor = executor
        self._portfolio = portfolio
        self._codec = token_codec
        self._predict_attempts = predict_attempts
        self._predict_delay = predict_delay

    # ---- Accounts ----
    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in to the Friend API, remember the credential and mint an identity token.

        Raises:
            UpstreamCallFailure: the Friend API rejected the login (status passed through).
        """
        try:
            outcome = await self._refresher.login(email, password)
        except UpstreamAuthFailure as exc:
            raise UpstreamCallFailure(
                exc.upstream_status or 401, exc.details or "", error="Failed to login"
            ) from exc

        user_id = LOGIN_USER_ID.text(outcome.body, fallback=email)
        name = LOGIN_USER_NAME.find(outcome.body)
        await self._store.save_secret(
            user_id, email, password, name=name if isinstance(name, str) else None
        )
        if outcome.set_cookie_headers:
            await self._store.upsert_cookie(user_id, outcome.set_cookie_headers)
        logger.info("User %s logged in to Friend API", user_id)
        return {**outcome.body, "token": self._codec.issue(user_id)}

    async def register(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Create the user on the Friend API; an existing account counts as success."""
        response = await self._client.request(
            "POST", NEW_USER_PATH, json=dict(body), headers={"Content-Type": "application/json"}
        )
        if response.is_success:
            try:
                return response.json()
            except ValueError:
                return {"success": True}
        try:
            error_body = response.json()
        except ValueError:
            error_body = {}
        message = ERROR_MESSAGE.text(error_body, fallback="")
        if "already exists" in message:
            logger.info("Friend API user %s already exists", body.get("email"))
            return {"success": True, "message": "User already exists"}
        raise UpstreamCallFailure(
            response.status_code, response.text, error="Failed to create user"
        )

    # ---- Quotes ----
    async def get_quote(self, user_id: str | None, symbol: str) -> StockQuote:
        """Quote for one symbol. Auth is optional; see ProxyRequestExecutor.open_session."""
        return await self._executor.execute(
            user_id, self._quote_request(symbol), EndpointKind.QUOTE, symbol=symbol
        )

    async def get_quotes(self, user_id: str | None, symbols: list[str]) -> list[StockQuote]:
        """Quotes for several symbols; symbols that fail upstream are omitted."""
        return await self._executor.execute_many(
            user_id,
            [self._quote_request(s) for s in symbols],
            EndpointKind.QUOTE,
            symbols=symbols,
        )

    @staticmethod
    def _quote_request(symbol: str) -> ProxiedRequest:
        return ProxiedRequest(
            stock_path(symbol), requires_auth=False, failure_message="Failed to fetch quote"
        )

    # ---- Profit / loss ----
    async def get_profit_loss(self, user_id: str) -> ProfitLoss:
        """Sync the portfolio (best effort), then read profit/loss."""
        payload = await self.build_sync_payload(user_id)
        prelude = []
        if payload is not None:
            prelude.append(
                ProxiedRequest(
                    UPDATE_USER_PATH,
                    method="POST",
                    body=payload.model_dump(mode="json"),
                    failure_message="Failed to sync portfolio",
                )
            )
        return await self._executor.execute(
            user_id,
            ProxiedRequest(PROFIT_LOSS_PATH, failure_message="Failed to fetch profit/loss"),
            EndpointKind.PROFIT_LOSS,
            prelude=prelude,
        )

    async def build_sync_payload(self, user_id: str) -> UpdateUserPayload | None:
        """Denormalized user + portfolio body for ``updateUser``; None without a credential."""
        secret = await self._store.get_secret(user_id)
        if secret is None:
            return None
        record = await self._store.get(user_id)
        name = (record.name if record else None) or secret.email.split("@", 1)[0]
        portfolio = [
            PortfolioSyncItem(
                symbol=h.symbol,
                name=h.name or h.symbol,
                quantity=h.quantity,
                average_price=h.average_price,
                purchase_date=as_utc(h.purchase_date),
            )
            for h in await self._portfolio.list_holdings(user_id)
        ]
        overrides: dict[str, Any] = {}
        profile = await self._portfolio.get_profile(user_id)
        if profile is not None:
            for api_field, column in PROFILE_FIELDS.items():
                value = getattr(profile, column)
                if value is not None:
                    overrides[api_field] = value
        return UpdateUserPayload(
            name=name,
            email=secret.email,
            password=secret.password,
            portfolio=portfolio,
            **overrides,
        )

    # ---- Predictions ----
    async def predict(self, user_id: str | None, params: Mapping[str, str]) -> Any:
        """Friend API allocation prediction; transient failures are retried with backoff."""
        request = ProxiedRequest(
            PREDICT_PATH,
            params=dict(params),
            requires_auth=False,
            failure_message="Failed to fetch predict data",
        )
        try:
            return await retry_with_backoff(
                lambda: self._executor.execute(user_id, request, EndpointKind.PASSTHROUGH),
                attempts=self._predict_attempts,
                delay=self._predict_delay,
                backoff=2.0,
                retry_on=_is_transient,
                label="Predict",
            )
        except RetryExhausted as exc:
            if isinstance(exc.last_error, ProxyError):
                raise exc.last_error from exc
            raise

    # ---- Portfolio ----
    async def list_holdings(self, user_id: str) -> list[PortfolioHolding]:
        return await self._portfolio.list_holdings(user_id)

    async def save_holding(
        self,
        user_id: str,
        symbol: str,
        *,
        quantity: float,
        average_price: float,
        name: str | None = None,
        purchase_date: datetime | None = None,
    ) -> PortfolioHolding:
        return await self._portfolio.upsert_holding(
            user_id,
            symbol,
            quantity=quantity,
            average_price=average_price,
            name=name,
            purchase_date=purchase_date,
        )

    async def buy_holding(
        self, user_id: str, symbol: str, *, quantity: float, price: float, name: str | None = None
    ) -> PortfolioHolding:
        return await self._portfolio.buy_holding(
            user_id, symbol, quantity=quantity, price=price, name=name
        )

    async def sell_holding(
        self, user_id: str, symbol: str, *, quantity: float
    ) -> PortfolioHolding | None:
        """Sell shares; None means the holding was closed and removed.

        Raises:
            HoldingNotFound: no holding for ``symbol``.
            InsufficientQuantity: selling more than is held.
        """
        return await self._portfolio.sell_holding(user_id, symbol, quantity=quantity)

    async def save_profile(self, user_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Store profile answers given under Friend API names; unknown names are ignored."""
        profile = await self._portfolio.get_profile(user_id) or InvestorProfile(user_id=user_id)
        for api_field, value in fields.items():
            column = PROFILE_FIELDS.get(api_field)
            if column is not None and value is not None:
                setattr(profile, column, value)
        saved = await self._portfolio.save_profile(profile)
        return {api: getattr(saved, col) for api, col in PROFILE_FIELDS.items()}
