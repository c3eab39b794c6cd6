"""Reshape heterogeneous Friend API JSON into stable response models.

The Friend API reports the same value under different keys depending on
endpoint and version. Each output field has a ``FieldRule`` listing the keys
to try, in order; the first key holding a non-empty value wins. Numbers that
cannot be parsed fall back to the rule's default instead of failing the
request. The untouched payload is always kept in ``rawData``.
"""
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from finsync_proxy.schemas import ProfitLoss, StockQuote

_MISSING = object()


class EndpointKind(str, Enum):
    """How a proxied response is normalized."""

    QUOTE = "quote"
    PROFIT_LOSS = "profit_loss"
    PASSTHROUGH = "passthrough"


def lookup(payload: Any, path: str) -> Any:
    """Walk a dotted ``path`` through nested mappings; ``_MISSING`` if any step is absent."""
    current = payload
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a finite float, or return ``default``."""
    if value is None or isinstance(value, (Mapping, list)):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass(frozen=True)
class FieldRule:
    """Ordered extraction rule for one output field."""

    name: str
    paths: tuple[str, ...]
    default: float = 0.0

    def find(self, payload: Any) -> Any:
        """Return the first present, non-empty value, or ``_MISSING``."""
        for path in self.paths:
            value = lookup(payload, path)
            if value is not _MISSING and value is not None and value != "":
                return value
        return _MISSING

    def number(self, payload: Any) -> float:
        value = self.find(payload)
        return self.default if value is _MISSING else to_number(value, self.default)

    def text(self, payload: Any, fallback: str) -> str:
        value = self.find(payload)
        return fallback if value is _MISSING else str(value)

    def sequence(self, payload: Any) -> list[Any] | None:
        """Return the first value along ``paths`` that is a list."""
        for path in self.paths:
            value = lookup(payload, path)
            if isinstance(value, list):
                return value
        return None


QUOTE_NAME = FieldRule("name", ("companyName", "name"))
QUOTE_PRICE = FieldRule("price", ("currentPrice", "price"))
QUOTE_CHANGE = FieldRule("change", ("change",))
QUOTE_CHANGE_PERCENT = FieldRule("changePercent", ("changePercent", "percentageChange"))

PL_ITEMS = FieldRule("data", ("data", "data.data"))
PL_ITEM_PROFIT = FieldRule("profit", ("profit",))
PL_TOTAL_PROFIT = FieldRule("totalProfit", ("totalProfit", "totalPnL", "pnl"))
PL_PERCENTAGE = FieldRule("percentage", ("percentage", "percentagePnL", "pnlPercentage"))
PL_MESSAGE = FieldRule("message", ("message",))

DEFAULT_PL_MESSAGE = "Profit/Loss data retrieved"


def normalize_quote(raw: Any, symbol: str) -> StockQuote:
    """Normalize a ``/api/output/stocks/{symbol}`` payload."""
    return StockQuote(
        symbol=symbol.upper(),
        name=QUOTE_NAME.text(raw, fallback=symbol),
        price=QUOTE_PRICE.number(raw),
        change=QUOTE_CHANGE.number(raw),
        change_percent=QUOTE_CHANGE_PERCENT.number(raw),
        raw_data=raw,
    )


def profit_percentage(total_profit: float, profits: Sequence[float]) -> float:
    """Crude return figure the dashboard expects.

    ``total / max(|profit_i| (or 1 when zero), 1) * 100``; this is not a
    portfolio-weighted return, and it is 0 for an empty portfolio.
    """
    if not profits:
        return 0.0
    largest = max([abs(p) or 1.0 for p in profits] + [1.0])
    return total_profit / largest * 100


def normalize_profit_loss(raw: Any) -> ProfitLoss:
    """Normalize a ``/api/output/calculateProfitOrLoss`` payload.

    A per-symbol array (under ``data`` or ``data.data``) is preferred and
    totals are computed from it; otherwise flat summary keys are read.
    """
    items = PL_ITEMS.sequence(raw)
    if items is not None:
        profits = [PL_ITEM_PROFIT.number(item) for item in items]
        total = sum(profits)
        percentage = profit_percentage(total, profits)
    else:
        items = []
        total = PL_TOTAL_PROFIT.number(raw)
        percentage = PL_PERCENTAGE.number(raw)
    return ProfitLoss(
        total_profit=total,
        percentage=percentage,
        data=items,
        message=PL_MESSAGE.text(raw, fallback=DEFAULT_PL_MESSAGE),
        raw_data=raw,
    )


def normalize(kind: EndpointKind, raw: Any, *, symbol: str | None = None) -> Any:
    """Dispatch ``raw`` to the normalizer for ``kind``."""
    if kind is EndpointKind.QUOTE:
        if symbol is None:
            raise ValueError("symbol is required to normalize a quote")
        return normalize_quote(raw, symbol)
    if kind is EndpointKind.PROFIT_LOSS:
        return normalize_profit_loss(raw)
    return raw
