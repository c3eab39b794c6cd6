import math

import pytest

from finsync_proxy.services.normalizer import (EndpointKind, FieldRule,
                                               lookup, normalize,
                                               normalize_profit_loss,
                                               normalize_quote,
                                               profit_percentage, to_number)


def test_quote_prefers_first_present_key():
    raw = {"companyName": "Apple Inc.", "name": "AAPL", "currentPrice": 190.5, "price": 1}

    quote = normalize_quote(raw, "aapl")

    assert quote.symbol == "AAPL"
    assert quote.name == "Apple Inc."
    assert quote.price == 190.5
    assert quote.raw_data is raw


def test_quote_falls_back_to_secondary_keys():
    raw = {"name": "Microsoft", "price": "410.1", "change": -2, "percentageChange": "-0.5"}

    quote = normalize_quote(raw, "MSFT")

    assert (quote.name, quote.price, quote.change, quote.change_percent) == (
        "Microsoft", 410.1, -2.0, -0.5,
    )


def test_quote_defaults_when_fields_missing_or_garbage():
    quote = normalize_quote({"currentPrice": "n/a", "changePercent": None}, "TSLA")

    assert quote.name == "TSLA"
    assert quote.price == 0.0
    assert quote.change == 0.0
    assert quote.change_percent == 0.0


def test_zero_counts_as_present():
    quote = normalize_quote({"currentPrice": 0, "price": 99}, "X")

    assert quote.price == 0.0


def test_empty_string_is_skipped():
    quote = normalize_quote({"companyName": "", "name": "Fallback Co"}, "X")

    assert quote.name == "Fallback Co"


def test_quote_from_non_mapping_payload():
    quote = normalize_quote("<html>oops</html>", "X")

    assert quote.price == 0.0
    assert quote.raw_data == "<html>oops</html>"


def test_camel_case_serialization():
    dumped = normalize_quote({"changePercent": 1.5}, "X").model_dump(by_alias=True)

    assert dumped["changePercent"] == 1.5
    assert "rawData" in dumped


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3.0), ("2.5", 2.5), (None, 0.0), ("abc", 0.0), (math.nan, 0.0), (math.inf, 0.0), ({}, 0.0)],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_lookup_walks_dotted_paths():
    payload = {"data": {"data": [1, 2]}}

    assert lookup(payload, "data.data") == [1, 2]
    assert FieldRule("x", ("data.missing",)).number(payload) == 0.0


def test_profit_loss_from_item_array():
    raw = {"data": [{"symbol": "AAPL", "profit": 50}, {"symbol": "MSFT", "profit": -20}]}

    result = normalize_profit_loss(raw)

    assert result.total_profit == 30
    assert result.percentage == pytest.approx(30 / 50 * 100)
    assert result.data == raw["data"]
    assert result.message == "Profit/Loss data retrieved"


def test_profit_loss_from_nested_array():
    raw = {"data": {"data": [{"profit": 0.5}]}, "message": "ok"}

    result = normalize_profit_loss(raw)

    assert result.total_profit == 0.5
    # |0.5| is below the floor of 1
    assert result.percentage == pytest.approx(50.0)
    assert result.message == "ok"


def test_profit_loss_zero_profits_use_floor():
    result = normalize_profit_loss({"data": [{"profit": 0}, {"profit": 0}]})

    assert result.total_profit == 0
    assert result.percentage == 0


def test_profit_loss_from_flat_summary():
    result = normalize_profit_loss({"totalPnL": "120.5", "pnlPercentage": 4.2})

    assert result.total_profit == 120.5
    assert result.percentage == 4.2
    assert result.data == []


def test_profit_loss_empty_array():
    result = normalize_profit_loss({"data": []})

    assert (result.total_profit, result.percentage) == (0, 0)


def test_profit_percentage_of_empty_portfolio_is_zero():
    assert profit_percentage(0, []) == 0.0


def test_normalize_dispatch():
    assert normalize(EndpointKind.PASSTHROUGH, {"a": 1}) == {"a": 1}
    assert normalize(EndpointKind.QUOTE, {}, symbol="x").symbol == "X"
    assert normalize(EndpointKind.PROFIT_LOSS, {}).total_profit == 0
    with pytest.raises(ValueError):
        normalize(EndpointKind.QUOTE, {})
