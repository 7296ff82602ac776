"""
Unit tests for the trade request builder
"""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mt5bind.enums import OrderType, OrderTypeFilling, OrderTypeTime, TradeActionRequest
from mt5bind.errors import UnmappedEnumError
from mt5bind.trade import FIELDS, TradeRequestBuilder


def market_buy():
    return (
        TradeRequestBuilder()
        .action(TradeActionRequest.DEAL)
        .symbol("EURUSD")
        .volume(0.1)
        .price(1.1)
        .type(OrderType.BUY)
    )


class TestTradeRequestBuilder:
    """Only the fields that were set are forwarded."""

    def test_unset_fields_absent(self):
        """No sl/tp keys unless set; absent differs from 0.0."""
        request = market_buy().to_request()
        assert "sl" not in request
        assert "tp" not in request
        assert request == {
            "action": 1,
            "symbol": "EURUSD",
            "volume": 0.1,
            "price": 1.1,
            "type": 0,
        }

    def test_zero_is_forwarded(self):
        request = market_buy().sl(0.0).to_request()
        assert request["sl"] == 0.0

    def test_enums_forwarded_as_ints(self):
        request = (
            market_buy()
            .type_filling(OrderTypeFilling.IOC)
            .type_time(OrderTypeTime.GTC)
            .to_request()
        )
        assert type(request["action"]) is int
        assert type(request["type_filling"]) is int
        assert request["type_filling"] == 1

    def test_raw_codes_validated(self):
        assert market_buy().type(1).to_request()["type"] == 1
        with pytest.raises(UnmappedEnumError):
            TradeRequestBuilder().action(2)

    def test_order_type_alias(self):
        assert TradeRequestBuilder().order_type(OrderType.SELL).to_request() == {"type": 1}

    def test_expiration_datetime(self):
        when = datetime(2030, 1, 1, 12, 0)
        request = TradeRequestBuilder().expiration(when).to_request()
        assert request["expiration"] == int(when.timestamp())

    def test_expiration_aware_datetime_keeps_wall_clock(self):
        aware = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        request = TradeRequestBuilder().expiration(aware).to_request()
        assert request["expiration"] == int(datetime(2030, 1, 1, 12, 0).timestamp())

    def test_field_order(self):
        request = (
            TradeRequestBuilder()
            .comment("x")
            .magic(7)
            .action(TradeActionRequest.PENDING)
            .to_request()
        )
        assert list(request) == ["action", "magic", "comment"]

    def test_keyword_construction(self):
        built = TradeRequestBuilder(action=1, symbol="EURUSD", volume=0.1, price=1.1, type=0)
        assert built == market_buy()

    def test_unknown_keyword(self):
        with pytest.raises(TypeError):
            TradeRequestBuilder(stop_loss=1.0)
        with pytest.raises(TypeError):
            TradeRequestBuilder(to_request=1)

    def test_copy_is_independent(self):
        original = market_buy()
        clone = original.copy().sl(1.09)
        assert not original.is_set("sl")
        assert clone.is_set("sl")

    def test_repr(self):
        assert "symbol='EURUSD'" in repr(market_buy())

    @given(st.sets(st.sampled_from(["magic", "sl", "tp", "stoplimit", "deviation", "comment"])))
    def test_only_set_fields(self, names):
        builder = market_buy()
        for name in names:
            getattr(builder, name)("note" if name == "comment" else 1)
        request = builder.to_request()
        assert set(request) == {"action", "symbol", "volume", "price", "type"} | names
        assert set(request) <= set(FIELDS)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
