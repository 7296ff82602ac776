"""
Unit tests for enum tables and strict enum decoding
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mt5bind.enums import (
    CopyTicksFlags,
    DealType,
    OrderType,
    ResultCode,
    ReturnCode,
    SymbolCalcMode,
    Timeframe,
    decode_enum,
)
from mt5bind.errors import UnmappedEnumError


class TestTimeframe:
    """Bit-packed timeframe codes."""

    def test_hour_timeframes_carry_hour_flag(self):
        """H1 is 1 | 0x4000 = 16385 exactly."""
        assert Timeframe.H1 == 16385
        assert Timeframe.H4 == 0x4000 | 4
        assert Timeframe.D1 == 0x4000 | 24

    def test_week_and_month_flags(self):
        assert Timeframe.W1 == 0x8000 | 1
        assert Timeframe.MN1 == 0xC000 | 1

    def test_minute_timeframes_unflagged(self):
        assert Timeframe.M1 == 1
        assert Timeframe.M30 == 30

    def test_parse_by_name(self):
        """Names resolve case-insensitively."""
        assert Timeframe.parse("H1") is Timeframe.H1
        assert Timeframe.parse("mn1") is Timeframe.MN1

    def test_parse_by_code(self):
        assert Timeframe.parse(16385) is Timeframe.H1
        assert Timeframe.parse(Timeframe.M15) is Timeframe.M15

    def test_parse_unknown(self):
        with pytest.raises(UnmappedEnumError):
            Timeframe.parse("H5")
        with pytest.raises(UnmappedEnumError):
            Timeframe.parse(7)

    def test_minutes(self):
        assert Timeframe.M5.minutes == 5
        assert Timeframe.H4.minutes == 240
        assert Timeframe.D1.minutes == 1440
        assert Timeframe.W1.minutes == 10080

    @given(st.sampled_from(list(Timeframe)))
    def test_parse_roundtrips_every_member(self, timeframe):
        """Every member resolves from its name and from its code."""
        assert Timeframe.parse(timeframe.name) is timeframe
        assert Timeframe.parse(int(timeframe)) is timeframe


class TestDecodeEnum:
    """Closed tables reject unknown codes."""

    def test_known_code(self):
        assert decode_enum(OrderType, 2) is OrderType.BUY_LIMIT

    def test_member_passes_through(self):
        assert decode_enum(DealType, DealType.BALANCE) is DealType.BALANCE

    def test_unknown_code_raises(self):
        with pytest.raises(UnmappedEnumError) as exc_info:
            decode_enum(OrderType, 99)
        assert "OrderType" in str(exc_info.value)
        assert exc_info.value.value == 99

    def test_unmapped_is_value_error(self):
        with pytest.raises(ValueError):
            decode_enum(OrderType, -5)

    def test_bool_rejected(self):
        """True is an int in Python but never an enum code."""
        with pytest.raises(UnmappedEnumError):
            decode_enum(OrderType, True)

    def test_non_integral_rejected(self):
        with pytest.raises(UnmappedEnumError):
            decode_enum(OrderType, 1.5)
        with pytest.raises(UnmappedEnumError):
            decode_enum(OrderType, "BUY")

    def test_integral_float_accepted(self):
        assert decode_enum(OrderType, 1.0) is OrderType.SELL

    def test_calc_mode_gaps(self):
        """Exchange modes start at 32; the gap is unmapped."""
        assert decode_enum(SymbolCalcMode, 32) is SymbolCalcMode.EXCH_STOCKS
        with pytest.raises(UnmappedEnumError):
            decode_enum(SymbolCalcMode, 6)

    @given(st.integers(min_value=9, max_value=10_000))
    def test_order_type_out_of_range(self, code):
        with pytest.raises(UnmappedEnumError):
            decode_enum(OrderType, code)


class TestResultCodes:
    def test_error_channel_codes(self):
        assert ResultCode.OK == 1
        assert ResultCode.AUTH_FAILED == -6
        assert ResultCode.INTERNAL_FAIL_TIMEOUT == -10005

    def test_lookup_known(self):
        assert ResultCode.lookup(-2) is ResultCode.INVALID_PARAMS

    def test_lookup_unknown_keeps_raw_int(self):
        """Unknown channel codes survive unchanged."""
        assert ResultCode.lookup(-424242) == -424242
        assert not isinstance(ResultCode.lookup(-424242), ResultCode)

    def test_trade_server_codes(self):
        assert ReturnCode.DONE == 10009
        assert ReturnCode.REQUOTE == 10004

    def test_copy_ticks_flags(self):
        assert CopyTicksFlags.ALL == -1
        assert CopyTicksFlags.INFO == 1
        assert CopyTicksFlags.TRADE == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
