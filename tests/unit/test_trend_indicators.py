"""Tests for trend indicators (SMA, EMA, crossover, PSAR, Supertrend, Ichimoku)."""
import pytest
from datetime import timedelta

from chartengine.indicators import create_indicator
from chartengine.indicators.trend import parabolic_sar, supertrend
from tests.fixtures.ohlc_data import make_bars, make_points, uptrend_closes


class TestMovingAverageIndicators:
    """SMA and EMA overlays."""

    def test_sma_matches_hand_computed_mean(self):
        closes = [10.0, 11.0, 13.0, 12.0, 15.0, 14.0, 16.0, 18.0, 17.0, 19.0,
                  21.0, 20.0, 22.0, 23.0, 25.0, 24.0]
        instance = create_indicator("sma", make_points(closes), {"period": 14})

        values = instance.get_series("SMA (14)").values

        assert len(values) == len(closes)
        assert values[:13] == (None,) * 13
        assert values[13] == pytest.approx(sum(closes[:14]) / 14)
        assert values[15] == pytest.approx(sum(closes[2:16]) / 14)

    def test_ema_seed_and_recurrence(self):
        closes = uptrend_closes(20, start=10.0, step=1.0)
        instance = create_indicator("ema", make_points(closes), {"period": 9})

        values = instance.get_series("EMA (9)").values
        seed = sum(closes[:9]) / 9
        k = 2 / 10

        assert values[:8] == (None,) * 8
        assert values[8] == pytest.approx(seed)
        assert values[9] == pytest.approx(k * closes[9] + (1 - k) * seed)

    def test_overlays_draw_on_main_pane(self, uptrend_points):
        for indicator_id in ("sma", "ema", "bollinger", "ichimoku", "supertrend"):
            instance = create_indicator(indicator_id, uptrend_points)
            assert all(s.pane == "main" for s in instance.series), indicator_id


class TestSmaCrossover:
    """Fast/slow SMA crossover markers."""

    def test_bullish_cross_marked_at_crossing_bar(self):
        closes = [10.0, 9.0, 8.0, 7.0, 6.0, 5.0, 6.0, 7.0, 8.0, 9.0]
        instance = create_indicator(
            "sma_crossover", make_points(closes), {"fast_period": 2, "slow_period": 4}
        )

        bullish = instance.get_series("Bullish Cross").values
        bearish = instance.get_series("Bearish Cross").values

        assert [i for i, v in enumerate(bullish) if v is not None] == [7]
        assert bullish[7] == pytest.approx(6.5)
        assert all(v is None for v in bearish)


class TestParabolicSAR:
    """Parabolic SAR on a crafted 10-bar fixture with one reversal."""

    # (low, high, close): eight rising bars, then a collapse at bar 8
    ROWS = [
        (9.0, 11.0, 10.0),
        (10.0, 12.0, 11.0),
        (11.0, 13.0, 12.0),
        (12.0, 14.0, 13.0),
        (13.0, 15.0, 14.0),
        (14.0, 16.0, 15.0),
        (15.0, 17.0, 16.0),
        (16.0, 18.0, 17.0),
        (8.0, 12.0, 9.0),
        (7.0, 9.0, 8.0),
    ]

    def _run(self):
        lows = [r[0] for r in self.ROWS]
        highs = [r[1] for r in self.ROWS]
        closes = [r[2] for r in self.ROWS]
        return parabolic_sar(highs, lows, closes, 0.02, 0.2, 0.02)

    def test_direction_flips_exactly_at_reversal_bar(self):
        result = self._run()

        assert result.is_long == [None] + [True] * 7 + [False, False]

    def test_flip_resets_sar_to_prior_extreme(self):
        result = self._run()

        # Highest high of the long run
        assert result.sar[8] == pytest.approx(18.0)
        # Clamped above the two previous highs
        assert result.sar[9] == pytest.approx(18.0)

    def test_sar_accelerates_and_is_clamped(self):
        result = self._run()

        assert result.sar[0] is None
        assert result.sar[1] == pytest.approx(9.0)
        # 9.06 would sit above the low two bars back
        assert result.sar[2] == pytest.approx(9.0)
        assert result.sar[3] == pytest.approx(9.16)
        assert result.sar[4] == pytest.approx(9.4504)
        for i in range(1, 8):
            assert result.sar[i] < self.ROWS[i][0]

    def test_indicator_splits_up_and_down_markers(self):
        instance = create_indicator("parabolic_sar", make_bars(self.ROWS))

        up = instance.get_series("SAR Up").values
        down = instance.get_series("SAR Down").values

        assert [i for i, v in enumerate(up) if v is not None] == list(range(1, 8))
        assert [i for i, v in enumerate(down) if v is not None] == [8, 9]

    def test_short_input(self):
        result = parabolic_sar([1.0], [0.5], [0.8], 0.02, 0.2, 0.02)

        assert result.sar == [None]
        assert result.is_long == [None]


class TestSupertrend:
    """Supertrend bar-by-bar with period 2 and multiplier 1."""

    ROWS = [
        (9.0, 11.0, 10.0),
        (10.0, 12.0, 11.0),
        (11.0, 13.0, 12.0),
        (10.0, 12.0, 10.5),
        (14.0, 16.0, 15.5),
        (15.0, 17.0, 16.0),
    ]

    def test_bands_and_trend(self):
        lows = [r[0] for r in self.ROWS]
        highs = [r[1] for r in self.ROWS]
        closes = [r[2] for r in self.ROWS]

        result = supertrend(highs, lows, closes, 2, 1.0)

        assert result.is_up == [None, False, False, False, True, True]
        assert result.line[0] is None
        assert result.line[1:] == pytest.approx([13.0, 13.0, 13.0, 11.25, 13.125])
        # Upper band resets once the previous close broke above it
        assert result.final_upper[5] == pytest.approx(18.875)
        assert result.final_lower[4] == pytest.approx(11.25)

    def test_bands_only_tighten_bar_by_bar(self):
        lows = [r[0] for r in self.ROWS]
        highs = [r[1] for r in self.ROWS]
        closes = [r[2] for r in self.ROWS]

        result = supertrend(highs, lows, closes, 2, 1.0)

        # Basic upper: 13, 14, 13, 18.75, 18.875 (ATR 2, 2, 2, 3.75, 2.875)
        # Bars 2 and 4: basic rose while price stayed below, so the band is held
        assert result.final_upper[1:] == pytest.approx([13.0, 13.0, 13.0, 13.0, 18.875])
        # Basic lower: 9, 10, 9, 11.25, 13.125; bar 3 holds at 10 when basic drops
        assert result.final_lower[1:] == pytest.approx([9.0, 10.0, 10.0, 11.25, 13.125])

    def test_upper_band_held_when_basic_rises(self):
        # Range 2 and a one-point climb keep the true range (and ATR) at 2
        rows = [(9.0, 11.0, 10.0), (10.0, 12.0, 11.0), (11.0, 13.0, 12.0), (12.0, 14.0, 13.0)]
        lows = [r[0] for r in rows]
        highs = [r[1] for r in rows]
        closes = [r[2] for r in rows]

        result = supertrend(highs, lows, closes, 2, 2.0)

        # Basic upper rises 15 -> 16 -> 17 but closes never break the held band
        assert result.final_upper[1:] == pytest.approx([15.0, 15.0, 15.0])
        assert result.is_up[1:] == [False, False, False]
        assert result.line[1:] == pytest.approx([15.0, 15.0, 15.0])

    def test_indicator_splits_by_direction(self):
        instance = create_indicator(
            "supertrend", make_bars(self.ROWS), {"period": 2, "multiplier": 1.0}
        )

        up = instance.get_series("Supertrend Up").values
        down = instance.get_series("Supertrend Down").values

        assert [i for i, v in enumerate(down) if v is not None] == [1, 2, 3]
        assert [i for i, v in enumerate(up) if v is not None] == [4, 5]


class TestIchimoku:
    """Ichimoku displacement and projection alignment."""

    PARAMS = {"tenkan_period": 2, "kijun_period": 3, "senkou_period": 4, "displacement": 2}

    def test_leading_spans_shift_forward(self):
        points = make_points(uptrend_closes(10, start=10.0, step=1.0))
        instance = create_indicator("ichimoku", points, self.PARAMS)

        tenkan = instance.get_series("Tenkan-sen").values
        kijun = instance.get_series("Kijun-sen").values
        span_a = instance.get_series("Senkou Span A").values

        for i in range(2, 10):
            t, k = tenkan[i - 2], kijun[i - 2]
            expected = (t + k) / 2 if t is not None and k is not None else None
            if expected is None:
                assert span_a[i] is None
            else:
                assert span_a[i] == pytest.approx(expected)
        assert span_a[:2] == (None, None)

    def test_projection_carries_last_displaced_values(self):
        points = make_points(uptrend_closes(10, start=10.0, step=1.0))
        instance = create_indicator("ichimoku", points, self.PARAMS)

        span_b = instance.get_series("Senkou Span B")
        high_values = [p.high for p in points]
        low_values = [p.low for p in points]
        raw_last = (max(high_values[6:10]) + min(low_values[6:10])) / 2

        assert span_b.projection is not None
        assert span_b.projection.times == (
            points[-1].time + timedelta(minutes=1),
            points[-1].time + timedelta(minutes=2),
        )
        assert span_b.projection.values[-1] == pytest.approx(raw_last)

    def test_chikou_lags_close(self):
        closes = uptrend_closes(10, start=10.0, step=1.0)
        instance = create_indicator("ichimoku", make_points(closes), self.PARAMS)

        chikou = instance.get_series("Chikou Span").values

        assert list(chikou[:8]) == pytest.approx(closes[2:])
        assert chikou[8:] == (None, None)
