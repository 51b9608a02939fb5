import unittest

import numpy as np
import pandas as pd

from ltc_report.decomposition import SeasonalDecomposer
from ltc_report.errors import InsufficientDataError, InsufficientPeriodsError


def seasonal_close(n, period, seed=0):
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    return 50.0 + 0.01 * t + 2.0 * np.sin(2 * np.pi * t / period) + rng.normal(0, 0.1, n)


class SeasonalDecomposerTests(unittest.TestCase):
    def test_components_reconstruct_observed(self):
        period = 24
        close = seasonal_close(24 * 6, period)
        result = SeasonalDecomposer().decompose(pd.DataFrame({"close": close}), period=period)

        frame = result.to_frame()
        self.assertEqual(len(frame), len(close))
        defined = frame.dropna()
        rebuilt = defined["trend"] + defined["seasonal"] + defined["residual"]
        np.testing.assert_allclose(rebuilt.values, defined["observed"].values, atol=1e-9)
        np.testing.assert_allclose(result.observed.values, close)

    def test_trend_undefined_on_half_period_edges(self):
        period = 24
        result = SeasonalDecomposer().decompose(pd.Series(seasonal_close(24 * 4, period)), period=period)
        half = period // 2
        self.assertTrue(result.trend.iloc[:half].isna().all())
        self.assertTrue(result.trend.iloc[-half:].isna().all())
        self.assertTrue(result.trend.iloc[half:-half].notna().all())
        self.assertTrue(result.residual.iloc[:half].isna().all())
        self.assertTrue(result.seasonal.notna().all())

    def test_daily_minute_period_from_config(self):
        close = seasonal_close(2 * 1440, 1440)
        result = SeasonalDecomposer({"decomposition": {"period": 1440}}).decompose(pd.DataFrame({"close": close}))
        self.assertEqual(result.period, 1440)
        self.assertEqual(int(result.trend.isna().sum()), 1440)
        self.assertGreater(result.seasonal_strength(), 0.5)

    def test_fewer_than_two_periods_raises(self):
        decomposer = SeasonalDecomposer()
        with self.assertRaises(InsufficientPeriodsError):
            decomposer.decompose(pd.Series(np.ones(2 * 1440 - 1)))
        with self.assertRaises(InsufficientDataError):
            decomposer.decompose(pd.Series(np.ones(47)), period=24)


if __name__ == "__main__":
    unittest.main()
