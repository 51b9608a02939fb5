import unittest
from datetime import date

import numpy as np
import pandas as pd

from ltc_report.errors import InvalidGranularity, ValidationError
from ltc_report.resampling import Granularity, PeriodResampler, filter_date_range


def make_series(closes, start="2021-01-03 00:00", freq="min", volumes=None):
    closes = np.asarray(closes, dtype=float)
    n = len(closes)
    day = pd.date_range(start, periods=n, freq=freq)
    return pd.DataFrame(
        {
            "timestamp": day.tz_localize("UTC"),
            "trading_day": day,
            "open": closes - 0.5,
            "high": closes + 1.0,
            "low": closes - 1.0,
            "close": closes,
            "volume": np.ones(n) if volumes is None else np.asarray(volumes, dtype=float),
        }
    )


class GranularityTests(unittest.TestCase):
    def test_parse_accepts_members_and_names(self):
        self.assertIs(Granularity.parse("Weekly"), Granularity.WEEKLY)
        self.assertIs(Granularity.parse(Granularity.MONTHLY), Granularity.MONTHLY)

    def test_unknown_granularity_rejected(self):
        with self.assertRaises(InvalidGranularity):
            Granularity.parse("fortnightly")
        with self.assertRaises(InvalidGranularity):
            PeriodResampler().resample(make_series([1.0]), "hourly")


class ResampleTests(unittest.TestCase):
    def test_weekly_two_buckets_for_fourteen_days_with_spike(self):
        closes = np.full(20160, 100.0)
        closes[10000] = 200.0
        series = make_series(closes)
        series["high"] = series["close"]
        series["low"] = series["close"]
        series["open"] = series["close"]

        out = PeriodResampler().resample(series, "weekly")

        self.assertEqual(len(out), 2)
        self.assertEqual(out["period_start"].tolist(),
                         [pd.Timestamp("2021-01-03"), pd.Timestamp("2021-01-10")])
        self.assertEqual(out["high"].iloc[0], 200.0)
        self.assertEqual(out["high"].iloc[1], 100.0)
        self.assertEqual(out["count"].tolist(), [10080, 10080])

    def test_week_start_is_configurable(self):
        series = make_series(np.ones(14), start="2021-01-03", freq="D")
        monday = PeriodResampler({"resample": {"week_start": 0}}).resample(series, Granularity.WEEKLY)
        self.assertEqual(monday["period_start"].iloc[0], pd.Timestamp("2020-12-28"))
        self.assertEqual(len(monday), 3)

    def test_open_first_close_last_within_bucket_in_timestamp_order(self):
        series = make_series([10.0, 20.0, 30.0], start="2021-02-10", freq="D")
        shuffled = series.iloc[[2, 0, 1]].reset_index(drop=True)

        out = PeriodResampler().resample(shuffled, Granularity.MONTHLY)

        self.assertEqual(len(out), 1)
        row = out.iloc[0]
        self.assertEqual(row["period_start"], pd.Timestamp("2021-02-01"))
        self.assertEqual(row["open"], 9.5)
        self.assertEqual(row["close"], 30.0)
        self.assertEqual(row["high"], 31.0)
        self.assertEqual(row["low"], 9.0)
        self.assertEqual(row["volume"], 3.0)

    def test_single_record_bucket_reduces_to_that_record(self):
        series = make_series([5.0, 7.0], start="2021-01-31 23:59", volumes=[2.0, 3.0])
        series["open"] = series["close"]
        series["high"] = series["close"]
        series["low"] = series["close"]

        out = PeriodResampler().resample(series, "monthly")

        self.assertEqual(len(out), 2)
        for i, close in enumerate([5.0, 7.0]):
            row = out.iloc[i]
            self.assertEqual([row["open"], row["high"], row["low"], row["close"]], [close] * 4)
        self.assertEqual(out["volume"].tolist(), [2.0, 3.0])

    def test_volume_conserved_and_no_empty_buckets(self):
        rng = np.random.default_rng(3)
        series = make_series(np.ones(60), start="2021-01-01", freq="5D",
                             volumes=rng.uniform(0, 10, 60))
        for granularity in ("daily", "weekly", "monthly", "quarterly"):
            out = PeriodResampler().resample(series, granularity)
            self.assertAlmostEqual(out["volume"].sum(), series["volume"].sum(), places=6)
            self.assertEqual(int(out["count"].sum()), len(series))
            self.assertTrue((out["count"] > 0).all())
            self.assertTrue(out["period_start"].is_monotonic_increasing)

    def test_quarterly_buckets_follow_month_blocks(self):
        series = make_series(np.ones(12), start="2021-01-01", freq="MS")
        out = PeriodResampler().resample(series, "quarterly")
        self.assertEqual(
            out["period_start"].tolist(),
            [pd.Timestamp(d) for d in ("2021-01-01", "2021-04-01", "2021-07-01", "2021-10-01")],
        )
        self.assertEqual(out["count"].tolist(), [3, 3, 3, 3])

    def test_none_granularity_is_per_record(self):
        series = make_series([1.0, 2.0, 3.0])
        out = PeriodResampler().resample(series, Granularity.NONE)
        self.assertEqual(len(out), 3)
        self.assertEqual(out["close"].tolist(), [1.0, 2.0, 3.0])

    def test_comparison_series(self):
        series = make_series([1.0, 2.0, 3.0], start="2021-03-01", freq="D")
        out = PeriodResampler().comparison_series(series, "close", "monthly")
        self.assertEqual(out.tolist(), [3.0])
        with self.assertRaises(ValidationError):
            PeriodResampler().comparison_series(series, "vwap")


class FilterDateRangeTests(unittest.TestCase):
    def test_bounds_are_inclusive(self):
        series = make_series(np.arange(10.0), start="2021-01-01", freq="D")
        out = filter_date_range(series, "2021-01-03", "2021-01-05")
        self.assertEqual(out["close"].tolist(), [2.0, 3.0, 4.0])

    def test_date_end_bound_covers_whole_day(self):
        series = make_series(np.arange(48.0), start="2021-01-01", freq="h")
        out = filter_date_range(series, end=date(2021, 1, 1))
        self.assertEqual(len(out), 24)

    def test_inverted_bounds_rejected(self):
        series = make_series([1.0])
        with self.assertRaises(ValidationError):
            filter_date_range(series, "2021-02-01", "2021-01-01")


if __name__ == "__main__":
    unittest.main()
