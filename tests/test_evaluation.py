import math
import unittest

import numpy as np
import pandas as pd

from ltc_report.errors import LengthMismatchError
from ltc_report.evaluation import evaluate


class EvaluateTests(unittest.TestCase):
    def test_length_mismatch_raises(self):
        with self.assertRaises(LengthMismatchError):
            evaluate([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_perfect_forecast_scores_zero(self):
        actual = [10.0, 11.0, 12.5, 9.0]
        report = evaluate(actual, actual)
        for key in ("MAE", "RMSE", "MAPE", "MPE", "ME"):
            self.assertEqual(report[key], 0.0)

    def test_metric_values_and_sign_convention(self):
        forecast = np.array([90.0, 95.0, 100.0])
        actual = np.array([100.0, 100.0, 100.0])
        report = evaluate(forecast, actual)

        self.assertAlmostEqual(report["MAE"], 5.0)
        self.assertAlmostEqual(report["RMSE"], math.sqrt((100 + 25 + 0) / 3))
        self.assertAlmostEqual(report["MAPE"], 5.0)
        # Actual above forecast: positive MPE means the model underestimated
        self.assertAlmostEqual(report["MPE"], 5.0)
        self.assertAlmostEqual(report["ME"], 5.0)

    def test_overestimation_gives_negative_mpe(self):
        report = evaluate([110.0, 120.0], [100.0, 100.0])
        self.assertAlmostEqual(report["MPE"], -15.0)

    def test_zero_actual_propagates_nan(self):
        with self.assertLogs("ltc_report", level="WARNING"):
            report = evaluate([1.0, 2.0], [0.0, 2.0])
        self.assertTrue(math.isnan(report["MAPE"]))
        self.assertTrue(math.isnan(report["MPE"]))
        self.assertAlmostEqual(report["MAE"], 0.5)

    def test_frames_and_mase(self):
        forecast = pd.DataFrame({"step": [1, 2], "mean": [4.0, 4.0], "lower_80": [3.0, 3.0]})
        actual = pd.DataFrame({"close": [5.0, 6.0]})
        training = pd.DataFrame({"close": [1.0, 2.0, 3.0, 4.0]})
        report = evaluate(forecast, actual, training=training)
        self.assertAlmostEqual(report["MAE"], 1.5)
        self.assertAlmostEqual(report["MASE"], 1.5)
        self.assertIn("ACF1", report)


if __name__ == "__main__":
    unittest.main()
