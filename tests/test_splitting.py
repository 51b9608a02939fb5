import math
import unittest

import pandas as pd

from ltc_report.errors import InsufficientDataError
from ltc_report.splitting import split


def frame(n):
    return pd.DataFrame({"close": [float(i) for i in range(n)]})


class SplitTests(unittest.TestCase):
    def test_lengths_for_many_sizes(self):
        for n in (2, 3, 5, 10, 101, 3000):
            parts = split(frame(n))
            self.assertEqual(parts.train_size + parts.test_size, n)
            self.assertEqual(parts.train_size, math.floor(0.8 * n))

    def test_positional_prefix_and_suffix(self):
        parts = split(frame(3000))
        self.assertEqual(parts.train_size, 2400)
        self.assertEqual(parts.test_size, 600)
        self.assertEqual(parts.training["close"].iloc[-1], 2399.0)
        self.assertEqual(parts.testing["close"].iloc[0], 2400.0)
        self.assertEqual(list(parts.testing.index[:2]), [0, 1])

    def test_degenerate_lengths_raise(self):
        for n in (0, 1):
            with self.assertRaises(InsufficientDataError):
                split(frame(n))

    def test_fraction_leaving_empty_partition_raises(self):
        with self.assertRaises(InsufficientDataError):
            split(frame(2), train_fraction=0.3)

    def test_fraction_out_of_range(self):
        with self.assertRaises(ValueError):
            split(frame(10), train_fraction=1.0)


if __name__ == "__main__":
    unittest.main()
