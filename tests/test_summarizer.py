"""
帧率统计汇总单元测试
"""

import os
import statistics
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fps_gate_tool.analyzer.summarizer import summarize, trim_values
from fps_gate_tool.errors import ConfigError, InsufficientDataError
from fps_gate_tool.models import FrameSample, FrameSamples, TrimStrategy


def make_samples(values, start=0.0, step=16666.0):
    return FrameSamples([FrameSample(timestamp=start + (i + 1) * step, instantaneous_fps=v)
                         for i, v in enumerate(values)])


class TestSummarize(unittest.TestCase):

    def test_basic_statistics(self):
        summary = summarize(make_samples([10.0, 20.0, 30.0, 40.0]))

        self.assertEqual(summary.sample_count, 4)
        self.assertAlmostEqual(summary.mean, 25.0)
        self.assertAlmostEqual(summary.median, 25.0)
        self.assertAlmostEqual(summary.standard_deviation, statistics.pstdev([10.0, 20.0, 30.0, 40.0]))
        self.assertEqual(summary.min_value, 10.0)
        self.assertEqual(summary.max_value, 40.0)
        # 不剔除时 trimmed_mean 等于 mean
        self.assertEqual(summary.trimmed_mean, summary.mean)
        self.assertEqual(summary.trimmed_sample_count, 4)

    def test_median_odd_count(self):
        summary = summarize(make_samples([60.0, 10.0, 30.0]))
        self.assertEqual(summary.median, 30.0)

    def test_population_standard_deviation(self):
        summary = summarize(make_samples([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]))
        self.assertAlmostEqual(summary.standard_deviation, 2.0)

    def test_scenario_drop_first_n(self):
        samples = make_samples([1_000_000 / 16666, 1_000_000 / 16667, 1_000_000 / 100000])
        summary = summarize(samples, TrimStrategy.drop_first_n(1))

        self.assertAlmostEqual(summary.trimmed_mean, 35.0, delta=0.01)
        self.assertEqual(summary.sample_count, 3)
        self.assertEqual(summary.trimmed_sample_count, 2)
        # 其他统计量不受剔除影响
        self.assertAlmostEqual(summary.mean, (60.0024 + 59.9988 + 10.0) / 3, delta=0.01)

    def test_drop_beyond_std_dev(self):
        values = [60.0, 60.0, 60.0, 60.0, 60.0, 60.0, 60.0, 60.0, 60.0, 5.0]
        summary = summarize(make_samples(values), TrimStrategy.drop_beyond_std_dev(2))

        self.assertEqual(summary.trimmed_sample_count, 9)
        self.assertAlmostEqual(summary.trimmed_mean, 60.0)
        self.assertLess(summary.mean, 60.0)

    def test_drop_beyond_std_dev_constant_values_keeps_all(self):
        summary = summarize(make_samples([30.0, 30.0, 30.0]), TrimStrategy.drop_beyond_std_dev(1))
        self.assertEqual(summary.trimmed_sample_count, 3)
        self.assertEqual(summary.standard_deviation, 0.0)

    def test_empty_samples(self):
        with self.assertRaises(InsufficientDataError) as ctx:
            summarize(FrameSamples())
        self.assertEqual(ctx.exception.available_samples, 0)

    def test_trimming_removes_everything(self):
        with self.assertRaises(InsufficientDataError) as ctx:
            summarize(make_samples([60.0, 30.0]), TrimStrategy.drop_first_n(5))
        self.assertEqual(ctx.exception.available_samples, 2)

    def test_invalid_trim_strategy(self):
        with self.assertRaises(ConfigError):
            summarize(make_samples([60.0]), TrimStrategy.drop_first_n(-1))
        with self.assertRaises(ConfigError):
            summarize(make_samples([60.0]), TrimStrategy.drop_beyond_std_dev(0))

    def test_idempotent(self):
        samples = make_samples([59.1, 61.3, 12.7, 58.8, 60.2, 33.3, 60.0])
        strategy = TrimStrategy.drop_beyond_std_dev(1.5)
        self.assertEqual(summarize(samples, strategy), summarize(samples, strategy))

    def test_mean_and_median_within_range(self):
        cases = [
            [0.1, 0.1, 0.1],
            [1e-9, 1e9],
            [59.94, 60.06, 59.99, 60.01, 144.0, 7.5],
            [33.333333333333336] * 7,
        ]
        for values in cases:
            summary = summarize(make_samples(values))
            self.assertTrue(summary.min_value <= summary.mean <= summary.max_value)
            self.assertTrue(summary.min_value <= summary.median <= summary.max_value)

    def test_timestamps_do_not_affect_values(self):
        a = summarize(make_samples([10.0, 20.0], step=1.0))
        b = summarize(make_samples([10.0, 20.0], step=99999.0))
        self.assertEqual((a.mean, a.median, a.standard_deviation), (b.mean, b.median, b.standard_deviation))
        self.assertEqual(b.first_timestamp, 99999.0)
        self.assertEqual(b.last_timestamp, 199998.0)


class TestTrimValues(unittest.TestCase):

    def test_none(self):
        self.assertEqual(trim_values([1.0, 2.0], TrimStrategy.none(), 1.5, 0.5), [1.0, 2.0])

    def test_drop_first_n_keeps_order(self):
        self.assertEqual(trim_values([5.0, 1.0, 3.0], TrimStrategy.drop_first_n(1), 3.0, 1.6), [1.0, 3.0])


if __name__ == '__main__':
    unittest.main()
