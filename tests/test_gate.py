"""
质量门禁单元测试
"""

import dataclasses
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fps_gate_tool.analyzer.gate import (evaluate, gate_config_from_dict, gate_config_to_dict,
                                         load_gate_config, parse_trim_strategy, validate_gate_config)
from fps_gate_tool.errors import ConfigError
from fps_gate_tool.models import (FpsSummary, GateConfig, StatisticKind, TraceWarnings, TrimKind,
                                  TrimStrategy)


def make_summary(trimmed_mean=35.0, mean=40.0, median=45.0, sample_count=12):
    return FpsSummary(
        mean=mean,
        median=median,
        standard_deviation=5.0,
        trimmed_mean=trimmed_mean,
        sample_count=sample_count,
        min_value=10.0,
        max_value=60.0,
        trimmed_sample_count=sample_count,
    )


class TestEvaluate(unittest.TestCase):

    def setUp(self):
        self.config = GateConfig(min_acceptable_fps=30, statistic_under_test=StatisticKind.TRIMMED_MEAN)

    def test_passing_verdict(self):
        verdict = evaluate(make_summary(trimmed_mean=35.0), self.config)

        self.assertTrue(verdict.passed)
        self.assertEqual(verdict.observed_value, 35.0)
        self.assertEqual(verdict.threshold, 30.0)
        self.assertEqual(verdict.statistic_used, StatisticKind.TRIMMED_MEAN)
        self.assertEqual(verdict.reasons, ())

    def test_failing_verdict_reason(self):
        verdict = evaluate(make_summary(trimmed_mean=22.0, sample_count=12), self.config)

        self.assertFalse(verdict.passed)
        self.assertEqual(list(verdict.reasons), ["trimmedMean 22.0 < threshold 30.0 (12 samples)"])

    def test_equal_to_threshold_passes(self):
        self.assertTrue(evaluate(make_summary(trimmed_mean=30.0), self.config).passed)

    def test_selects_configured_statistic(self):
        summary = make_summary(trimmed_mean=20.0, mean=31.0, median=29.0)

        mean_config = dataclasses.replace(self.config, statistic_under_test=StatisticKind.MEAN)
        median_config = dataclasses.replace(self.config, statistic_under_test=StatisticKind.MEDIAN)

        self.assertTrue(evaluate(summary, mean_config).passed)
        median_verdict = evaluate(summary, median_config)
        self.assertFalse(median_verdict.passed)
        self.assertEqual(median_verdict.observed_value, 29.0)
        self.assertTrue(median_verdict.reasons[0].startswith("median 29.0 < threshold 30.0"))

    def test_monotonic_in_threshold(self):
        summary = make_summary(trimmed_mean=42.5)
        previous_passed = True
        for threshold in [0, 10, 30, 42.4, 42.5, 42.6, 60, 120]:
            verdict = evaluate(summary, GateConfig(min_acceptable_fps=threshold))
            # 阈值升高只会让通过变为不通过
            self.assertFalse(verdict.passed and not previous_passed)
            previous_passed = verdict.passed
        self.assertFalse(previous_passed)

    def test_reason_near_threshold_keeps_precision(self):
        # 两位小数会显示成 30.0 < threshold 30.0
        verdict = evaluate(make_summary(trimmed_mean=29.996), self.config)
        self.assertFalse(verdict.passed)
        self.assertEqual(list(verdict.reasons), ["trimmedMean 29.996 < threshold 30.0 (12 samples)"])

    def test_pure(self):
        summary = make_summary()
        self.assertEqual(evaluate(summary, self.config), evaluate(summary, self.config))

    def test_warning_limits(self):
        config = GateConfig(min_acceptable_fps=30, warning_limits={'forcedLayouts': 3})
        warnings = TraceWarnings(forced_layouts=7, long_tasks=100)

        verdict = evaluate(make_summary(trimmed_mean=35.0), config, warnings)
        self.assertFalse(verdict.passed)
        self.assertEqual(list(verdict.reasons), ["forcedLayouts 7 > limit 3"])

        # 没有配置上限的告警不参与判定
        self.assertTrue(evaluate(make_summary(), self.config, warnings).passed)

    def test_fps_and_warning_reasons_are_ordered(self):
        config = GateConfig(min_acceptable_fps=30, warning_limits={'longTasks': 0})
        verdict = evaluate(make_summary(trimmed_mean=22.0), config, TraceWarnings(long_tasks=2))
        self.assertEqual(len(verdict.reasons), 2)
        self.assertTrue(verdict.reasons[0].startswith("trimmedMean"))
        self.assertEqual(verdict.reasons[1], "longTasks 2 > limit 0")


class TestGateConfig(unittest.TestCase):

    def test_negative_threshold(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps=-1)

    def test_non_finite_threshold(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps=float('nan'))

    def test_non_numeric_threshold(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps='30')

    def test_invalid_trim(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps=30, outlier_trim_strategy=TrimStrategy.drop_first_n(-2))

    def test_invalid_statistic(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps=30, statistic_under_test='trimmedMean')

    def test_unknown_warning(self):
        with self.assertRaises(ConfigError):
            GateConfig(min_acceptable_fps=30, warning_limits={'leaks': 1})

    def test_hashable(self):
        config = GateConfig(min_acceptable_fps=30, warning_limits={'forcedLayouts': 1})
        same = GateConfig(min_acceptable_fps=30, warning_limits=(('forcedLayouts', 1),))
        self.assertEqual(config.warning_limits, (('forcedLayouts', 1),))
        self.assertEqual(config, same)
        self.assertEqual(hash(config), hash(same))
        self.assertEqual(len({config, same}), 1)

    def test_invalid_warning_limits(self):
        for limits in [{'forcedLayouts': '3'}, {'forcedLayouts': -1}, [1, 2],
                       (('forcedLayouts', 1), ('forcedLayouts', 2))]:
            with self.assertRaises(ConfigError, msg=repr(limits)):
                GateConfig(min_acceptable_fps=30, warning_limits=limits)

    def test_validate_function(self):
        config = GateConfig(min_acceptable_fps=30)
        validate_gate_config(config)
        with self.assertRaises(ConfigError):
            validate_gate_config({'minAcceptableFps': 30})

    def test_replace_revalidates(self):
        config = GateConfig(min_acceptable_fps=30)
        with self.assertRaises(ConfigError):
            dataclasses.replace(config, min_acceptable_fps=-5)


class TestParseTrimStrategy(unittest.TestCase):

    def test_parse(self):
        self.assertEqual(parse_trim_strategy('none'), TrimStrategy.none())
        self.assertEqual(parse_trim_strategy(''), TrimStrategy.none())
        self.assertEqual(parse_trim_strategy('first:3'), TrimStrategy.drop_first_n(3))
        strategy = parse_trim_strategy('std:2.5')
        self.assertEqual(strategy.kind, TrimKind.DROP_BEYOND_STD_DEV)
        self.assertEqual(strategy.k, 2.5)

    def test_round_trip_text(self):
        for text in ['none', 'first:1', 'std:2']:
            self.assertEqual(str(parse_trim_strategy(text)), text)

    def test_invalid(self):
        for text in ['first', 'first:x', 'std:-1', 'median:3', 'first:-1']:
            with self.assertRaises(ConfigError, msg=text):
                parse_trim_strategy(text)


class TestGateConfigFile(unittest.TestCase):

    def test_from_dict(self):
        config = gate_config_from_dict({
            'minAcceptableFps': 45,
            'outlierTrimStrategy': 'first:2',
            'statisticUnderTest': 'median',
            'warningLimits': {'forcedLayouts': 0},
        })
        self.assertEqual(config.min_acceptable_fps, 45)
        self.assertEqual(config.outlier_trim_strategy, TrimStrategy.drop_first_n(2))
        self.assertEqual(config.statistic_under_test, StatisticKind.MEDIAN)
        self.assertEqual(dict(config.warning_limits), {'forcedLayouts': 0})
        self.assertEqual(gate_config_to_dict(config)['outlierTrimStrategy'], 'first:2')

    def test_defaults(self):
        config = gate_config_from_dict({'minAcceptableFps': 30})
        self.assertEqual(config.statistic_under_test, StatisticKind.TRIMMED_MEAN)
        self.assertEqual(config.outlier_trim_strategy, TrimStrategy.none())

    def test_missing_threshold(self):
        with self.assertRaises(ConfigError):
            gate_config_from_dict({'statisticUnderTest': 'mean'})

    def test_unknown_field(self):
        with self.assertRaises(ConfigError):
            gate_config_from_dict({'minAcceptableFps': 30, 'maxJank': 3})

    def test_load_file(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({'minAcceptableFps': 50, 'statisticUnderTest': 'mean'}, f)
            temp_file = f.name

        try:
            config = load_gate_config(temp_file)
            self.assertEqual(config.min_acceptable_fps, 50)
            self.assertEqual(config.statistic_under_test, StatisticKind.MEAN)
        finally:
            os.unlink(temp_file)

    def test_load_missing_file(self):
        with self.assertRaises(ConfigError):
            load_gate_config('no_such_gate.json')

    def test_load_invalid_json(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write('{not json')
            temp_file = f.name

        try:
            with self.assertRaises(ConfigError):
                load_gate_config(temp_file)
        finally:
            os.unlink(temp_file)

    def test_wrong_value_types(self):
        for data in [
            {'minAcceptableFps': 30, 'statisticUnderTest': 1},
            {'minAcceptableFps': 30, 'outlierTrimStrategy': 2},
            {'minAcceptableFps': '30'},
            {'minAcceptableFps': 30, 'warningLimits': [1, 2]},
            {'minAcceptableFps': 30, 'warningLimits': {'longTasks': 1.5}},
        ]:
            with self.assertRaises(ConfigError, msg=repr(data)):
                gate_config_from_dict(data)

    def test_statistic_parse_wrong_type(self):
        with self.assertRaises(ConfigError):
            StatisticKind.parse(1)
        with self.assertRaises(ConfigError):
            parse_trim_strategy(2)

    def test_load_directory(self):
        temp_dir = tempfile.mkdtemp()
        try:
            with self.assertRaises(ConfigError):
                load_gate_config(temp_dir)
        finally:
            os.rmdir(temp_dir)


if __name__ == '__main__':
    unittest.main()
