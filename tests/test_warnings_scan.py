"""
辅助告警统计单元测试
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fps_gate_tool.analyzer.warnings_scan import (collect_trace_warnings, count_forced_layouts,
                                                  count_long_tasks)
from fps_gate_tool.parser import load

from trace_fixtures import COMPOSITOR_TID, MAIN_TID, complete_event, trace_bytes


class TestWarningsScan(unittest.TestCase):

    def setUp(self):
        self.store = load(trace_bytes([
            complete_event('RunTask', 0.0, 80_000.0, cat='toplevel'),
            complete_event('FunctionCall', 1_000.0, 10_000.0),
            # 脚本执行期间的布局: 强制同步布局
            complete_event('Layout', 5_000.0, 500.0),
            complete_event('UpdateLayoutTree', 9_000.0, 200.0),
            # 脚本结束后的布局: 正常
            complete_event('Layout', 20_000.0, 500.0),
            # 其他线程上的布局不算
            complete_event('Layout', 2_000.0, 500.0, tid=COMPOSITOR_TID),
            complete_event('RunTask', 100_000.0, 10_000.0, cat='toplevel'),
        ]))

    def test_forced_layouts(self):
        self.assertEqual(count_forced_layouts(self.store), 2)

    def test_long_tasks(self):
        self.assertEqual(count_long_tasks(self.store), 1)
        self.assertEqual(count_long_tasks(self.store, long_task_threshold_us=5_000), 2)

    def test_collect(self):
        warnings = collect_trace_warnings(self.store)
        self.assertEqual(warnings.as_dict(), {'forcedLayouts': 2, 'longTasks': 1})

    def test_clean_trace(self):
        store = load(trace_bytes([complete_event('Layout', 0.0, 100.0, tid=MAIN_TID)]))
        warnings = collect_trace_warnings(store)
        self.assertEqual((warnings.forced_layouts, warnings.long_tasks), (0, 0))


if __name__ == '__main__':
    unittest.main()
