"""
辅助告警统计（强制同步布局、长任务）
"""

import logging
from collections import defaultdict
from typing import Dict, List

from ..models import TraceCategory, TraceEvent, TraceWarnings
from ..parser import TraceEventStore

logger = logging.getLogger(__name__)

LAYOUT_EVENT_NAMES = ('Layout', 'UpdateLayoutTree')
TASK_EVENT_NAMES = ('RunTask', 'ThreadControllerImpl::RunTask')

# 超过 50ms 的任务视为长任务
DEFAULT_LONG_TASK_THRESHOLD_US = 50_000


def count_forced_layouts(store: TraceEventStore) -> int:
    """
    统计在脚本执行期间同步触发的布局（forced layout）

    布局事件的开始时间落在同一线程某个脚本事件的 [开始, 结束) 区间内即计为一次。
    """
    scripts_by_thread: Dict[int, List[TraceEvent]] = defaultdict(list)
    for event in store.by_category(TraceCategory.SCRIPT):
        if event.duration > 0:
            scripts_by_thread[event.thread_id].append(event)

    forced = 0
    for layout in store.by_name(*LAYOUT_EVENT_NAMES):
        for script in scripts_by_thread.get(layout.thread_id, ()):
            if script.start_timestamp > layout.start_timestamp:
                break
            if script.start_timestamp <= layout.start_timestamp < script.end_timestamp:
                forced += 1
                break
    return forced


def count_long_tasks(store: TraceEventStore,
                     long_task_threshold_us: float = DEFAULT_LONG_TASK_THRESHOLD_US) -> int:
    return sum(1 for event in store.by_name(*TASK_EVENT_NAMES) if event.duration > long_task_threshold_us)


def collect_trace_warnings(store: TraceEventStore,
                           long_task_threshold_us: float = DEFAULT_LONG_TASK_THRESHOLD_US) -> TraceWarnings:
    """
    汇总帧率之外的辅助告警

    Args:
        store: 事件集合
        long_task_threshold_us: 长任务阈值（微秒）

    Returns:
        TraceWarnings: 告警计数
    """
    warnings = TraceWarnings(
        forced_layouts=count_forced_layouts(store),
        long_tasks=count_long_tasks(store, long_task_threshold_us),
    )
    if warnings.forced_layouts or warnings.long_tasks:
        logger.info(f"辅助告警: forced layouts {warnings.forced_layouts}, long tasks {warnings.long_tasks}")
    return warnings
