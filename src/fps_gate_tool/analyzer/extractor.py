"""
帧间隔提取阶段 (纯函数实现)
"""

import logging
from typing import Iterable, List, Optional

from ..models import FrameSample, FrameSamples, TraceCategory, TraceEvent
from ..parser import TraceEventStore

logger = logging.getLogger(__name__)

MICROSECONDS_PER_SECOND = 1_000_000

# 默认以合成器 DrawFrame 作为帧完成标记
DEFAULT_FRAME_BOUNDARY_NAMES = ('DrawFrame',)

BOUNDARY_CATEGORIES = (TraceCategory.RENDER, TraceCategory.COMPOSITE)


def find_frame_boundaries(store: TraceEventStore,
                          boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                          thread_id: Optional[int] = None) -> List[TraceEvent]:
    """
    筛选帧边界事件，保持 store 中的时间顺序

    Args:
        store: 事件集合
        boundary_names: 作为帧完成标记的事件名
        thread_id: 只取指定线程的事件，None 表示不限制

    Returns:
        List[TraceEvent]: 帧边界事件列表
    """
    names = set(boundary_names)
    boundaries = []
    for event in store:
        if event.name not in names or event.category not in BOUNDARY_CATEGORIES:
            continue
        if thread_id is not None and event.thread_id != thread_id:
            continue
        boundaries.append(event)
    return boundaries


def extract_frame_samples(store: TraceEventStore,
                          boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                          thread_id: Optional[int] = None) -> FrameSamples:
    """
    由相邻帧边界事件计算瞬时帧率

    每对相邻边界 (t[i-1], t[i]) 产生一个采样 1_000_000 / (t[i] - t[i-1])，
    第一个边界没有前驱，不产生采样。间隔为零或负数的采样被排除并计数。

    Args:
        store: 事件集合
        boundary_names: 作为帧完成标记的事件名
        thread_id: 只取指定线程的事件

    Returns:
        FrameSamples: 按时间顺序排列的采样序列，边界少于 2 个时为空
    """
    boundaries = find_frame_boundaries(store, boundary_names, thread_id)
    # 帧以完成时间计
    times = [event.end_timestamp for event in boundaries]

    samples = []
    excluded = 0
    for previous, current in zip(times, times[1:]):
        interval = current - previous
        if interval <= 0:
            excluded += 1
            logger.debug(f"排除异常帧间隔: {previous} -> {current} ({interval} us)")
            continue
        samples.append(FrameSample(timestamp=current,
                                   instantaneous_fps=MICROSECONDS_PER_SECOND / interval))

    if excluded:
        logger.warning(f"排除了 {excluded} 个零或负的帧间隔（共 {len(boundaries)} 个帧边界）")
    logger.debug(f"帧边界 {len(boundaries)} 个，生成采样 {len(samples)} 个")

    return FrameSamples(samples, boundary_count=len(boundaries), excluded_interval_count=excluded)
