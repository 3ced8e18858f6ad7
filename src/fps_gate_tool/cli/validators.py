# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

from typing import List, Optional

from ..analyzer.gate import SUPPORTED_STATISTICS
from ..analyzer.presenter import SUPPORTED_FORMATS


def parse_output_formats(format_spec: str) -> List[str]:
    """
    解析输出格式

    Args:
        format_spec: 逗号分隔的格式字符串，如 "json,csv"

    Returns:
        List[str]: 格式列表

    Raises:
        ValueError: 格式不支持或重复
    """
    if not format_spec or not format_spec.strip():
        return []

    formats = [fmt.strip() for fmt in format_spec.split(',') if fmt.strip()]
    for fmt in formats:
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"不支持的输出格式: {fmt}。支持的格式: {', '.join(SUPPORTED_FORMATS)}")

    if len(formats) != len(set(formats)):
        raise ValueError("输出格式不能重复")

    return formats


def parse_boundary_events(boundary_spec: str) -> List[str]:
    """
    解析帧边界事件名

    Raises:
        ValueError: 没有任何事件名
    """
    names = [name.strip() for name in (boundary_spec or '').split(',') if name.strip()]
    if not names:
        raise ValueError("帧边界事件名不能为空")
    return names


def validate_statistic(statistic: Optional[str]) -> None:
    if statistic is not None and statistic not in SUPPORTED_STATISTICS:
        raise ValueError(f"不支持的统计量: {statistic}。支持的统计量: {', '.join(SUPPORTED_STATISTICS)}")


def validate_thread_options(thread_id: Optional[int] = None, thread_name: Optional[str] = None) -> None:
    """
    检查 --thread-id 和 --thread-name 不能同时使用

    Raises:
        ValueError: 选项组合不合法
    """
    if thread_id is not None and thread_name:
        raise ValueError("--thread-id 和 --thread-name 不能同时使用")


def validate_max_workers(max_workers: Optional[int]) -> None:
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"--max-workers 必须为正整数，实际为: {max_workers}")
