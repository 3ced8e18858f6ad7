"""
帧率统计汇总
"""

import logging
import statistics
from typing import List, Sequence

from ..errors import InsufficientDataError
from ..models import FpsSummary, FrameSample, TrimKind, TrimStrategy

logger = logging.getLogger(__name__)


def trim_values(values: Sequence[float], trim_strategy: TrimStrategy,
                mean: float, standard_deviation: float) -> List[float]:
    """
    按策略剔除离群值

    Args:
        values: 按时间顺序排列的帧率值
        trim_strategy: 剔除策略
        mean: 未剔除时的均值
        standard_deviation: 未剔除时的总体标准差

    Returns:
        List[float]: 剩余的值
    """
    if trim_strategy.kind == TrimKind.DROP_FIRST_N:
        return list(values[trim_strategy.n:])
    if trim_strategy.kind == TrimKind.DROP_BEYOND_STD_DEV:
        limit = trim_strategy.k * standard_deviation
        return [value for value in values if abs(value - mean) <= limit]
    return list(values)


def summarize(samples: Sequence[FrameSample],
              trim_strategy: TrimStrategy = TrimStrategy.none()) -> FpsSummary:
    """
    计算帧率统计量

    均值和标准差为总体公式；中位数在偶数个时取中间两值的平均；
    只使用帧率值参与计算，时间戳仅用于报告。

    Args:
        samples: 帧采样序列
        trim_strategy: 计算 trimmed_mean 时使用的剔除策略

    Returns:
        FpsSummary: 统计汇总

    Raises:
        InsufficientDataError: 没有采样，或剔除后没有剩余采样
    """
    trim_strategy.validate()

    samples = list(samples)
    values = [sample.instantaneous_fps for sample in samples]
    if not values:
        raise InsufficientDataError("没有可用的帧采样", available_samples=0)

    mean = statistics.mean(values)
    standard_deviation = statistics.pstdev(values, mu=mean)
    median = statistics.median(values)

    remaining = trim_values(values, trim_strategy, mean, standard_deviation)
    if not remaining:
        raise InsufficientDataError(f"按 {trim_strategy} 剔除后没有剩余采样",
                                    available_samples=len(values))
    trimmed_mean = statistics.mean(remaining)

    logger.debug(f"统计 {len(values)} 个采样，剔除后剩余 {len(remaining)} 个 ({trim_strategy})")

    return FpsSummary(
        mean=mean,
        median=median,
        standard_deviation=standard_deviation,
        trimmed_mean=trimmed_mean,
        sample_count=len(values),
        min_value=min(values),
        max_value=max(values),
        trimmed_sample_count=len(remaining),
        trim_strategy=trim_strategy,
        first_timestamp=samples[0].timestamp,
        last_timestamp=samples[-1].timestamp,
    )
