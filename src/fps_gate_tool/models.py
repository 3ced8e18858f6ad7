# -*- coding: utf-8 -*-
"""
浏览器性能 Trace 数据模型定义
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .errors import ConfigError


class TraceCategory(Enum):
    """事件分类"""
    RENDER = 'Render'
    SCRIPT = 'Script'
    PAINT = 'Paint'
    COMPOSITE = 'Composite'
    OTHER = 'Other'


@dataclass(frozen=True)
class TraceEvent:
    """Trace 事件数据模型，时间单位均为微秒"""
    category: TraceCategory
    start_timestamp: float
    duration: float
    thread_id: int
    name: str = ''
    process_id: int = 0
    raw_category: str = ''
    phase: str = 'X'
    args: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def end_timestamp(self) -> float:
        """事件结束时间"""
        return self.start_timestamp + self.duration

    @property
    def is_instant(self) -> bool:
        return self.duration == 0


@dataclass(frozen=True)
class FrameSample:
    """单帧采样: 帧完成时间与瞬时帧率"""
    timestamp: float
    instantaneous_fps: float


class FrameSamples(Sequence):
    """
    帧采样序列（只读，可多次迭代）

    除采样本身外还记录帧边界事件数量和被排除的异常间隔数量，
    便于诊断时钟异常或重复时间戳。
    """

    def __init__(self, samples: Iterable[FrameSample] = (),
                 boundary_count: int = 0, excluded_interval_count: int = 0):
        self._samples: Tuple[FrameSample, ...] = tuple(samples)
        self.boundary_count = boundary_count
        self.excluded_interval_count = excluded_interval_count

    def __getitem__(self, index):
        if isinstance(index, slice):
            return FrameSamples(self._samples[index])
        return self._samples[index]

    def __len__(self) -> int:
        return len(self._samples)

    def __eq__(self, other):
        if isinstance(other, FrameSamples):
            return (self._samples == other._samples
                    and self.boundary_count == other.boundary_count
                    and self.excluded_interval_count == other.excluded_interval_count)
        return NotImplemented

    def __hash__(self):
        return hash((self._samples, self.boundary_count, self.excluded_interval_count))

    def __repr__(self):
        return (f"FrameSamples(count={len(self._samples)}, boundaries={self.boundary_count}, "
                f"excluded={self.excluded_interval_count})")

    @property
    def values(self) -> Tuple[float, ...]:
        """瞬时帧率值"""
        return tuple(sample.instantaneous_fps for sample in self._samples)

    @property
    def timestamps(self) -> Tuple[float, ...]:
        return tuple(sample.timestamp for sample in self._samples)


class TrimKind(Enum):
    """离群值剔除方式"""
    NONE = 'none'
    DROP_FIRST_N = 'first'
    DROP_BEYOND_STD_DEV = 'std'


@dataclass(frozen=True)
class TrimStrategy:
    """
    离群值剔除策略

    文本形式: ``none``、``first:N``（丢弃前 N 个采样）、``std:K``（丢弃偏离均值超过 K 倍标准差的采样）
    """
    kind: TrimKind = TrimKind.NONE
    n: int = 0
    k: float = 0.0

    @classmethod
    def none(cls) -> 'TrimStrategy':
        return cls(TrimKind.NONE)

    @classmethod
    def drop_first_n(cls, n: int) -> 'TrimStrategy':
        return cls(TrimKind.DROP_FIRST_N, n=n)

    @classmethod
    def drop_beyond_std_dev(cls, k: float) -> 'TrimStrategy':
        return cls(TrimKind.DROP_BEYOND_STD_DEV, k=k)

    def validate(self) -> None:
        """
        校验策略参数

        Raises:
            ConfigError: 参数不合法
        """
        if self.kind == TrimKind.DROP_FIRST_N:
            if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n < 0:
                raise ConfigError(f"first:N 的 N 必须为非负整数，实际为: {self.n!r}")
        elif self.kind == TrimKind.DROP_BEYOND_STD_DEV:
            if not isinstance(self.k, (int, float)) or not math.isfinite(self.k) or self.k <= 0:
                raise ConfigError(f"std:K 的 K 必须为正数，实际为: {self.k!r}")

    def __str__(self):
        if self.kind == TrimKind.DROP_FIRST_N:
            return f"first:{self.n}"
        if self.kind == TrimKind.DROP_BEYOND_STD_DEV:
            return f"std:{self.k:g}"
        return 'none'


class StatisticKind(Enum):
    """质量门禁使用的统计量"""
    MEAN = 'mean'
    MEDIAN = 'median'
    TRIMMED_MEAN = 'trimmedMean'

    @classmethod
    def parse(cls, text: str) -> 'StatisticKind':
        if not isinstance(text, str):
            raise ConfigError(f"统计量必须为字符串，实际为: {text!r}")
        for kind in cls:
            if kind.value == text or kind.name.lower() == text.lower():
                return kind
        raise ConfigError(f"不支持的统计量: {text}。支持的统计量: {', '.join(k.value for k in cls)}")


@dataclass(frozen=True)
class FpsSummary:
    """帧率统计汇总"""
    mean: float
    median: float
    standard_deviation: float
    trimmed_mean: float
    sample_count: int
    min_value: float
    max_value: float
    trimmed_sample_count: int = 0
    trim_strategy: TrimStrategy = field(default_factory=TrimStrategy.none)
    first_timestamp: Optional[float] = None
    last_timestamp: Optional[float] = None

    def statistic(self, kind: StatisticKind) -> float:
        """按名称取统计量"""
        if kind == StatisticKind.MEAN:
            return self.mean
        if kind == StatisticKind.MEDIAN:
            return self.median
        if kind == StatisticKind.TRIMMED_MEAN:
            return self.trimmed_mean
        raise ConfigError(f"不支持的统计量: {kind}")


# 可参与门禁的辅助告警名称
WARNING_NAMES = ('forcedLayouts', 'longTasks')


@dataclass(frozen=True)
class TraceWarnings:
    """帧率之外的辅助告警计数"""
    forced_layouts: int = 0
    long_tasks: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            'forcedLayouts': self.forced_layouts,
            'longTasks': self.long_tasks,
        }


@dataclass(frozen=True)
class GateConfig:
    """
    质量门禁配置，构造时即校验

    warning_limits 可以传入字典，内部保存为 ((名称, 上限), ...) 元组，保持传入顺序。
    """
    min_acceptable_fps: float
    outlier_trim_strategy: TrimStrategy = field(default_factory=TrimStrategy.none)
    statistic_under_test: StatisticKind = StatisticKind.TRIMMED_MEAN
    warning_limits: Tuple[Tuple[str, int], ...] = ()

    def __post_init__(self):
        limits = self.warning_limits
        if isinstance(limits, Mapping):
            limits = limits.items()
        try:
            limits = tuple((name, limit) for name, limit in limits)
        except (TypeError, ValueError):
            raise ConfigError(f"warningLimits 必须是 名称 -> 上限 的映射: {self.warning_limits!r}") from None
        object.__setattr__(self, 'warning_limits', limits)
        self.validate()

    def validate(self) -> None:
        """
        校验门禁配置

        Raises:
            ConfigError: 阈值为负或非有限数、剔除参数不合法、统计量未知、告警上限不合法
        """
        threshold = self.min_acceptable_fps
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigError(f"minAcceptableFps 必须为数字，实际为: {threshold!r}")
        if not math.isfinite(threshold) or threshold < 0:
            raise ConfigError(f"minAcceptableFps 必须为非负有限数，实际为: {threshold!r}")

        if not isinstance(self.outlier_trim_strategy, TrimStrategy):
            raise ConfigError(f"outlierTrimStrategy 类型不合法: {self.outlier_trim_strategy!r}")
        self.outlier_trim_strategy.validate()

        if not isinstance(self.statistic_under_test, StatisticKind):
            raise ConfigError(f"statisticUnderTest 类型不合法: {self.statistic_under_test!r}")

        seen = set()
        for name, limit in self.warning_limits:
            if name not in WARNING_NAMES:
                raise ConfigError(f"不支持的告警名称: {name!r}。支持的告警: {', '.join(WARNING_NAMES)}")
            if name in seen:
                raise ConfigError(f"告警名称重复: {name}")
            seen.add(name)
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
                raise ConfigError(f"告警 {name} 的上限必须为非负整数，实际为: {limit!r}")


@dataclass(frozen=True)
class GateVerdict:
    """质量门禁结论"""
    passed: bool
    observed_value: float
    threshold: float
    statistic_used: StatisticKind
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """单个 trace 的完整分析结果"""
    source: str
    samples: FrameSamples
    summary: FpsSummary
    verdict: GateVerdict
    warnings: TraceWarnings = field(default_factory=TraceWarnings)
