"""
质量门禁判定
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import ConfigError
from ..models import (FpsSummary, GateConfig, GateVerdict, StatisticKind, TraceWarnings,
                      TrimKind, TrimStrategy)

logger = logging.getLogger(__name__)

SUPPORTED_STATISTICS = tuple(kind.value for kind in StatisticKind)


def _format_value(value: float) -> str:
    return str(round(float(value), 2))


def _format_comparison(observed: float, threshold: float):
    """两位小数下无法区分时退回完整精度，避免出现 30.0 < threshold 30.0"""
    observed_text, threshold_text = _format_value(observed), _format_value(threshold)
    if observed_text == threshold_text:
        return repr(float(observed)), repr(float(threshold))
    return observed_text, threshold_text


def validate_gate_config(config: GateConfig) -> None:
    """
    校验门禁配置，见 GateConfig.validate

    Raises:
        ConfigError: 配置不合法
    """
    if not isinstance(config, GateConfig):
        raise ConfigError(f"门禁配置类型不合法: {type(config).__name__}")
    config.validate()


def evaluate(summary: FpsSummary, config: GateConfig,
             warnings: Optional[TraceWarnings] = None) -> GateVerdict:
    """
    对统计汇总应用门禁阈值

    selected >= min_acceptable_fps 即通过；未通过时 reasons 给出统计量名称、观测值、阈值和采样数。
    如果提供了辅助告警且配置了对应上限，超过上限同样判定为未通过。

    Args:
        summary: 统计汇总
        config: 门禁配置
        warnings: 辅助告警计数

    Returns:
        GateVerdict: 门禁结论
    """
    kind = config.statistic_under_test
    observed = summary.statistic(kind)
    threshold = float(config.min_acceptable_fps)

    reasons: List[str] = []
    if not observed >= threshold:
        observed_text, threshold_text = _format_comparison(observed, threshold)
        reasons.append(f"{kind.value} {observed_text} < threshold {threshold_text} "
                       f"({summary.sample_count} samples)")

    if warnings is not None:
        counts = warnings.as_dict()
        for name, limit in config.warning_limits:
            if counts[name] > limit:
                reasons.append(f"{name} {counts[name]} > limit {limit}")

    return GateVerdict(
        passed=not reasons,
        observed_value=observed,
        threshold=threshold,
        statistic_used=kind,
        reasons=tuple(reasons),
    )


def parse_trim_strategy(text: str) -> TrimStrategy:
    """
    解析剔除策略文本: none / first:N / std:K

    Raises:
        ConfigError: 文本格式不合法
    """
    if text is None:
        return TrimStrategy.none()
    if not isinstance(text, str):
        raise ConfigError(f"剔除策略必须为字符串，实际为: {text!r}")
    text = text.strip()
    if not text or text.lower() == 'none':
        return TrimStrategy.none()

    if ':' not in text:
        raise ConfigError(f"剔除策略格式不合法: {text}。支持: none, first:N, std:K")
    kind, value = (part.strip() for part in text.split(':', 1))

    if kind == TrimKind.DROP_FIRST_N.value:
        try:
            n = int(value)
        except ValueError:
            raise ConfigError(f"first:N 的 N 必须为整数: {value}") from None
        strategy = TrimStrategy.drop_first_n(n)
    elif kind == TrimKind.DROP_BEYOND_STD_DEV.value:
        try:
            k = float(value)
        except ValueError:
            raise ConfigError(f"std:K 的 K 必须为数字: {value}") from None
        strategy = TrimStrategy.drop_beyond_std_dev(k)
    else:
        raise ConfigError(f"不支持的剔除策略: {kind}。支持: none, first:N, std:K")

    strategy.validate()
    return strategy


def gate_config_from_dict(data: Mapping[str, Any]) -> GateConfig:
    """
    由字典构建门禁配置，键名与报告字段一致::

        {"minAcceptableFps": 30, "outlierTrimStrategy": "first:1",
         "statisticUnderTest": "trimmedMean", "warningLimits": {"forcedLayouts": 0}}

    Raises:
        ConfigError: 缺少阈值或字段不合法
    """
    if not isinstance(data, Mapping):
        raise ConfigError("门禁配置必须是 JSON 对象")
    if 'minAcceptableFps' not in data:
        raise ConfigError("门禁配置缺少 minAcceptableFps")

    unknown = set(data) - {'minAcceptableFps', 'outlierTrimStrategy', 'statisticUnderTest', 'warningLimits'}
    if unknown:
        raise ConfigError(f"门禁配置包含未知字段: {', '.join(sorted(unknown))}")

    warning_limits = data.get('warningLimits') or {}
    if not isinstance(warning_limits, Mapping):
        raise ConfigError("warningLimits 必须是对象")

    return GateConfig(
        min_acceptable_fps=data['minAcceptableFps'],
        outlier_trim_strategy=parse_trim_strategy(data.get('outlierTrimStrategy', 'none')),
        statistic_under_test=StatisticKind.parse(data.get('statisticUnderTest', StatisticKind.TRIMMED_MEAN.value)),
        warning_limits=dict(warning_limits),
    )


def load_gate_config(path: Union[str, Path]) -> GateConfig:
    """
    读取 JSON 门禁配置文件

    Raises:
        ConfigError: 文件不存在或无法读取、不是合法 JSON、字段不合法
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except FileNotFoundError:
        raise ConfigError(f"门禁配置文件不存在: {path}") from None
    except json.JSONDecodeError as e:
        raise ConfigError(f"门禁配置文件解析失败 {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"门禁配置文件读取失败 {path}: {e}") from e
    logger.debug(f"读取门禁配置: {path}")
    return gate_config_from_dict(data)


def gate_config_to_dict(config: GateConfig) -> Dict[str, Any]:
    return {
        'minAcceptableFps': config.min_acceptable_fps,
        'outlierTrimStrategy': str(config.outlier_trim_strategy),
        'statisticUnderTest': config.statistic_under_test.value,
        'warningLimits': dict(config.warning_limits),
    }
