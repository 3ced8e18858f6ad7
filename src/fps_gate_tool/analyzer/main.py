"""
主分析器模块 - 函数式流水线

trace 字节 -> 事件集合 -> 帧采样 -> 统计汇总 -> 门禁结论
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..errors import ConfigError
from ..models import AnalysisResult, GateConfig
from ..parser import TraceEventStore, load, load_trace_file
from .extractor import DEFAULT_FRAME_BOUNDARY_NAMES, extract_frame_samples
from .gate import evaluate, validate_gate_config
from .summarizer import summarize
from .warnings_scan import collect_trace_warnings

logger = logging.getLogger(__name__)


def _resolve_thread(store: TraceEventStore, thread_id: Optional[int], thread_name: Optional[str]) -> Optional[int]:
    if thread_name is None:
        return thread_id
    resolved = store.thread_id_by_name(thread_name)
    if resolved is None:
        raise ConfigError(f"trace 中没有名为 {thread_name} 的线程")
    return resolved


def analyze_store(store: TraceEventStore, config: GateConfig, source: str = '<memory>',
                  boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                  thread_id: Optional[int] = None,
                  thread_name: Optional[str] = None) -> AnalysisResult:
    """
    对已解析的事件集合执行提取、汇总、门禁判定

    Raises:
        InsufficientDataError: 没有可用帧采样
        ConfigError: 指定的线程名不存在
    """
    thread_id = _resolve_thread(store, thread_id, thread_name)

    # Stage 1: 帧间隔提取
    samples = extract_frame_samples(store, boundary_names, thread_id)
    logger.info(f"{source}: 帧边界 {samples.boundary_count} 个, 采样 {len(samples)} 个, "
                f"排除间隔 {samples.excluded_interval_count} 个")

    # Stage 2: 统计汇总
    summary = summarize(samples, config.outlier_trim_strategy)

    # Stage 3: 辅助告警 + 门禁判定
    warnings = collect_trace_warnings(store)
    verdict = evaluate(summary, config, warnings)

    return AnalysisResult(source=source, samples=samples, summary=summary, verdict=verdict, warnings=warnings)


def analyze_trace(raw_trace_bytes: bytes, config: GateConfig, source: str = '<memory>',
                  boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                  thread_id: Optional[int] = None,
                  thread_name: Optional[str] = None) -> AnalysisResult:
    """
    分析一份 trace 字节流

    配置在任何计算之前校验；各阶段的异常原样向上抛出。

    Args:
        raw_trace_bytes: trace 原始字节
        config: 门禁配置
        source: 结果中记录的来源名称
        boundary_names: 帧边界事件名
        thread_id: 只分析指定线程
        thread_name: 按线程名指定线程（优先于 thread_id）

    Returns:
        AnalysisResult: 分析结果

    Raises:
        ConfigError / ParseError / InsufficientDataError
    """
    validate_gate_config(config)
    store = load(raw_trace_bytes)
    return analyze_store(store, config, source, boundary_names, thread_id, thread_name)


def analyze_trace_file(file_path: Union[str, Path], config: GateConfig,
                       boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                       thread_id: Optional[int] = None,
                       thread_name: Optional[str] = None) -> AnalysisResult:
    """分析单个 trace 文件"""
    validate_gate_config(config)
    store = load_trace_file(file_path)
    return analyze_store(store, config, str(file_path), boundary_names, thread_id, thread_name)


def _process_single_file_internal(args):
    """处理单个文件的内部函数，用于并行处理"""
    file_path, config, boundary_names, thread_id, thread_name = args
    return file_path, analyze_trace_file(file_path, config, boundary_names, thread_id, thread_name)


def analyze_trace_files(file_paths: List[Union[str, Path]], config: GateConfig,
                        max_workers: Optional[int] = None,
                        boundary_names: Iterable[str] = DEFAULT_FRAME_BOUNDARY_NAMES,
                        thread_id: Optional[int] = None,
                        thread_name: Optional[str] = None) -> Dict[str, AnalysisResult]:
    """
    并行分析多个相互独立的 trace 文件

    每个文件在独立进程中完成整条流水线，互不共享状态。
    任一文件失败时，按文件顺序抛出第一个异常。

    Returns:
        Dict[str, AnalysisResult]: {文件路径: 分析结果}，顺序与输入一致

    Raises:
        ConfigError: 配置不合法或 max_workers 不是正整数
    """
    validate_gate_config(config)
    if max_workers is not None and (isinstance(max_workers, bool) or not isinstance(max_workers, int)
                                    or max_workers < 1):
        raise ConfigError(f"max_workers 必须为正整数，实际为: {max_workers!r}")
    boundary_names = tuple(boundary_names)
    file_paths = [str(path) for path in file_paths]
    if not file_paths:
        return {}

    print(f"开始分析 {len(file_paths)} 个文件")

    if len(file_paths) == 1 or max_workers == 1:
        results = [_process_single_file_internal((path, config, boundary_names, thread_id, thread_name))
                   for path in file_paths]
        return dict(results)

    tasks = [(path, config, boundary_names, thread_id, thread_name) for path in file_paths]
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_process_single_file_internal, task) for task in tasks]
        # 按提交顺序取结果，保证第一个异常对应最靠前的文件
        results = [future.result() for future in futures]

    return dict(results)
