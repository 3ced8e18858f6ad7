"""
门禁检查命令模块
"""

import dataclasses
import logging
import time
from pathlib import Path

from ...analyzer import analyze_trace_files, load_gate_config, parse_trim_strategy, plot_fps_timeline
from ...analyzer.presenter import print_markdown_table, to_record, write_report
from ...errors import ConfigError, InsufficientDataError, ParseError
from ...models import GateConfig, StatisticKind
from ..exit_codes import EXIT_CONFIG_ERROR, EXIT_GATE_FAILED, EXIT_MEASUREMENT_ERROR, EXIT_PASSED
from ..file_utils import parse_file_paths
from ..validators import (parse_boundary_events, parse_output_formats, validate_max_workers,
                          validate_statistic, validate_thread_options)

logger = logging.getLogger(__name__)


def build_gate_config(args) -> GateConfig:
    """
    由配置文件和命令行参数构建门禁配置，命令行参数覆盖文件中的值

    Raises:
        ConfigError: 配置不合法
    """
    validate_statistic(args.statistic)

    if args.config:
        config = load_gate_config(args.config)
    elif args.min_fps is None:
        raise ConfigError("必须通过 --min-fps 或 --config 指定最低帧率")
    else:
        config = GateConfig(min_acceptable_fps=args.min_fps)

    overrides = {}
    if args.min_fps is not None:
        overrides['min_acceptable_fps'] = args.min_fps
    if args.statistic is not None:
        overrides['statistic_under_test'] = StatisticKind.parse(args.statistic)
    if args.trim is not None:
        overrides['outlier_trim_strategy'] = parse_trim_strategy(args.trim)

    warning_limits = dict(config.warning_limits)
    if args.max_forced_layouts is not None:
        warning_limits['forcedLayouts'] = args.max_forced_layouts
    if args.max_long_tasks is not None:
        warning_limits['longTasks'] = args.max_long_tasks
    if warning_limits != dict(config.warning_limits):
        overrides['warning_limits'] = warning_limits

    if overrides:
        # replace 会重新执行 __post_init__ 校验
        config = dataclasses.replace(config, **overrides)
    return config


def plot_file_name(index: int, path: str) -> str:
    """帧率曲线图文件名，带序号，不同目录下的同名 trace 不会互相覆盖"""
    name = Path(path).name
    for suffix in ('.json.gz', '.json'):
        if name.lower().endswith(suffix):
            name = name[:-len(suffix)]
            break
    return f"{index:03d}_{name}_fps.png"


class CheckCommand:
    """门禁检查命令处理器"""

    def run(self, args) -> int:
        """分析 trace 文件并应用质量门禁"""
        print("=== 帧率门禁检查 ===")
        print(f"文件模式: {args.file}")
        print(f"输出目录: {args.output_dir}")
        print()

        # 配置在任何计算之前校验
        try:
            validate_thread_options(args.thread_id, args.thread_name)
            boundary_names = parse_boundary_events(args.boundary_event)
            output_formats = parse_output_formats(args.output_format)
            validate_max_workers(args.max_workers)
            config = build_gate_config(args)
        except (ValueError, ConfigError) as e:
            print(f"错误: 配置不合法 - {e}")
            return EXIT_CONFIG_ERROR

        print(f"最低帧率: {config.min_acceptable_fps}")
        print(f"统计量: {config.statistic_under_test.value}")
        print(f"剔除策略: {config.outlier_trim_strategy}")
        print(f"帧边界事件: {boundary_names}")
        if config.warning_limits:
            print(f"告警上限: {dict(config.warning_limits)}")

        try:
            file_paths = parse_file_paths(args.file)
        except ValueError as e:
            print(f"错误: 解析文件路径失败 - {e}")
            return EXIT_MEASUREMENT_ERROR

        print(f"找到 {len(file_paths)} 个文件:")
        for i, file_path in enumerate(file_paths[:5]):
            print(f"  {i+1}. {file_path}")
        if len(file_paths) > 5:
            print(f"  ... 还有 {len(file_paths) - 5} 个文件")

        start_time = time.time()
        try:
            results = analyze_trace_files(
                file_paths, config,
                max_workers=args.max_workers,
                boundary_names=boundary_names,
                thread_id=args.thread_id,
                thread_name=args.thread_name,
            )
        except ConfigError as e:
            print(f"错误: 配置不合法 - {e}")
            return EXIT_CONFIG_ERROR
        except (ParseError, InsufficientDataError, OSError) as e:
            # 文件不存在、无权限等读取失败
            print(f"错误: 测量流程失败 - {e}")
            return EXIT_MEASUREMENT_ERROR

        records = [
            to_record(result.summary, result.verdict, source=path, warnings=result.warnings,
                      excluded_interval_count=result.samples.excluded_interval_count)
            for path, result in results.items()
        ]

        for path, result in results.items():
            status = "通过" if result.verdict.passed else "未通过"
            print(f"[{status}] {path}: {result.verdict.statistic_used.value} = "
                  f"{result.verdict.observed_value:.2f} (阈值 {result.verdict.threshold:.2f}, "
                  f"采样 {result.summary.sample_count} 个)")
            for reason in result.verdict.reasons:
                print(f"    {reason}")

        output_dir = Path(args.output_dir)
        if output_formats:
            write_report(records, output_dir, formats=output_formats, label=args.label)

        if args.plot:
            for index, (path, result) in enumerate(results.items(), start=1):
                image_name = plot_file_name(index, path)
                plot_fps_timeline(result.samples, output_dir / image_name,
                                  threshold=config.min_acceptable_fps, title=Path(path).name)

        if args.print_markdown:
            print_markdown_table(records, f"{args.label} 门禁结果" if args.label else "门禁结果")

        total_time = time.time() - start_time
        print(f"\n分析完成，总耗时: {total_time:.2f} 秒")

        if all(result.verdict.passed for result in results.values()):
            return EXIT_PASSED
        return EXIT_GATE_FAILED
