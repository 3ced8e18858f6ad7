"""
统计汇总命令模块
"""

from ...analyzer import extract_frame_samples, parse_trim_strategy, summarize
from ...analyzer.warnings_scan import collect_trace_warnings
from ...errors import ConfigError, InsufficientDataError, ParseError
from ...parser import load_trace_file
from ..exit_codes import EXIT_CONFIG_ERROR, EXIT_MEASUREMENT_ERROR, EXIT_PASSED
from ..validators import parse_boundary_events, validate_thread_options


class SummaryCommand:
    """统计汇总命令处理器，只输出统计量，不做门禁判定"""

    def run(self, args) -> int:
        print("=== 帧率统计 ===")
        print(f"文件: {args.file}")

        try:
            validate_thread_options(args.thread_id, args.thread_name)
            boundary_names = parse_boundary_events(args.boundary_event)
            trim_strategy = parse_trim_strategy(args.trim)
        except (ValueError, ConfigError) as e:
            print(f"错误: 配置不合法 - {e}")
            return EXIT_CONFIG_ERROR

        try:
            store = load_trace_file(args.file)
            thread_id = args.thread_id
            if args.thread_name:
                thread_id = store.thread_id_by_name(args.thread_name)
                if thread_id is None:
                    print(f"错误: 配置不合法 - trace 中没有名为 {args.thread_name} 的线程")
                    return EXIT_CONFIG_ERROR
            samples = extract_frame_samples(store, boundary_names, thread_id)
            summary = summarize(samples, trim_strategy)
        except (ParseError, InsufficientDataError, OSError) as e:
            print(f"错误: 测量流程失败 - {e}")
            return EXIT_MEASUREMENT_ERROR

        warnings = collect_trace_warnings(store)

        print(f"事件数: {len(store)}")
        print(f"帧边界: {samples.boundary_count} 个, 排除间隔: {samples.excluded_interval_count} 个")
        print(f"采样数: {summary.sample_count}")
        print(f"  mean:              {summary.mean:.2f}")
        print(f"  median:            {summary.median:.2f}")
        print(f"  standardDeviation: {summary.standard_deviation:.2f}")
        print(f"  trimmedMean:       {summary.trimmed_mean:.2f} ({trim_strategy}, 剩余 {summary.trimmed_sample_count} 个)")
        print(f"  min / max:         {summary.min_value:.2f} / {summary.max_value:.2f}")
        print(f"forcedLayouts: {warnings.forced_layouts}, longTasks: {warnings.long_tasks}")
        return EXIT_PASSED
