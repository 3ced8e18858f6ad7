"""
CLI主模块
"""

import argparse
import logging
import sys

from ..analyzer.extractor import DEFAULT_FRAME_BOUNDARY_NAMES
from ..analyzer.gate import SUPPORTED_STATISTICS
from .commands import CheckCommand, SummaryCommand
from .exit_codes import EXIT_CONFIG_ERROR


def _add_extraction_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--trim', default=None,
                        help='离群值剔除策略:\n'
                             '  none: 不剔除\n'
                             '  first:N: 丢弃前 N 个采样（启动阶段噪声）\n'
                             '  std:K: 丢弃偏离均值超过 K 倍标准差的采样\n'
                             '(默认: none，或配置文件中的值)')
    parser.add_argument('--boundary-event', default=','.join(DEFAULT_FRAME_BOUNDARY_NAMES),
                        help=f'帧边界事件名，逗号分隔 (默认: {",".join(DEFAULT_FRAME_BOUNDARY_NAMES)})')
    parser.add_argument('--thread-id', type=int, default=None, help='只分析指定线程 ID 的帧边界事件')
    parser.add_argument('--thread-name', default=None,
                        help='按线程名指定线程，如 Compositor（与 --thread-id 互斥）')


def create_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='fps-gate-tool',
        description="FPS Gate Tool - 分析浏览器性能 trace 的帧率并执行质量门禁",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例用法:
  # 平均帧率不低于 30，丢弃第一个采样
  fps-gate-tool check trace.json --min-fps 30 --statistic trimmedMean --trim first:1

  # 使用配置文件，批量检查目录下所有 trace，输出 csv 和 xlsx
  fps-gate-tool check "traces/*.json" --config gate.json --output-format csv,xlsx

  # 只看 Compositor 线程，同时限制强制同步布局次数并画出帧率曲线
  fps-gate-tool check trace.json.gz --min-fps 50 --thread-name Compositor --max-forced-layouts 0 --plot

  # 只输出统计量
  fps-gate-tool summary trace.json --trim std:2

退出码:
  0 门禁通过; 1 门禁未通过; 2 命令行用法错误; 3 trace 解析失败或采样不足; 4 配置不合法
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # check 命令 - 门禁检查
    check_parser = subparsers.add_parser('check', help='分析 trace 并执行帧率门禁',
                                         formatter_class=argparse.RawTextHelpFormatter)
    check_parser.add_argument('file', help='trace 文件路径，支持目录和 glob 模式 (如: "traces/*.json")')
    check_parser.add_argument('--config', default=None, help='JSON 门禁配置文件')
    check_parser.add_argument('--min-fps', type=float, default=None, help='最低可接受帧率（覆盖配置文件）')
    check_parser.add_argument('--statistic', default=None,
                              help=f'参与门禁的统计量: {", ".join(SUPPORTED_STATISTICS)} (默认: trimmedMean)')
    _add_extraction_arguments(check_parser)
    check_parser.add_argument('--max-forced-layouts', type=int, default=None,
                              help='允许的强制同步布局次数上限 (默认: 不检查)')
    check_parser.add_argument('--max-long-tasks', type=int, default=None,
                              help='允许的长任务 (>50ms) 数量上限 (默认: 不检查)')
    check_parser.add_argument('--label', default=None, help='输出文件标签')
    check_parser.add_argument('--output-format', default='json',
                              help='输出格式，逗号分隔: json, csv, xlsx；传空字符串不输出文件 (默认: json)')
    check_parser.add_argument('--output-dir', default='.', help='输出目录 (默认: 当前目录)')
    check_parser.add_argument('--plot', action='store_true', help='为每个 trace 生成帧率曲线图 (默认: False)')
    check_parser.add_argument('--print-markdown', action='store_true',
                              help='是否在stdout中以markdown格式打印结果表格 (默认: False)')
    check_parser.add_argument('--max-workers', type=int, default=None,
                              help='并行处理的最大工作进程数，默认为CPU核心数')

    # summary 命令 - 只输出统计量
    summary_parser = subparsers.add_parser('summary', help='输出单个 trace 的帧率统计量',
                                           formatter_class=argparse.RawTextHelpFormatter)
    summary_parser.add_argument('file', help='trace 文件路径 (.json 或 .json.gz)')
    _add_extraction_arguments(summary_parser)

    return parser


def parse_arguments(argv=None):
    """解析命令行参数"""
    return create_parser().parse_args(argv)


def main(argv=None) -> int:
    """主函数"""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if not args.command:
        print("错误: 请指定命令 (check, summary)")
        print("使用 --help 查看帮助信息")
        return EXIT_CONFIG_ERROR

    if args.command == 'check':
        return CheckCommand().run(args)
    elif args.command == 'summary':
        return SummaryCommand().run(args)
    else:
        print(f"错误: 未知命令: {args.command}")
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
