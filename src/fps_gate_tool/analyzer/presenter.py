"""
数据展示阶段 (纯函数实现)

把统计汇总和门禁结论整理为扁平记录，输出为 JSON / CSV / XLSX 文件、markdown 表格或帧率曲线图。
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..models import FpsSummary, FrameSample, GateVerdict, TraceWarnings

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'csv', 'xlsx')


def to_record(summary: FpsSummary, verdict: GateVerdict, source: Optional[str] = None,
              warnings: Optional[TraceWarnings] = None,
              excluded_interval_count: Optional[int] = None) -> Dict[str, Any]:
    """
    生成一条扁平记录，字段名与数据模型一致

    Args:
        summary: 统计汇总
        verdict: 门禁结论
        source: trace 来源
        warnings: 辅助告警计数
        excluded_interval_count: 被排除的帧间隔数量

    Returns:
        Dict[str, Any]: 扁平记录
    """
    record: Dict[str, Any] = {}
    if source is not None:
        record['source'] = source

    record.update({
        'mean': summary.mean,
        'median': summary.median,
        'standardDeviation': summary.standard_deviation,
        'trimmedMean': summary.trimmed_mean,
        'sampleCount': summary.sample_count,
        'trimmedSampleCount': summary.trimmed_sample_count,
        'minValue': summary.min_value,
        'maxValue': summary.max_value,
        'trimStrategy': str(summary.trim_strategy),
        'passed': verdict.passed,
        'observedValue': verdict.observed_value,
        'threshold': verdict.threshold,
        'statisticUsed': verdict.statistic_used.value,
        'reasons': list(verdict.reasons),
    })

    if excluded_interval_count is not None:
        record['excludedIntervalCount'] = excluded_interval_count
    if warnings is not None:
        record.update(warnings.as_dict())
    return record


def _generate_base_name(label: Optional[str], records: Sequence[Dict[str, Any]]) -> str:
    """生成基础文件名"""
    parts = [label or 'fps_gate']
    parts.append(f"{len(records)}_traces")
    if records and all(record.get('passed') for record in records):
        parts.append('passed')
    else:
        parts.append('failed')
    return '_'.join(parts)


def write_report(records: List[Dict[str, Any]], output_dir: Union[str, Path],
                 base_name: Optional[str] = None,
                 formats: Iterable[str] = ('json',), label: Optional[str] = None) -> List[Path]:
    """
    生成输出文件（JSON / CSV / XLSX）

    Args:
        records: to_record 生成的记录列表
        output_dir: 输出目录
        base_name: 基础文件名，不指定时根据标签和结果生成
        formats: 输出格式
        label: 文件标签

    Returns:
        List[Path]: 生成的文件路径列表
    """
    import pandas as pd

    formats = list(formats)
    unknown = [fmt for fmt in formats if fmt not in SUPPORTED_FORMATS]
    if unknown:
        raise ValueError(f"不支持的输出格式: {', '.join(unknown)}。支持的格式: {', '.join(SUPPORTED_FORMATS)}")

    if not records:
        logger.warning("没有数据可供输出")
        return []

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    base_name = base_name or _generate_base_name(label, records)

    generated_files = []

    if 'json' in formats:
        json_file = output_path / f"{base_name}.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
        print(f"JSON 文件已生成: {json_file}")
        generated_files.append(json_file)

    # 表格格式中 reasons 合并为一个单元格
    df = pd.DataFrame([{**record, 'reasons': '; '.join(record.get('reasons', []))} for record in records])

    if 'csv' in formats:
        csv_file = output_path / f"{base_name}.csv"
        df.to_csv(csv_file, index=False, encoding='utf-8')
        print(f"CSV 文件已生成: {csv_file}")
        generated_files.append(csv_file)

    if 'xlsx' in formats:
        xlsx_file = output_path / f"{base_name}.xlsx"
        df.to_excel(xlsx_file, index=False)
        print(f"Excel 文件已生成: {xlsx_file}")
        generated_files.append(xlsx_file)

    return generated_files


def format_markdown_table(records: List[Dict[str, Any]], title: str) -> str:
    """生成 markdown 格式的表格"""
    if not records:
        return f"# {title}\n\n没有数据可显示\n"

    lines = [f"# {title}", ""]
    columns = list(records[0].keys())
    lines.append("| " + " | ".join(columns) + " |")
    lines.append("| " + " | ".join(["---"] * len(columns)) + " |")

    for record in records:
        values = []
        for col in columns:
            value = record.get(col, "")
            if isinstance(value, list):
                value = "<br>".join(str(item) for item in value)
            elif isinstance(value, float):
                value = f"{value:.2f}"
            values.append(str(value))
        lines.append("| " + " | ".join(values) + " |")

    return "\n".join(lines) + "\n"


def print_markdown_table(records: List[Dict[str, Any]], title: str) -> None:
    """打印markdown格式的表格"""
    print(format_markdown_table(records, title))


def plot_fps_timeline(samples: Sequence[FrameSample], output_path: Union[str, Path],
                      threshold: Optional[float] = None, title: str = 'Instantaneous FPS') -> Path:
    """
    绘制单次运行的瞬时帧率曲线

    Args:
        samples: 帧采样序列
        output_path: 图片路径（.png）
        threshold: 门禁阈值，提供时画出水平参考线
        title: 图表标题

    Returns:
        Path: 生成的图片路径
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    origin = samples[0].timestamp if samples else 0.0
    times_ms = [(sample.timestamp - origin) / 1000.0 for sample in samples]
    values = [sample.instantaneous_fps for sample in samples]

    fig, ax = plt.subplots(figsize=(12, 4))
    try:
        ax.plot(times_ms, values, color='steelblue', linewidth=1, marker='.', markersize=3, label='FPS')
        if threshold is not None:
            ax.axhline(threshold, color='red', linestyle='--', linewidth=1, label=f'threshold {threshold:g}')
        ax.set_xlabel('Time (ms)')
        ax.set_ylabel('FPS')
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right')
        fig.tight_layout()
        fig.savefig(output_path, dpi=120)
    finally:
        plt.close(fig)

    print(f"帧率曲线已生成: {output_path}")
    return output_path
