"""
分析器模块
"""

from .extractor import DEFAULT_FRAME_BOUNDARY_NAMES, extract_frame_samples, find_frame_boundaries
from .summarizer import summarize
from .gate import (evaluate, validate_gate_config, parse_trim_strategy, gate_config_from_dict,
                   load_gate_config)
from .warnings_scan import collect_trace_warnings
from .presenter import to_record, write_report, print_markdown_table, plot_fps_timeline
from .main import analyze_store, analyze_trace, analyze_trace_file, analyze_trace_files

__all__ = [
    'DEFAULT_FRAME_BOUNDARY_NAMES',
    'extract_frame_samples',
    'find_frame_boundaries',
    'summarize',
    'evaluate',
    'validate_gate_config',
    'parse_trim_strategy',
    'gate_config_from_dict',
    'load_gate_config',
    'collect_trace_warnings',
    'to_record',
    'write_report',
    'print_markdown_table',
    'plot_fps_timeline',
    'analyze_store',
    'analyze_trace',
    'analyze_trace_file',
    'analyze_trace_files',
]
