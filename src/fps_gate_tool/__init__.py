"""
FPS Gate Tool Package
"""

from .errors import FpsGateError, ParseError, InsufficientDataError, ConfigError
from .models import (TraceCategory, TraceEvent, FrameSample, FrameSamples, TrimKind, TrimStrategy,
                     StatisticKind, FpsSummary, GateConfig, GateVerdict, TraceWarnings, AnalysisResult)
from .parser import TraceEventStore, load, load_trace_file
from .analyzer import extract_frame_samples, summarize, evaluate, analyze_trace, analyze_trace_file

__all__ = [
    'FpsGateError',
    'ParseError',
    'InsufficientDataError',
    'ConfigError',
    'TraceCategory',
    'TraceEvent',
    'FrameSample',
    'FrameSamples',
    'TrimKind',
    'TrimStrategy',
    'StatisticKind',
    'FpsSummary',
    'GateConfig',
    'GateVerdict',
    'TraceWarnings',
    'AnalysisResult',
    'TraceEventStore',
    'load',
    'load_trace_file',
    'extract_frame_samples',
    'summarize',
    'evaluate',
    'analyze_trace',
    'analyze_trace_file',
]
