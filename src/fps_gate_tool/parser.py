"""
Chrome Trace JSON 解析器
"""

import gzip
import json
import logging
import math
import zlib
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import ParseError
from .models import TraceCategory, TraceEvent

logger = logging.getLogger(__name__)

# 不带时间戳的元数据事件
METADATA_PHASES = {'M'}

GZIP_MAGIC = b'\x1f\x8b'

# 按事件名的分类表（Chrome devtools.timeline 事件）
_NAME_CATEGORIES = {
    TraceCategory.RENDER: {
        'DrawFrame', 'BeginFrame', 'BeginMainThreadFrame', 'RequestMainThreadFrame',
        'ActivateLayerTree', 'UpdateLayoutTree', 'Layout', 'RecalculateStyles',
        'ScheduleStyleRecalculation', 'UpdateLayer', 'UpdateLayerTree', 'PrePaint',
        'NeedsBeginFrameChanged', 'AnimationFrame', 'DroppedFrame',
    },
    TraceCategory.SCRIPT: {
        'FunctionCall', 'EvaluateScript', 'v8.compile', 'v8.run', 'v8.evaluateModule',
        'TimerFire', 'FireAnimationFrame', 'EventDispatch', 'XHRReadyStateChange',
        'MinorGC', 'MajorGC', 'V8.Execute', 'RunMicrotasks', 'CompileScript',
    },
    TraceCategory.PAINT: {
        'Paint', 'PaintImage', 'PaintSetup', 'RasterTask', 'Rasterize', 'Decode Image',
        'DecodeImage', 'ResizeImage', 'GPUTask',
    },
    TraceCategory.COMPOSITE: {
        'CompositeLayers', 'Commit', 'Swap', 'Screenshot', 'SwapBuffers',
        'PipelineReporter', 'Display::DrawAndSwap',
    },
}

# 按原始 cat 字符串中的关键字兜底分类
_CATEGORY_KEYWORDS = (
    ('v8', TraceCategory.SCRIPT),
    ('invalidationTracking', TraceCategory.RENDER),
    ('blink.animations', TraceCategory.RENDER),
    ('paint', TraceCategory.PAINT),
    ('raster', TraceCategory.PAINT),
    ('cc', TraceCategory.COMPOSITE),
    ('viz', TraceCategory.COMPOSITE),
    ('gpu', TraceCategory.COMPOSITE),
)


def classify_event(name: str, raw_category: str) -> TraceCategory:
    """
    根据事件名和原始分类推断事件分类，未知分类归入 OTHER

    Args:
        name: 事件名
        raw_category: trace 中的 cat 字段（逗号分隔）

    Returns:
        TraceCategory: 事件分类
    """
    for category, names in _NAME_CATEGORIES.items():
        if name in names:
            return category

    parts = [part.strip() for part in raw_category.split(',') if part.strip()]
    for keyword, category in _CATEGORY_KEYWORDS:
        for part in parts:
            if keyword in part.split('.') or part.startswith(keyword):
                return category

    if raw_category:
        logger.debug(f"未知事件分类 {raw_category!r} ({name})，归入 Other")
    return TraceCategory.OTHER


class TraceEventStore:
    """
    已排序的 Trace 事件集合

    按 start_timestamp 升序排列（相同时间戳保持文件顺序），构造后只读。
    """

    def __init__(self, events: List[TraceEvent],
                 thread_names: Optional[Dict[Tuple[int, int], str]] = None,
                 process_names: Optional[Dict[int, str]] = None):
        # sorted 是稳定排序，相同时间戳保持原始顺序
        self._events: Tuple[TraceEvent, ...] = tuple(sorted(events, key=lambda e: e.start_timestamp))
        self._thread_names = dict(thread_names or {})
        self._process_names = dict(process_names or {})

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[TraceEvent]:
        return iter(self._events)

    def __getitem__(self, index: int) -> TraceEvent:
        return self._events[index]

    def __repr__(self):
        return f"TraceEventStore(events={len(self._events)}, threads={len(self.thread_ids)})"

    @property
    def events(self) -> Tuple[TraceEvent, ...]:
        return self._events

    @property
    def thread_ids(self) -> List[int]:
        return sorted({event.thread_id for event in self._events})

    @property
    def thread_names(self) -> Dict[Tuple[int, int], str]:
        """{(pid, tid): 线程名}"""
        return dict(self._thread_names)

    @property
    def process_names(self) -> Dict[int, str]:
        return dict(self._process_names)

    @property
    def time_span(self) -> Tuple[float, float]:
        """(最早开始时间, 最晚结束时间)，空集合返回 (0.0, 0.0)"""
        if not self._events:
            return 0.0, 0.0
        return self._events[0].start_timestamp, max(e.end_timestamp for e in self._events)

    def by_category(self, category: TraceCategory) -> List[TraceEvent]:
        return [e for e in self._events if e.category == category]

    def by_name(self, *names: str) -> List[TraceEvent]:
        wanted = set(names)
        return [e for e in self._events if e.name in wanted]

    def by_thread(self, thread_id: int) -> List[TraceEvent]:
        return [e for e in self._events if e.thread_id == thread_id]

    def in_window(self, start: float, end: float) -> List[TraceEvent]:
        """开始时间落在 [start, end) 内的事件"""
        return [e for e in self._events if start <= e.start_timestamp < end]

    def thread_id_by_name(self, thread_name: str) -> Optional[int]:
        """
        按线程名查找线程 ID（如 CrRendererMain、Compositor），找不到返回 None
        """
        for (_, tid), name in sorted(self._thread_names.items()):
            if name == thread_name:
                return tid
        return None


def _number(value: Any, field_name: str, index: int) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"字段 {field_name} 不是数字: {value!r}", index)
    if not math.isfinite(value):
        raise ParseError(f"字段 {field_name} 不是有限数值: {value!r}", index)
    return float(value)


def _decode_envelope(raw_trace_bytes: bytes) -> List[Any]:
    """解码外层结构，返回原始事件列表"""
    if not isinstance(raw_trace_bytes, (bytes, bytearray, memoryview)):
        raise ParseError(f"输入必须是字节串，实际为 {type(raw_trace_bytes).__name__}")
    data = bytes(raw_trace_bytes)

    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise ParseError(f"gzip 解压失败: {e}") from e

    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise ParseError(f"trace 不是合法的 UTF-8: {e}") from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"trace JSON 解析失败: {e}") from e

    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        raw_events = document.get('traceEvents')
        if not isinstance(raw_events, list):
            raise ParseError("trace 对象缺少 traceEvents 列表")
        return raw_events
    raise ParseError(f"不支持的 trace 顶层结构: {type(document).__name__}")


def _parse_event(event_data: Dict[str, Any], index: int, duration: Optional[float] = None) -> TraceEvent:
    """
    解析单个带时间戳的事件

    Args:
        event_data: 事件数据字典
        index: 事件在文件中的序号
        duration: 已知的持续时间（B/E 配对时传入）

    Returns:
        TraceEvent: 解析后的事件对象
    """
    if 'ts' not in event_data:
        raise ParseError("带时间戳的事件缺少 ts 字段", index)
    ts = _number(event_data['ts'], 'ts', index)

    if duration is None:
        dur = event_data.get('dur')
        duration = 0.0 if dur is None else _number(dur, 'dur', index)
    if duration < 0:
        raise ParseError(f"dur 为负数: {duration}", index)

    name = event_data.get('name', '')
    raw_category = event_data.get('cat', '')
    if not isinstance(name, str):
        name = str(name)
    if not isinstance(raw_category, str):
        raw_category = str(raw_category)
    args = event_data.get('args')

    return TraceEvent(
        category=classify_event(name, raw_category),
        start_timestamp=ts,
        duration=duration,
        thread_id=event_data.get('tid', 0),
        name=name,
        process_id=event_data.get('pid', 0),
        raw_category=raw_category,
        phase=event_data.get('ph', 'X'),
        args=args if isinstance(args, dict) else {},
    )


def load(raw_trace_bytes: bytes) -> TraceEventStore:
    """
    解析 trace 字节流，构建事件集合

    支持 {"traceEvents": [...]} 对象格式和裸 JSON 数组格式，支持 gzip 压缩。

    Args:
        raw_trace_bytes: trace 原始字节

    Returns:
        TraceEventStore: 排序后的事件集合

    Raises:
        ParseError: 外层结构损坏，或带时间戳的记录缺少/错误的 ts
    """
    raw_events = _decode_envelope(raw_trace_bytes)

    thread_names: Dict[Tuple[int, int], str] = {}
    process_names: Dict[int, str] = {}
    # (pid, tid) -> 未闭合的 B 事件栈
    open_begins: Dict[Tuple[Any, Any], List[Tuple[int, Dict[str, Any], float, int]]] = {}
    # 记录 B 事件在 events 中的占位，保证配对后仍按文件顺序排列
    slots: List[Optional[TraceEvent]] = []

    for index, raw_event in enumerate(raw_events):
        if not isinstance(raw_event, dict):
            raise ParseError(f"事件记录不是对象: {type(raw_event).__name__}", index)

        ph = raw_event.get('ph', 'X')
        if ph in METADATA_PHASES:
            args = raw_event.get('args') or {}
            if raw_event.get('name') == 'thread_name' and isinstance(args, dict):
                thread_names[(raw_event.get('pid', 0), raw_event.get('tid', 0))] = args.get('name', '')
            elif raw_event.get('name') == 'process_name' and isinstance(args, dict):
                process_names[raw_event.get('pid', 0)] = args.get('name', '')
            continue

        if ph == 'B':
            if 'ts' not in raw_event:
                raise ParseError("B 事件缺少 ts 字段", index)
            start = _number(raw_event['ts'], 'ts', index)
            key = (raw_event.get('pid', 0), raw_event.get('tid', 0))
            open_begins.setdefault(key, []).append((len(slots), raw_event, start, index))
            slots.append(None)
            continue

        if ph == 'E':
            if 'ts' not in raw_event:
                raise ParseError("E 事件缺少 ts 字段", index)
            end = _number(raw_event['ts'], 'ts', index)
            key = (raw_event.get('pid', 0), raw_event.get('tid', 0))
            stack = open_begins.get(key)
            if not stack:
                logger.warning(f"忽略没有匹配 B 事件的 E 事件 (记录 #{index})")
                continue
            slot, begin_event, start, _ = stack.pop()
            slots[slot] = _parse_event(begin_event, index, duration=end - start)
            continue

        slots.append(_parse_event(raw_event, index))

    for stack in open_begins.values():
        for slot, begin_event, _, begin_index in stack:
            logger.warning(f"B 事件 {begin_event.get('name', '')!r} 没有对应的 E 事件，按瞬时事件处理")
            slots[slot] = _parse_event(begin_event, begin_index, duration=0.0)

    events = [event for event in slots if event is not None]
    logger.debug(f"解析得到 {len(events)} 个事件（原始记录 {len(raw_events)} 条）")
    return TraceEventStore(events, thread_names, process_names)


def load_trace_file(file_path: Union[str, Path]) -> TraceEventStore:
    """
    读取 trace 文件（.json 或 .json.gz）并解析

    Raises:
        FileNotFoundError: 文件不存在
        ParseError: trace 结构损坏
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"文件不存在: {file_path}")

    logger.info(f"正在解析文件: {file_path}")
    store = load(file_path.read_bytes())
    logger.info(f"读取到 {len(store)} 个事件")
    return store
