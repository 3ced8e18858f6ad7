# -*- coding: utf-8 -*-
"""
异常定义

ParseError / InsufficientDataError 表示测量流程本身出错，
ConfigError 表示门禁配置不合法；二者都不同于门禁未通过。
"""


class FpsGateError(Exception):
    """所有异常的基类"""


class ParseError(FpsGateError):
    """Trace 结构损坏，无法解析"""

    def __init__(self, message: str, record_index: int = None):
        # args 保留原始参数，跨进程传递（pickle）后可按相同参数重建
        super().__init__(message, record_index)
        self.message = message
        self.record_index = record_index

    def __str__(self):
        if self.record_index is not None:
            return f"{self.message} (记录 #{self.record_index})"
        return self.message


class InsufficientDataError(FpsGateError):
    """没有可用的帧采样"""

    def __init__(self, message: str, available_samples: int = 0):
        super().__init__(message, available_samples)
        self.message = message
        self.available_samples = available_samples

    def __str__(self):
        return f"{self.message} (可用采样数: {self.available_samples})"


class ConfigError(FpsGateError):
    """门禁配置不合法"""
