"""
CLI命令模块
"""

from .check import CheckCommand
from .summary import SummaryCommand

__all__ = ['CheckCommand', 'SummaryCommand']
