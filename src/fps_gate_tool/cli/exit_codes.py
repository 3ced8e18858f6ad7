"""
进程退出码

门禁未通过与测量流程出错使用不同的退出码，CI 据此区分性能回退和采集故障。
argparse 的用法错误保留其默认退出码 2。
"""

EXIT_PASSED = 0
EXIT_GATE_FAILED = 1
EXIT_MEASUREMENT_ERROR = 3
EXIT_CONFIG_ERROR = 4
