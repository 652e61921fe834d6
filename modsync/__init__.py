"""modsync - 自动化账户模块同步引擎"""

__version__ = "0.3.0"
