"""
Kubexporter Common Library

Logging, document I/O, prompts and small utilities shared by all modules.
"""

from .logger import get_logger, setup_logging, set_log_level, check

__all__ = ['get_logger', 'setup_logging', 'set_log_level', 'check']
