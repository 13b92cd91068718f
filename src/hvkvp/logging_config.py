#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
structlog 配置

警告输出到 stderr。默认只输出错误，verbose 时输出警告和提示，
设置 HVKVP_DEBUG 时输出调试信息。
"""

import logging
import sys

import structlog

from .config import debug_enabled


def log_level(verbose: bool = False) -> int:
    """根据 verbose 和环境变量计算日志级别"""
    if debug_enabled():
        return logging.DEBUG
    return logging.INFO if verbose else logging.ERROR


def configure_logging(verbose: bool = False) -> None:
    """配置 structlog，可重复调用"""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level(verbose)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
