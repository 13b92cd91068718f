#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp 配置

Pool 目录与文件名前缀取自 hv_kvp_daemon 的定义，
可通过环境变量 HVKVP_POOL_DIR 覆盖目录。
"""

import os
from dataclasses import dataclass
from typing import Optional

from .core.codec import WIRE_CHARSET


# hv_kvp_daemon.c
DEFAULT_POOL_DIR = "/var/db/hyperv/pool/"
DEFAULT_POOL_NAME = ".kvp_pool_"

ENV_POOL_DIR = "HVKVP_POOL_DIR"
ENV_DEBUG = "HVKVP_DEBUG"


@dataclass
class KvpConfig:
    """
    运行配置

    local_charset 为 None 时由调用方按 locale 决定。
    """
    pool_dir: str = DEFAULT_POOL_DIR
    pool_name: str = DEFAULT_POOL_NAME
    local_charset: Optional[str] = None
    wire_charset: str = WIRE_CHARSET

    @classmethod
    def from_env(cls, **overrides) -> 'KvpConfig':
        """
        从环境变量构造

        Args:
            **overrides: 覆盖任意字段
        """
        env_dir = os.environ.get(ENV_POOL_DIR)
        if env_dir:
            overrides.setdefault("pool_dir", env_dir)
        return cls(**overrides)


def resolve_config(config: Optional[KvpConfig]) -> KvpConfig:
    """None 表示使用环境变量配置"""
    return config if config is not None else KvpConfig.from_env()


def debug_enabled() -> bool:
    return bool(os.environ.get(ENV_DEBUG))
