#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Pool 模块

用于打开、扫描和修改 Hyper-V KVP Pool 文件。
"""

from .handle import PoolHandle
from .store import (
    RecordStore,
    UpsertResult,
    WRITABLE_POOL,
    read_pools,
    write_pairs,
    remove_keys,
)

__all__ = [
    "PoolHandle",
    "RecordStore",
    "UpsertResult",
    "WRITABLE_POOL",
    "read_pools",
    "write_pairs",
    "remove_keys",
]
