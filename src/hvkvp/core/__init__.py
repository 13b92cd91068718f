#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp 核心模块

提供记录结构定义、定长记录 I/O 封装和编码转换。
"""

from .schema import (
    KEY_CAPACITY, VALUE_CAPACITY, RECORD_SIZE, POOL_COUNT,
    PoolId, KvpRecord, KvpEntry
)
from .record_io import RecordFile
from .codec import KvpCodec, WIRE_CHARSET

__all__ = [
    "KEY_CAPACITY",
    "VALUE_CAPACITY",
    "RECORD_SIZE",
    "POOL_COUNT",
    "PoolId",
    "KvpRecord",
    "KvpEntry",
    "RecordFile",
    "KvpCodec",
    "WIRE_CHARSET",
]
