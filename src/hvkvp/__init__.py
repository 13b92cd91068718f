#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp - Hyper-V Data Exchange (KVP) Pool 读写库

读取、写入和压缩删除 Hyper-V 集成服务维护的 KVP Pool 文件。
"""

__version__ = "0.1.0"

# 异常类
from .exceptions import (
    HvKvpError,
    CodecError,
    PoolPathError,
    PoolOpenError,
    PoolLockError,
    PoolCloseError,
    PoolIOError,
    PoolAccessError,
    CorruptedPoolError,
)

# 数据结构
from .core import (
    KEY_CAPACITY,
    VALUE_CAPACITY,
    RECORD_SIZE,
    POOL_COUNT,
    PoolId,
    KvpRecord,
    KvpEntry,
    KvpCodec,
)

# 配置与工具
from .config import KvpConfig
from .utils import ALL_KEYS, find_key, key_matches, pool_path

# Pool 操作
from .pool import (
    PoolHandle,
    RecordStore,
    UpsertResult,
    read_pools,
    write_pairs,
    remove_keys,
)

__all__ = [
    # 版本
    "__version__",
    # 异常
    "HvKvpError",
    "CodecError",
    "PoolPathError",
    "PoolOpenError",
    "PoolLockError",
    "PoolCloseError",
    "PoolIOError",
    "PoolAccessError",
    "CorruptedPoolError",
    # 数据结构
    "KEY_CAPACITY",
    "VALUE_CAPACITY",
    "RECORD_SIZE",
    "POOL_COUNT",
    "PoolId",
    "KvpRecord",
    "KvpEntry",
    "KvpCodec",
    # 配置与工具
    "KvpConfig",
    "ALL_KEYS",
    "find_key",
    "key_matches",
    "pool_path",
    # Pool
    "PoolHandle",
    "RecordStore",
    "UpsertResult",
    "read_pools",
    "write_pairs",
    "remove_keys",
]
