#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
KVP 数据结构定义

定义 Pool 编号、KVP 记录 (KvpRecord) 以及解码后的条目 (KvpEntry)。
常量与 Hyper-V 集成服务的 hv_kvp.h 保持一致。
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar


# ==================== 常量定义 ====================

# HV_KVP_EXCHANGE_MAX_KEY_SIZE / HV_KVP_EXCHANGE_MAX_VALUE_SIZE
KEY_CAPACITY = 512
VALUE_CAPACITY = 2048

RECORD_SIZE = KEY_CAPACITY + VALUE_CAPACITY


# ==================== Pool 编号 ====================

class PoolId(IntEnum):
    """KVP Pool 编号 (hv_kvp_exchg_pool)"""
    EXTERNAL = 0
    GUEST = 1
    AUTO = 2
    AUTO_EXTERNAL = 3
    AUTO_INTERNAL = 4


POOL_COUNT = len(PoolId)


# ==================== KVP 记录 ====================

@dataclass
class KvpRecord:
    """
    KVP 记录 (2560 bytes)

    磁盘上为 key 缓冲区紧跟 value 缓冲区，均以 \\0 填充到固定容量。
    内存中只保存逻辑字节 (不含填充)，填充仅在 pack() 时发生。
    """
    FORMAT: ClassVar[str] = f'<{KEY_CAPACITY}s{VALUE_CAPACITY}s'
    SIZE: ClassVar[int] = RECORD_SIZE

    key: bytes = b''
    value: bytes = b''

    @property
    def is_empty(self) -> bool:
        """key 或 value 为空的记录不会被写入"""
        return not self.key or not self.value

    def pack(self) -> bytes:
        """
        序列化为字节

        Raises:
            ValueError: 字段超出固定容量
        """
        if len(self.key) > KEY_CAPACITY:
            raise ValueError(f"key 超出容量: {len(self.key)} > {KEY_CAPACITY}")
        if len(self.value) > VALUE_CAPACITY:
            raise ValueError(
                f"value 超出容量: {len(self.value)} > {VALUE_CAPACITY}"
            )
        return struct.pack(self.FORMAT, self.key, self.value)

    @classmethod
    def unpack(cls, data: bytes) -> 'KvpRecord':
        """
        从字节反序列化

        每个字段截断到第一个 \\0 (C 字符串语义)。

        Raises:
            ValueError: 数据长度不等于 RECORD_SIZE
        """
        try:
            key, value = struct.unpack(cls.FORMAT, data)
        except struct.error as e:
            raise ValueError(
                f"记录长度错误: 期望 {cls.SIZE} 字节，实际 {len(data)} 字节"
            ) from e
        return cls(key=_cstring(key), value=_cstring(value))


def _cstring(buffer: bytes) -> bytes:
    """截断到第一个 \\0"""
    end = buffer.find(b'\x00')
    return buffer if end < 0 else buffer[:end]


# ==================== 解码后的条目 ====================

@dataclass(frozen=True)
class KvpEntry:
    """
    解码后的 KVP 条目

    key/value 已转换为本地文本，附带来源 Pool 和记录在文件中的偏移。
    """
    key: str
    value: str
    pool: PoolId
    offset: int = 0
