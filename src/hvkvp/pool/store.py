#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
KVP 记录存储

基于 PoolHandle + KvpRecord + KvpCodec，提供顺序扫描、
按 key 覆盖/追加 (upsert) 和压缩删除。
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import structlog

from ..config import KvpConfig
from ..core.codec import KvpCodec
from ..core.record_io import RecordFile
from ..core.schema import (
    KEY_CAPACITY, VALUE_CAPACITY, RECORD_SIZE,
    PoolId, KvpRecord, KvpEntry
)
from ..exceptions import PoolAccessError, CorruptedPoolError
from ..utils import find_key, key_matches
from .handle import PoolHandle

logger = structlog.get_logger(__name__)

# 只有 Guest Pool 允许本工具写入
WRITABLE_POOL = PoolId.GUEST


@dataclass
class UpsertResult:
    """upsert 结果"""
    overwritten: int = 0      # 原地覆盖的记录数
    appended: int = 0         # 追加的记录数

    @property
    def written(self) -> int:
        return self.overwritten + self.appended


class RecordStore:
    """
    KVP 记录存储

    所有操作作用于已打开的 PoolHandle，并共享其文件偏移。
    """

    def __init__(self, handle: PoolHandle, codec: KvpCodec):
        """
        Args:
            handle: 已打开的 Pool 句柄
            codec: 编码转换器
        """
        self._handle = handle
        self._codec = codec

    @property
    def handle(self) -> PoolHandle:
        return self._handle

    @property
    def codec(self) -> KvpCodec:
        return self._codec

    @property
    def _records(self) -> RecordFile:
        return self._handle.records

    # ==================== 编码 ====================

    def _warn_untranslatable(self, field: str, count: int) -> None:
        if count > 0:
            logger.warning(
                "KVP 字段包含无法转换的字符",
                field=field,
                count=count,
                pool=self._handle.pool.name,
            )

    def decode(self, record: KvpRecord) -> Tuple[str, str]:
        """记录 -> (key, value) 本地文本"""
        key, invalid = self._codec.decode(record.key)
        self._warn_untranslatable("key", invalid)
        value, invalid = self._codec.decode(record.value)
        self._warn_untranslatable("value", invalid)
        return key, value

    def encode(self, key: str, value: str) -> KvpRecord:
        """(key, value) 本地文本 -> 记录，超出容量的部分被截断"""
        key_bytes, invalid = self._codec.encode(key, KEY_CAPACITY)
        self._warn_untranslatable("key", invalid)
        value_bytes, invalid = self._codec.encode(value, VALUE_CAPACITY)
        self._warn_untranslatable("value", invalid)
        return KvpRecord(key=key_bytes, value=value_bytes)

    # ==================== 扫描 ====================

    def rewind(self) -> None:
        """移动到 Pool 开头，完整扫描前由调用方负责调用"""
        self._records.rewind()

    def scan(self) -> Iterator[KvpEntry]:
        """
        从当前偏移开始顺序扫描

        每次读取一条完整记录并解码。读到 0 字节时正常结束；
        读到不完整的记录时记录警告并结束，该记录不会返回。

        Yields:
            KvpEntry

        Raises:
            PoolIOError: 读取失败
        """
        records = self._records
        while True:
            offset = records.position
            data = records.read_frame()
            if not data:
                return
            if len(data) != RECORD_SIZE:
                logger.warning(
                    "KVP 记录已损坏",
                    pool=self._handle.pool.name,
                    offset=offset,
                    size=len(data),
                    expected=RECORD_SIZE,
                )
                return
            key, value = self.decode(KvpRecord.unpack(data))
            yield KvpEntry(key=key, value=value, pool=self._handle.pool, offset=offset)

    def find(self, keys: Sequence[str] = ()) -> Iterator[KvpEntry]:
        """从头扫描，只返回 key 被选中的条目 (keys 为空时返回全部)"""
        self.rewind()
        for entry in self.scan():
            if key_matches(keys, entry.key):
                yield entry

    # ==================== 写入 ====================

    def _check_writable(self) -> None:
        if self._handle.pool != WRITABLE_POOL:
            raise PoolAccessError(
                f"只允许修改 {WRITABLE_POOL.name} Pool: {self._handle.pool.name}"
            )
        if not self._handle.writable:
            raise PoolAccessError(f"Pool 以只读方式打开: {self._handle.path}")

    def upsert(self, pairs: Iterable[Tuple[str, str]]) -> UpsertResult:
        """
        写入 key/value

        从头扫描 Pool，遇到与待写入 key 匹配的记录时原地覆盖，
        该 key/value 随即标记为已处理 (只匹配第一次出现)。
        扫描结束后，未处理的 key/value 依次追加到文件末尾。
        key 或 value 为空的项直接忽略。

        Args:
            pairs: (key, value) 序列

        Returns:
            UpsertResult

        Raises:
            PoolAccessError: 非 Guest Pool 或只读句柄
            PoolIOError: 读写失败
        """
        self._check_writable()

        # 按编码后的字节判断是否为空，\0 开头的文本编码后同样为空
        pending: List[Tuple[str, str]] = []
        encoded: List[KvpRecord] = []
        for key, value in pairs:
            record = self.encode(key, value)
            if record.is_empty:
                continue
            pending.append((key, value))
            encoded.append(record)
        result = UpsertResult()
        records = self._records

        self.rewind()
        for entry in self.scan():
            if not pending:
                break
            flat = [item for pair in pending for item in pair]
            index = find_key(flat, entry.key, step=2)
            if index is None:
                continue
            key, _ = pending.pop(index // 2)
            record = encoded.pop(index // 2)
            records.overwrite_at(entry.offset, record.pack())
            result.overwritten += 1
            logger.info(
                "KVP key 已存在，原地覆盖",
                key=key,
                offset=entry.offset,
            )

        for record in encoded:
            records.append(record.pack())
            result.appended += 1

        return result

    # ==================== 删除 ====================

    def remove(self, keys: Sequence[str]) -> int:
        """
        按 key 压缩删除记录

        文件大小必须是 RECORD_SIZE 的整数倍，否则拒绝修改。
        每删除一条记录，后续字节整体前移一条记录并截断文件，
        然后从同一偏移继续扫描。

        Args:
            keys: 要删除的 key 列表，至少一个

        Returns:
            删除的记录数

        Raises:
            ValueError: keys 为空
            PoolAccessError: 非 Guest Pool 或只读句柄
            CorruptedPoolError: 文件大小未对齐
            PoolIOError: 读写失败
        """
        if not keys:
            raise ValueError("至少需要一个要删除的 key")
        self._check_writable()
        records = self._records

        size = records.size()
        if size % RECORD_SIZE != 0:
            raise CorruptedPoolError(self._handle.path, size, RECORD_SIZE)

        removed = 0
        self.rewind()
        # remove_at 把偏移留在被删除记录处，scan 下一步读到滑入的记录
        for entry in self.scan():
            if not key_matches(keys, entry.key):
                continue
            records.remove_at(entry.offset)
            removed += 1
            logger.info("KVP 记录已删除", key=entry.key, offset=entry.offset)

        return removed


# ==================== 便捷函数 ====================

def read_pools(
    codec: KvpCodec,
    keys: Sequence[str] = (),
    config: Optional[KvpConfig] = None,
    pools: Optional[Iterable[int]] = None
) -> Iterator[KvpEntry]:
    """
    依次读取各 Pool

    每个 Pool 单独打开、加共享锁、完整扫描后关闭，
    同一时刻最多持有一个 Pool 的锁。

    Args:
        codec: 编码转换器
        keys: 过滤 key，为空时返回全部
        config: 运行配置
        pools: 要读取的 Pool，默认全部 (按编号顺序)

    Yields:
        KvpEntry (包含来源 Pool)
    """
    for pool in (pools if pools is not None else PoolId):
        with PoolHandle(pool, writable=False, config=config) as handle:
            yield from RecordStore(handle, codec).find(keys)


def write_pairs(
    codec: KvpCodec,
    pairs: Iterable[Tuple[str, str]],
    config: Optional[KvpConfig] = None
) -> UpsertResult:
    """打开 Guest Pool (独占锁) 并写入 key/value"""
    with PoolHandle(WRITABLE_POOL, writable=True, config=config) as handle:
        return RecordStore(handle, codec).upsert(pairs)


def remove_keys(
    codec: KvpCodec,
    keys: Sequence[str],
    config: Optional[KvpConfig] = None
) -> int:
    """打开 Guest Pool (独占锁) 并删除 key"""
    with PoolHandle(WRITABLE_POOL, writable=True, config=config) as handle:
        return RecordStore(handle, codec).remove(keys)
