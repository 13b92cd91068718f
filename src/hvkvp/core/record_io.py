#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
定长记录 I/O 封装

提供 RecordFile 类，封装 Pool 文件的所有底层操作 (定位、读写、截断)，
使上层模块不需要直接操作文件指针。
所有操作共享同一个文件偏移，扫描与原地覆盖依赖这一点。
"""

import os
from typing import BinaryIO

from .schema import RECORD_SIZE
from ..exceptions import PoolIOError


class RecordFile:
    """
    定长记录文件

    封装 seek/read/write/truncate，OSError 统一转换为 PoolIOError。
    文件对象应以无缓冲模式 (buffering=0) 打开。
    """

    def __init__(self, file: BinaryIO, record_size: int = RECORD_SIZE):
        """
        Args:
            file: 以 'rb' 或 'r+b' 无缓冲模式打开的文件对象
            record_size: 单条记录字节数
        """
        self._file = file
        self._record_size = record_size

    @property
    def record_size(self) -> int:
        return self._record_size

    @property
    def fileno(self) -> int:
        return self._file.fileno()

    # ==================== 位置控制 ====================

    @property
    def position(self) -> int:
        """当前偏移"""
        try:
            return self._file.tell()
        except OSError as e:
            raise PoolIOError("无法获取文件偏移", e) from e

    def seek(self, position: int, whence: int = os.SEEK_SET) -> int:
        """
        移动到指定位置

        Returns:
            新的偏移
        """
        try:
            return self._file.seek(position, whence)
        except OSError as e:
            raise PoolIOError(f"无法定位到 {position}", e) from e

    def rewind(self) -> int:
        """移动到文件开头"""
        return self.seek(0)

    def size(self) -> int:
        """文件总大小 (bytes)"""
        try:
            return os.fstat(self.fileno).st_size
        except OSError as e:
            raise PoolIOError("无法获取文件大小", e) from e

    # ==================== 记录读写 ====================

    def read_frame(self) -> bytes:
        """
        从当前位置读取一条记录

        返回值可能短于 record_size: 0 字节表示文件结束，
        其他长度表示记录损坏，由调用方判断。
        """
        try:
            return self._file.read(self._record_size) or b''
        except OSError as e:
            raise PoolIOError("无法读取 KVP 记录", e) from e

    def write_frame(self, data: bytes) -> int:
        """
        在当前位置写入一条记录

        Raises:
            ValueError: 数据长度不等于 record_size
            PoolIOError: 写入失败或写入不完整
        """
        if len(data) != self._record_size:
            raise ValueError(
                f"记录长度错误: 期望 {self._record_size} 字节，实际 {len(data)} 字节"
            )
        try:
            written = self._file.write(data)
        except OSError as e:
            raise PoolIOError("无法写入 KVP 记录", e) from e
        if written != len(data):
            raise PoolIOError(f"写入不完整: {written}/{len(data)} 字节")
        return written

    def overwrite_at(self, offset: int, data: bytes) -> int:
        """
        在指定位置覆盖一条记录

        写入后偏移停在被覆盖记录之后，扫描可以直接继续。
        """
        self.seek(offset)
        return self.write_frame(data)

    def append(self, data: bytes) -> int:
        """
        在文件末尾追加一条记录

        Returns:
            新记录的偏移
        """
        offset = self.seek(0, os.SEEK_END)
        self.write_frame(data)
        return offset

    def truncate_to(self, length: int) -> None:
        """截断文件到指定长度"""
        try:
            os.ftruncate(self.fileno, length)
        except OSError as e:
            raise PoolIOError("无法截断 Pool 文件", e) from e

    def remove_at(self, offset: int) -> int:
        """
        删除指定位置的记录 (压缩删除)

        读取该记录之后的全部字节，写回到该记录的位置，再截断文件。
        完成后偏移停在 offset，下一次读取得到滑入此位置的记录。

        Returns:
            删除后的文件大小
        """
        tail_offset = offset + self._record_size
        tail_size = max(0, self.size() - tail_offset)

        try:
            remainder = os.pread(self.fileno, tail_size, tail_offset)
        except OSError as e:
            raise PoolIOError("无法读取后续 KVP 记录", e) from e

        try:
            written = os.pwrite(self.fileno, remainder, offset)
        except OSError as e:
            raise PoolIOError("无法写回后续 KVP 记录", e) from e
        if written != len(remainder):
            raise PoolIOError("读取与写入的字节数不一致")

        new_size = offset + written
        self.truncate_to(new_size)
        self.seek(offset)
        return new_size
