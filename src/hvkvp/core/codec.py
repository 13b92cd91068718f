#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
KVP 编码转换

在 Pool 的线上编码 (UTF-8) 与进程本地编码之间双向转换。
无法转换的单个字符会被替换并计数，不会导致操作失败；
只有字符集本身不可用时才抛出 CodecError。
"""

import codecs
import locale
from typing import Optional, Tuple

from ..exceptions import CodecError


WIRE_CHARSET = 'utf-8'

# 线上编码解码失败时的替代字符
DECODE_REPLACEMENT = '�'
# 目标编码无法表示的字符的替代字符
ENCODE_REPLACEMENT = '?'


def _resolve(charset: str) -> str:
    """
    解析字符集名称并验证其为文本编码

    Returns:
        规范化后的编码名称

    Raises:
        CodecError: 字符集不存在或不是文本编码
    """
    if not charset:
        raise CodecError(repr(charset), "字符集名称为空")
    try:
        name = codecs.lookup(charset).name
        ''.encode(name)
        b''.decode(name)
    except LookupError as e:
        raise CodecError(charset, str(e)) from e
    return name


def _decode_counting(data: bytes, encoding: str) -> Tuple[str, int]:
    """
    解码字节，无法解码的字节序列替换为 U+FFFD

    Returns:
        (文本, 无法转换的序列数)
    """
    parts = []
    invalid = 0
    while True:
        try:
            parts.append(data.decode(encoding))
            break
        except UnicodeDecodeError as e:
            parts.append(data[:e.start].decode(encoding))
            parts.append(DECODE_REPLACEMENT)
            invalid += 1
            data = data[max(e.end, e.start + 1):]
    return ''.join(parts), invalid


def _encode_counting(
    text: str,
    encoding: str,
    capacity: Optional[int] = None
) -> Tuple[bytes, str, int]:
    """
    逐字符编码，无法编码的字符替换为 '?'

    超出 capacity 时在字符边界截断，不会拆分多字节字符。

    Returns:
        (编码后的字节, 实际保留的文本, 无法转换的字符数)
    """
    encoder = codecs.getincrementalencoder(encoding)()
    out = bytearray()
    kept = []
    invalid = 0

    for ch in text:
        try:
            chunk = encoder.encode(ch)
        except UnicodeEncodeError:
            ch = ENCODE_REPLACEMENT
            chunk = encoder.encode(ch)
            invalid += 1

        if capacity is not None and len(out) + len(chunk) > capacity:
            break
        out += chunk
        kept.append(ch)

    return bytes(out), ''.join(kept), invalid


class KvpCodec:
    """
    KVP 编码转换器

    在启动时构造一次，显式传入每个 RecordStore 操作，
    不存在进程级的全局转换状态。
    """

    def __init__(self, local_charset: str, wire_charset: str = WIRE_CHARSET):
        """
        Args:
            local_charset: 本地编码 (如 'utf-8', 'koi8-r')
            wire_charset: 线上编码，默认 UTF-8

        Raises:
            CodecError: 任一字符集不可用
        """
        self._local = _resolve(local_charset)
        self._wire = _resolve(wire_charset)

    @classmethod
    def for_locale(cls) -> 'KvpCodec':
        """按进程当前 locale 的编码构造"""
        return cls(locale.getpreferredencoding(False))

    @property
    def local_charset(self) -> str:
        return self._local

    @property
    def wire_charset(self) -> str:
        return self._wire

    def decode(self, wire: bytes) -> Tuple[str, int]:
        """
        线上字节 -> 本地文本

        结果只包含本地编码能表示的字符。

        Args:
            wire: 字段的逻辑字节 (不含 \\0 填充)

        Returns:
            (文本, 无法转换的字符数)
        """
        text, invalid = _decode_counting(wire, self._wire)
        local, local_invalid = self.to_local(text)
        if invalid and local_invalid:
            # 已计数的 U+FFFD 在本地编码中再次被替换时不重复计数
            local_invalid -= sum(
                1 for before, after in zip(text, local)
                if before == DECODE_REPLACEMENT and after != before
            )
        return local, invalid + local_invalid

    def encode(self, text: str, capacity: int) -> Tuple[bytes, int]:
        """
        本地文本 -> 线上字节

        文本在第一个 \\0 处截止；结果不超过 capacity 字节，
        填充由 KvpRecord.pack() 完成。

        Args:
            text: 本地文本
            capacity: 目标字段容量 (bytes)

        Returns:
            (线上字节, 无法转换的字符数)
        """
        text = text.split('\x00', 1)[0]
        data, _, invalid = _encode_counting(text, self._wire, capacity)
        return data, invalid

    def to_local(self, text: str) -> Tuple[str, int]:
        """
        将文本限制为本地编码可表示的字符

        Returns:
            (文本, 被替换的字符数)
        """
        _, kept, invalid = _encode_counting(text, self._local)
        return kept, invalid

    def __repr__(self) -> str:
        return f"KvpCodec(local={self._local!r}, wire={self._wire!r})"
