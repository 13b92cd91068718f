#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp 工具函数

提供 Pool 路径构造和 key 匹配等通用功能。
"""

import os
from typing import Optional, Sequence

from .core.schema import PoolId, POOL_COUNT
from .exceptions import PoolPathError


# find_key 返回值: 没有过滤参数，所有 key 均被选中
ALL_KEYS = -1


def validate_pool(pool: int) -> PoolId:
    """
    验证 Pool 编号

    Raises:
        ValueError: 编号超出 0..POOL_COUNT-1
    """
    try:
        return PoolId(pool)
    except ValueError:
        raise ValueError(
            f"无效的 Pool 编号: {pool!r} (有效范围 0-{POOL_COUNT - 1})"
        ) from None


def pool_path(pool: int, pool_dir: str, pool_name: str) -> str:
    """
    构造 Pool 文件路径

    路径 = 目录 + 文件名前缀 + 十进制 Pool 编号 (无填充)

    Examples:
        >>> pool_path(1, "/var/db/hyperv/pool/", ".kvp_pool_")
        '/var/db/hyperv/pool/.kvp_pool_1'

    Raises:
        ValueError: Pool 编号无效
        PoolPathError: 目录或前缀无法构成合法路径
    """
    pool = validate_pool(pool)
    if not pool_dir:
        raise PoolPathError("无法构造 Pool 路径: 目录为空")
    if not pool_name or os.sep in pool_name:
        raise PoolPathError(f"无法构造 Pool 路径: 无效的文件名前缀 {pool_name!r}")
    path = os.path.join(pool_dir, f"{pool_name}{int(pool)}")
    if '\x00' in path:
        raise PoolPathError(f"无法构造 Pool 路径: 路径包含 \\0: {path!r}")
    return path


def find_key(args: Sequence[str], key: str, step: int = 1) -> Optional[int]:
    """
    在参数列表中查找 key

    长度相等且忽略大小写的子串匹配，效果等同于忽略大小写的相等比较。

    Args:
        args: 过滤参数 (step=1 为 key 列表，step=2 为 key/value 交替列表)
        key: 待判断的 key
        step: 1 或 2

    Returns:
        - ALL_KEYS: 参数为空，所有 key 均被选中
        - 匹配参数在 args 中的下标
        - None: 未匹配

    Examples:
        >>> find_key([], "anything")
        -1
        >>> find_key(["HostName"], "hostname")
        0
        >>> find_key(["k1", "v1", "k2", "v2"], "K2", step=2)
        2
        >>> find_key(["hostname"], "host") is None
        True
    """
    if step not in (1, 2):
        raise ValueError(f"step 只能是 1 或 2: {step}")
    if not args:
        return ALL_KEYS

    needle = key.lower()
    for index in range(0, len(args), step):
        arg = args[index]
        if len(arg) == len(key) and needle in arg.lower():
            return index
    return None


def key_matches(args: Sequence[str], key: str) -> bool:
    """key 是否被过滤参数选中 (单 key 模式)"""
    return find_key(args, key) is not None
