#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pytest 全局配置

提供临时 Pool 目录、配置、编码转换器和原始记录读写等共享 fixtures。
"""

import struct
from pathlib import Path
from typing import List, Tuple

import pytest
import structlog

from hvkvp.config import KvpConfig, DEFAULT_POOL_NAME, ENV_POOL_DIR, ENV_DEBUG
from hvkvp.core.codec import KvpCodec
from hvkvp.core.schema import (
    KEY_CAPACITY, VALUE_CAPACITY, RECORD_SIZE, PoolId
)


# ==================== 路径常量 ====================

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# src 目录 (子进程测试需要)
SRC_DIR = PROJECT_ROOT / "src"


# ==================== 原始记录工具 ====================

def raw_record(key: bytes, value: bytes) -> bytes:
    """按磁盘格式构造一条记录 (不经过 KvpRecord)"""
    return struct.pack(f'<{KEY_CAPACITY}s{VALUE_CAPACITY}s', key, value)


def raw_fields(data: bytes) -> List[Tuple[bytes, bytes]]:
    """把整个 Pool 内容拆成 (key, value) 逻辑字节列表"""
    assert len(data) % RECORD_SIZE == 0
    result = []
    for offset in range(0, len(data), RECORD_SIZE):
        frame = data[offset:offset + RECORD_SIZE]
        key = frame[:KEY_CAPACITY].split(b'\x00', 1)[0]
        value = frame[KEY_CAPACITY:].split(b'\x00', 1)[0]
        result.append((key, value))
    return result


# ==================== 基础 Fixtures ====================

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """测试不受宿主机环境变量和上一个测试的日志配置影响"""
    monkeypatch.delenv(ENV_POOL_DIR, raising=False)
    monkeypatch.delenv(ENV_DEBUG, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def pool_dir(tmp_path) -> Path:
    """
    创建包含全部 Pool 文件 (均为空) 的临时目录
    """
    directory = tmp_path / "pool"
    directory.mkdir()
    for pool in PoolId:
        (directory / f"{DEFAULT_POOL_NAME}{int(pool)}").write_bytes(b'')
    return directory


@pytest.fixture
def config(pool_dir) -> KvpConfig:
    """指向临时 Pool 目录的配置"""
    return KvpConfig(pool_dir=str(pool_dir) + "/")


@pytest.fixture
def codec() -> KvpCodec:
    """UTF-8 本地编码的转换器"""
    return KvpCodec("utf-8")


@pytest.fixture
def pool_file(pool_dir):
    """
    返回 Pool 文件路径的函数

    Usage:
        pool_file(PoolId.GUEST).write_bytes(...)
    """
    def _pool_file(pool: PoolId = PoolId.GUEST) -> Path:
        return pool_dir / f"{DEFAULT_POOL_NAME}{int(pool)}"
    return _pool_file


@pytest.fixture
def fill_pool(pool_file):
    """
    向 Pool 写入原始记录

    Usage:
        fill_pool([(b"a", b"1"), (b"b", b"2")], pool=PoolId.GUEST)
    """
    def _fill(records, pool: PoolId = PoolId.GUEST) -> Path:
        path = pool_file(pool)
        path.write_bytes(b''.join(raw_record(k, v) for k, v in records))
        return path
    return _fill


def lock_is_free(path: Path, exclusive: bool = True) -> bool:
    """
    在子进程中尝试非阻塞加锁

    fcntl 记录锁以进程为单位，同一进程内无法检测到自己持有的锁。
    """
    import subprocess
    import sys

    mode = 'r+b' if exclusive else 'rb'
    lock = 'LOCK_EX' if exclusive else 'LOCK_SH'
    script = (
        "import fcntl, sys\n"
        f"f = open({str(path)!r}, {mode!r})\n"
        "try:\n"
        f"    fcntl.lockf(f.fileno(), fcntl.{lock} | fcntl.LOCK_NB)\n"
        "except OSError:\n"
        "    sys.exit(1)\n"
    )
    return subprocess.run([sys.executable, "-c", script]).returncode == 0
