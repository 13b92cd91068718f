#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Pool 文件句柄

打开指定 Pool 文件并加整文件建议锁 (读共享 / 写独占)，
关闭时先解锁再关闭文件，两者作为一个整体完成。
"""

import fcntl
from typing import BinaryIO, Optional

import structlog

from ..config import KvpConfig, resolve_config
from ..core.record_io import RecordFile
from ..core.schema import PoolId
from ..exceptions import (
    PoolOpenError,
    PoolLockError,
    PoolCloseError,
)
from ..utils import pool_path, validate_pool

logger = structlog.get_logger(__name__)


class PoolHandle:
    """
    Pool 文件句柄

    - 只读: 'rb' + LOCK_SH
    - 读写: 'r+b' + LOCK_EX

    加锁是阻塞的，Hyper-V 守护进程持有锁时会一直等待。
    从不创建 Pool 文件。
    """

    def __init__(
        self,
        pool: int,
        writable: bool = False,
        config: Optional[KvpConfig] = None
    ):
        """
        Args:
            pool: Pool 编号 (PoolId)
            writable: 是否以读写方式打开并加独占锁
            config: 运行配置，None 时从环境变量读取

        Raises:
            ValueError: Pool 编号无效
            PoolPathError: 路径无法构造
        """
        config = resolve_config(config)
        self._pool = validate_pool(pool)
        self._writable = writable
        self._path = pool_path(self._pool, config.pool_dir, config.pool_name)
        self._file: Optional[BinaryIO] = None
        self._records: Optional[RecordFile] = None

    def open(self) -> 'PoolHandle':
        """
        打开文件并加锁

        Raises:
            PoolOpenError: 文件不存在或无权限
            PoolLockError: 加锁失败
        """
        if self._file is not None:
            return self

        mode = 'r+b' if self._writable else 'rb'
        try:
            file = open(self._path, mode, buffering=0)
        except OSError as e:
            raise PoolOpenError(self._path, e) from e

        lock_type = fcntl.LOCK_EX if self._writable else fcntl.LOCK_SH
        try:
            fcntl.lockf(file.fileno(), lock_type)
        except OSError as e:
            file.close()
            raise PoolLockError(self._path, "加锁", e) from e

        self._file = file
        self._records = RecordFile(file)
        logger.debug(
            "pool opened",
            pool=self._pool.name,
            path=self._path,
            writable=self._writable,
        )
        return self

    def close(self) -> None:
        """
        解锁并关闭文件

        Raises:
            PoolLockError: 解锁失败
            PoolCloseError: 关闭失败
        """
        if self._file is None:
            return

        file = self._file
        self._file = None
        self._records = None

        try:
            fcntl.lockf(file.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            try:
                file.close()
            except OSError:
                pass
            raise PoolLockError(self._path, "解锁", e) from e

        try:
            file.close()
        except OSError as e:
            raise PoolCloseError(self._path, e) from e

        logger.debug("pool closed", pool=self._pool.name, path=self._path)

    @property
    def pool(self) -> PoolId:
        return self._pool

    @property
    def path(self) -> str:
        return self._path

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def is_open(self) -> bool:
        return self._file is not None

    @property
    def file(self) -> Optional[BinaryIO]:
        """底层文件对象 (无缓冲)"""
        return self._file

    @property
    def records(self) -> RecordFile:
        """
        定长记录 I/O

        Raises:
            RuntimeError: 句柄未打开
        """
        if self._records is None:
            raise RuntimeError(f"Pool 未打开: {self._path}")
        return self._records

    def __enter__(self) -> 'PoolHandle':
        return self.open()

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        mode = "rw" if self._writable else "ro"
        return f"PoolHandle({self._pool.name}, {mode}, {state}, {self._path!r})"
