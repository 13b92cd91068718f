#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp 异常定义

所有异常均继承自 HvKvpError，便于统一捕获。
每个异常携带 exit_code (sysexits 约定)，由命令行层转换为进程退出码。
"""

# sysexits.h
EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70
EX_IOERR = 74


class HvKvpError(Exception):
    """hvkvp 基础异常"""
    exit_code: int = EX_SOFTWARE


class CodecError(HvKvpError):
    """
    编码转换异常

    字符集不存在或无法建立转换时抛出，属于配置错误。
    单个字符无法转换不会抛出此异常，只计数。
    """
    def __init__(self, charset: str, reason: str = None):
        self.charset = charset
        message = f"无法创建编码转换: {charset}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class PoolPathError(HvKvpError):
    """Pool 文件路径无法构造"""
    pass


class PoolOpenError(HvKvpError):
    """
    Pool 文件打开失败

    Pool 文件必须由 Hyper-V 守护进程预先创建，本库从不创建。
    """
    exit_code = EX_NOINPUT

    def __init__(self, path: str, error: OSError):
        self.path = path
        self.errno = error.errno
        super().__init__(f"{path}: {error.strerror or error}")


class PoolLockError(HvKvpError):
    """加锁或解锁失败"""
    exit_code = EX_IOERR

    def __init__(self, path: str, action: str, error: OSError):
        self.path = path
        self.action = action
        self.errno = error.errno
        super().__init__(f"无法{action}: {path}: {error.strerror or error}")


class PoolCloseError(HvKvpError):
    """Pool 文件关闭失败"""
    exit_code = EX_IOERR

    def __init__(self, path: str, error: OSError):
        self.path = path
        self.errno = error.errno
        super().__init__(f"无法关闭 Pool 文件: {path}: {error.strerror or error}")


class PoolIOError(HvKvpError):
    """
    Pool 读写异常

    读取、写入、定位、截断失败时抛出。
    不做任何回滚，文件保持最后一次成功系统调用后的状态。
    """
    exit_code = EX_IOERR

    def __init__(self, message: str, error: OSError = None):
        self.errno = error.errno if error is not None else None
        if error is not None:
            message = f"{message}: {error.strerror or error}"
        super().__init__(message)


class PoolAccessError(HvKvpError):
    """
    访问模式错误

    尝试修改只读 Pool 或使用只读句柄写入时抛出。
    """
    pass


class CorruptedPoolError(HvKvpError):
    """
    Pool 数据损坏

    文件大小不是记录大小的整数倍时抛出，此时拒绝压缩删除。
    """
    exit_code = EX_DATAERR

    def __init__(self, path: str, size: int, record_size: int):
        self.path = path
        self.size = size
        self.record_size = record_size
        super().__init__(
            f"KVP 记录已损坏: {path} 大小 {size} 不是 {record_size} 的整数倍"
        )
