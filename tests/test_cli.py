#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
命令行测试

测试 hvkvp 的读取、写入、删除命令，输出格式和退出码。
"""

import pytest

from hvkvp.cli import main, format_entry
from hvkvp.core.schema import KvpEntry, PoolId, RECORD_SIZE
from hvkvp.exceptions import EX_OK, EX_USAGE, EX_DATAERR, EX_NOINPUT

from conftest import raw_record, raw_fields


@pytest.fixture(autouse=True)
def pool_env(_isolated_env, monkeypatch, pool_dir):
    """命令行通过环境变量找到临时 Pool 目录"""
    monkeypatch.setenv("HVKVP_POOL_DIR", str(pool_dir))
    return pool_dir


# ==================== 输出格式测试 ====================

class TestFormatEntry:
    """format_entry 测试"""

    ENTRY = KvpEntry(key="hostname", value="box1", pool=PoolId.GUEST)

    def test_default(self):
        assert format_entry(self.ENTRY) == "hostname=box1\n"

    def test_delimiter(self):
        assert format_entry(self.ENTRY, delimiter=":") == "hostname:box1\n"

    def test_quoting(self):
        assert format_entry(self.ENTRY, quoting=True) == '"hostname"="box1"\n'

    def test_verbose_source(self):
        line = format_entry(self.ENTRY, quoting=True, source="/p/.kvp_pool_1")
        assert line == '"/p/.kvp_pool_1"="hostname"="box1"\n'


# ==================== 读取测试 ====================

class TestRead:
    """读取命令"""

    def test_read_all(self, fill_pool, capsys):
        fill_pool([(b'a', b'1')], pool=PoolId.EXTERNAL)
        fill_pool([(b'b', b'2')], pool=PoolId.GUEST)

        assert main([]) == EX_OK
        assert capsys.readouterr().out == "a=1\nb=2\n"

    def test_read_filtered(self, fill_pool, capsys):
        fill_pool([(b'a', b'1'), (b'B', b'2'), (b'c', b'3')])

        assert main(["b", "C"]) == EX_OK
        assert capsys.readouterr().out == "B=2\nc=3\n"

    def test_read_verbose(self, fill_pool, pool_dir, capsys):
        fill_pool([(b'a', b'1')])

        assert main(["-v", "-d", ":"]) == EX_OK
        assert capsys.readouterr().out == f"{pool_dir}/.kvp_pool_1:a:1\n"

    def test_missing_pool(self, fill_pool, pool_file, capsys):
        """缺少 Pool 文件时已输出的内容保留"""
        fill_pool([(b'a', b'1')], pool=PoolId.EXTERNAL)
        pool_file(PoolId.GUEST).unlink()

        assert main([]) == EX_NOINPUT
        captured = capsys.readouterr()
        assert captured.out == "a=1\n"
        assert ".kvp_pool_1" in captured.err


# ==================== 写入测试 ====================

class TestWrite:
    """写入命令"""

    def test_write(self, pool_file):
        assert main(["-w", "hostname", "box1"]) == EX_OK
        assert pool_file().read_bytes() == raw_record(b'hostname', b'box1')

    def test_overwrite(self, fill_pool, pool_file):
        fill_pool([(b'k1', b'old'), (b'k2', b'x')])

        assert main(["-w", "k1", "new", "k3", "y"]) == EX_OK
        assert raw_fields(pool_file().read_bytes()) == [
            (b'k1', b'new'), (b'k2', b'x'), (b'k3', b'y')
        ]

    def test_write_requires_arguments(self, capsys):
        assert main(["-w"]) == EX_USAGE
        assert capsys.readouterr().err

    def test_write_requires_pairs(self, pool_file):
        assert main(["-w", "k1", "v1", "k2"]) == EX_USAGE
        assert pool_file().read_bytes() == b''


# ==================== 删除测试 ====================

class TestRemove:
    """删除命令"""

    def test_remove(self, fill_pool, pool_file):
        fill_pool([(b'a', b'1'), (b'b', b'2'), (b'c', b'3')])

        assert main(["-r", "b"]) == EX_OK
        assert raw_fields(pool_file().read_bytes()) == [(b'a', b'1'), (b'c', b'3')]

    def test_remove_requires_keys(self):
        assert main(["-r"]) == EX_USAGE

    def test_remove_misaligned(self, pool_file, capsys):
        original = raw_record(b'a', b'1') + b'x'
        pool_file().write_bytes(original)

        assert main(["-r", "a"]) == EX_DATAERR
        assert pool_file().read_bytes() == original
        assert str(RECORD_SIZE) in capsys.readouterr().err


# ==================== 参数错误测试 ====================

class TestUsage:
    """参数解析"""

    def test_unknown_option(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["-x"])
        assert exc_info.value.code == EX_USAGE

    def test_empty_delimiter(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["-d", ""])
        assert exc_info.value.code == EX_USAGE

    def test_usage_shows_codeset(self, capsys):
        with pytest.raises(SystemExit):
            main(["-x"])
        assert "codeset(" in capsys.readouterr().err

    def test_help_shows_codeset(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-h"])
        assert exc_info.value.code == EX_OK
        assert "codeset(" in capsys.readouterr().out
