#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
hvkvp 命令行

Usage:
    hvkvp [-v] [-q] [-d CHAR] [KEY ...]          # 读取所有 Pool
    hvkvp [-v] -w KEY VALUE [KEY VALUE ...]      # 写入 Guest Pool
    hvkvp [-v] -r KEY [KEY ...]                  # 从 Guest Pool 删除
"""

import argparse
import locale
import sys
from typing import List, Optional, Sequence, TextIO

from .config import KvpConfig
from .core.codec import KvpCodec
from .core.schema import KvpEntry
from .exceptions import HvKvpError, EX_OK, EX_USAGE
from .logging_config import configure_logging
from .pool.store import read_pools, write_pairs, remove_keys
from .utils import pool_path

QUOTECHAR = '"'
EOL = '\n'

READ = "read"
WRITE = "write"
REMOVE = "remove"


class UsageError(HvKvpError):
    """命令行参数错误"""
    exit_code = EX_USAGE


class _Parser(argparse.ArgumentParser):
    """参数错误时以 EX_USAGE 退出"""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: {message}\n{self.epilog}\n")


def _delimiter(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("分隔符不能为空")
    return value[0]


def _locale_info() -> str:
    """当前 locale 与编码，显示在帮助信息末尾"""
    name = locale.setlocale(locale.LC_CTYPE)
    codeset = locale.getpreferredencoding(False)
    return f"locale({name}), codeset({codeset})"


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="hvkvp",
        description="读写 Hyper-V Data Exchange (KVP) Pool",
        epilog=_locale_info(),
    )
    parser.add_argument(
        "-v", dest="verbose", action="store_true",
        help="详细输出: 显示 Pool 路径和警告"
    )
    parser.add_argument(
        "-q", dest="quoting", action="store_true",
        help=f"用 {QUOTECHAR} 包裹 key 和 value"
    )
    parser.add_argument(
        "-d", dest="delimiter", type=_delimiter, default="=",
        help="key 与 value 之间的分隔符 (默认 '=')"
    )
    parser.add_argument(
        "-w", dest="command", action="store_const", const=WRITE, default=READ,
        help="写入 key value ..."
    )
    parser.add_argument(
        "-r", dest="command", action="store_const", const=REMOVE,
        help="删除 key ..."
    )
    parser.add_argument("args", nargs="*", metavar="ARG", help="key 或 key value 对")
    return parser


def _quote(text: str, quoting: bool) -> str:
    return f"{QUOTECHAR}{text}{QUOTECHAR}" if quoting else text


def format_entry(
    entry: KvpEntry,
    delimiter: str = "=",
    quoting: bool = False,
    source: Optional[str] = None
) -> str:
    """
    格式化一个条目

    source 不为 None 时 (verbose) 在行首输出 Pool 文件路径。
    """
    fields = [entry.key, entry.value]
    if source is not None:
        fields.insert(0, source)
    return delimiter.join(_quote(field, quoting) for field in fields) + EOL


def _pairs(args: Sequence[str]) -> List[tuple]:
    if not args:
        raise UsageError("必须在命令行中给出 key 和 value")
    if len(args) % 2 != 0:
        raise UsageError("key 和 value 必须成对出现")
    return list(zip(args[0::2], args[1::2]))


def run(
    options: argparse.Namespace,
    codec: KvpCodec,
    config: KvpConfig,
    out: TextIO
) -> int:
    """执行解析后的命令"""
    if options.command == WRITE:
        write_pairs(codec, _pairs(options.args), config=config)
    elif options.command == REMOVE:
        if not options.args:
            raise UsageError("至少需要一个要删除的 key")
        remove_keys(codec, options.args, config=config)
    else:
        for entry in read_pools(codec, options.args, config=config):
            source = None
            if options.verbose:
                source = pool_path(entry.pool, config.pool_dir, config.pool_name)
            out.write(format_entry(entry, options.delimiter, options.quoting, source))
    return EX_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """命令行入口"""
    parser = build_parser()
    options = parser.parse_args(argv)
    configure_logging(verbose=options.verbose)

    try:
        config = KvpConfig.from_env()
        if config.local_charset:
            codec = KvpCodec(config.local_charset, config.wire_charset)
        else:
            codec = KvpCodec.for_locale()
        return run(options, codec, config, sys.stdout)
    except HvKvpError as e:
        sys.stdout.flush()
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
