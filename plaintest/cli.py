"""命令行入口：plaintest <script> [options]"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import EngineConfig
from .errors import ConfigError, PlaintestError, ScriptSyntaxError
from .runner import run_file

EXIT_OK = 0
EXIT_HALTED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plaintest",
        description="Run a plain-English browser test script",
    )
    parser.add_argument("script", help="path to the script file")
    parser.add_argument("--headless", dest="headless", action="store_true", default=None,
                        help="run the browser without a window")
    parser.add_argument("--headed", dest="headless", action="store_false", default=None,
                        help="show the browser window")
    parser.add_argument("--demo", action="store_true", default=None,
                        help="highlight every located element")
    parser.add_argument("--output-dir", help="directory for logs and screenshots")
    parser.add_argument("--timeout", type=float, help="seconds to keep looking for an element")
    parser.add_argument("--delay", type=float, help="seconds to pause before each command")
    parser.add_argument("--datatable", help="CSV file; the script runs once per row")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> EngineConfig:
    """环境变量打底，命令行参数覆盖"""
    config = EngineConfig.from_env()
    if args.headless is not None:
        config.headless = args.headless
    if args.demo is not None:
        config.demo = args.demo
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.timeout is not None:
        config.locate_timeout = args.timeout
    if args.delay is not None:
        config.command_delay = args.delay
    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    # 加载 .env 文件中的环境变量
    load_dotenv()

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
        results = asyncio.run(run_file(args.script, config, datatable=args.datatable))
    except ScriptSyntaxError as e:
        print(f"❌ 语法错误 {args.script}:{e}", file=sys.stderr)
        return EXIT_USAGE
    except ConfigError as e:
        print(f"❌ 配置错误: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (PlaintestError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_USAGE

    exit_code = EXIT_OK
    for name, result in results:
        if result.succeeded:
            print(f"✓ {name}: completed")
        else:
            failed = result.failed_statement
            where = f" at line {failed.line}: {failed.source}" if failed else ""
            print(f"❌ {name}: halted{where} ({result.error})")
            exit_code = EXIT_HALTED
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
