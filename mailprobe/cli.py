"""Command-line entry point: load data, then verify it chunk by chunk."""

from __future__ import annotations

import argparse
import subprocess
import time
from typing import Sequence

from .config import load_config
from .controller import Verifier
from .emaildata import EmailStore, email_begin
from .runlog import init_run_log

BANNER = "  _____                 _ _     _____           _ \n | ____|_ __ ___   __ _(_) |   |_   _|__   ___ | |\n |  _| | '_ ` _ \\ / _` | | |_____| |/ _ \\ / _ \\| |\n | |___| | | | | | (_| | | |_____| | (_) | (_) | |\n |_____|_| |_| |_|\\__,_|_|_|     |_|\\___/ \\___/|_|\n                                                  "


def chunk_emails(emails: Sequence[str], chunk_size: int) -> list[list[str]]:
    """Split ``emails`` into consecutive chunks of at most ``chunk_size``."""
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")
    items = list(emails)
    return [items[start:start + chunk_size] for start in range(0, len(items), chunk_size)]


def dial_tool(
    command: str,
    args: Sequence[str] | None = None,
    retries: int = 5,
    delay: float = 3.0,
) -> str:
    """Run a command, retrying on failure; return its standard output."""
    arguments = list(args or [])
    label = f"[{command} [{' '.join(arguments)}]]"
    for attempt in range(1, retries + 1):
        try:
            result = subprocess.run(
                [command, *arguments], capture_output=True, check=True
            )
        except (subprocess.CalledProcessError, OSError) as exc:
            print(f"命令 {label} 执行失败({attempt}/{retries}): {exc}")
            time.sleep(delay)
            continue
        output = result.stdout.decode("utf-8", "replace")
        print(f"命令 {label} 执行成功:\n{output}")
        return output
    raise RuntimeError(f"命令 {label} 重试 {retries} 次仍失败")


def verify_flags(mode: str) -> tuple[bool, bool, bool]:
    """Map a verify mode to the (regex, mx, smtp) checks it enables."""
    if mode == "mx":
        return True, True, False
    if mode == "regex":
        return True, False, False
    return True, True, True


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mailprobe", description="Verify e-mail addresses.")
    parser.add_argument("--config", default="../config", help="config file or directory")
    parser.add_argument("--log-dir", default="../logs/", help="directory for run logs")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    with init_run_log(args.log_dir, config.app.mode) as log:
        log.debug("配置项加载完毕")
        print(BANNER)
        store = EmailStore()
        try:
            emails = email_begin(store, config.data)
        except (OSError, ValueError) as exc:
            log.debug("邮箱数据读取失败", exc)
            return 1
        log.debug(f"邮箱数据读取完毕,邮箱数量:{len(emails)}")

        verifier = Verifier(config=config, store=store, log=log)
        regex, mx, smtp = verify_flags(config.app.verify_mode)
        for index, chunk in enumerate(chunk_emails(emails, config.app.chunk_size), 1):
            print("====正在运行第一个数据分片===========", index)
            time.sleep(5)
            try:
                dial_tool("ip", ["address"])
            except RuntimeError:
                log.debug("ip address 指令")
            time.sleep(5)
            try:
                dial_tool("pppoe-start")
            except RuntimeError:
                log.debug("pppoe-start 指令")
            time.sleep(10)
            verifier.run(chunk, regex, mx, smtp)
            try:
                dial_tool("pppoe-stop")
            except RuntimeError:
                log.debug("pppoe-stop 指令")
            time.sleep(10)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())