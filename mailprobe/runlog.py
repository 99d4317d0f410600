"""Run log: console echo plus JSON lines in an hourly log file."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO


def _format_error(err: object) -> str:
    return "<nil>" if err is None else str(err)


def format_email_line(
    email: str,
    kind: str,
    err: object,
    is_true_email: bool,
    is_true_domain: bool,
) -> str:
    """Format one verification result as an aligned log line."""
    email_flag = str(bool(is_true_email)).lower()
    domain_flag = str(bool(is_true_domain)).lower()
    return (
        f"[邮箱: {email:<35}] [方式: {kind:<5}] "
        f"[邮箱正确: {email_flag:<5}] "
        f"[域名是否合法: {domain_flag:<5}] "
        f"[错误: {_format_error(err)}]"
    )


def _iso8601(moment: datetime) -> str:
    stamp = moment.strftime("%Y-%m-%dT%H:%M:%S")
    stamp += f".{moment.microsecond // 1000:03d}"
    offset = moment.utcoffset()
    if offset is None or offset.total_seconds() == 0:
        return stamp + "Z"
    return stamp + moment.strftime("%z")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created).astimezone()
        return json.dumps(
            {"level": record.levelname, "time": _iso8601(moment), "msg": record.getMessage()},
            ensure_ascii=False,
        )


class RunLog:
    """Writes messages to the console and as JSON lines to a log file."""

    def __init__(self, path: str | Path, mode: str = "release", stream: TextIO | None = None):
        self.path = Path(path)
        self._stream = stream
        self._logger = logging.Logger(
            f"mailprobe.runlog.{id(self)}",
            level=logging.DEBUG if mode == "debug" else logging.INFO,
        )
        self._logger.propagate = False
        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(_JsonFormatter())
        self._logger.addHandler(self._handler)

    def _echo(self, text: str) -> None:
        print(text, file=self._stream if self._stream is not None else sys.stdout)

    def debug(self, msg: str, err: object = None) -> None:
        """Report a progress message, as an error when ``err`` is given."""
        if err is not None:
            text = f"{msg} : {_format_error(err)}"
            self._echo(text)
            self._logger.error(text)
        else:
            self._echo(msg)
            self._logger.info(msg)

    def emails_data(
        self,
        email: str,
        kind: str,
        err: object,
        is_true_email: bool,
        is_true_domain: bool,
    ) -> None:
        """Report the verdict for one address."""
        text = format_email_line(email, kind, err, is_true_email, is_true_domain)
        self._echo(text)
        if err is not None:
            self._logger.error(text)
        else:
            self._logger.info(text)

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def __enter__(self) -> "RunLog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def init_run_log(
    directory: str | Path,
    mode: str = "release",
    now: datetime | None = None,
) -> RunLog:
    """Create the log directory and open the log file for the current hour."""
    moment = now if now is not None else datetime.now()
    folder = Path(directory)
    folder.mkdir(parents=True, exist_ok=True)
    return RunLog(folder / f"{moment.strftime('%Y-%m-%d %H')}.log", mode=mode)