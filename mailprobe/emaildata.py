"""Input data: addresses, domain statistics, and domain lists."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

from .config import DataConfig


def _read_lines(path: str | Path) -> Iterator[str]:
    with open(path, encoding="utf-8", newline="\n") as handle:
        for raw in handle:
            line = raw[:-1] if raw.endswith("\n") else raw
            if line.endswith("\r"):
                line = line[:-1]
            yield line


@dataclass
class EmailStore:
    """Shared state of a run: domain counts, configured lists, and MX results."""

    census: Counter = field(default_factory=Counter)
    system_list: dict[str, bool] = field(default_factory=dict)
    domain_status: dict[str, bool] = field(default_factory=dict)
    mx_records: dict[str, list[Any]] = field(default_factory=dict)
    _lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    def load_emails(self, path: str | Path) -> list[str]:
        """Read one address per line, counting how often each domain occurs."""
        emails: list[str] = []
        for lineno, line in enumerate(_read_lines(path), 1):
            _, sep, domain = line.partition("@")
            if not sep:
                raise ValueError(f"{path}:{lineno}: no '@' in {line!r}")
            self.census[domain] += 1
            emails.append(line)
        return emails

    def load_list(self, path: str | Path, is_true: bool) -> None:
        """Read a domain list, marking every entry as allowed or denied."""
        for line in _read_lines(path):
            self.census[line] += 1
            self.system_list[line] = is_true

    def set_domain_status(self, domain: str, ok: bool) -> None:
        with self._lock:
            self.domain_status[domain] = ok

    def set_mx_records(self, domain: str, records: list[Any]) -> None:
        with self._lock:
            self.mx_records[domain] = list(records)


def emails_output(filename: str | Path, emails: Iterable[str]) -> None:
    """Append addresses to a file, one per line."""
    with open(filename, "a", encoding="utf-8", newline="\n") as handle:
        handle.writelines(f"{email}\n" for email in emails)


def email_begin(store: EmailStore, data: DataConfig) -> list[str]:
    """Load the addresses, then the black list, then the white list."""
    emails = store.load_emails(data.path)
    store.load_list(data.black_list, False)
    store.load_list(data.white_list, True)
    return emails