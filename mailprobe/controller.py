"""Verification pipeline: regex screening, MX lookup and SMTP probing."""

from __future__ import annotations

import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .config import Config
from .emaildata import EmailStore, emails_output
from .mx import DnsMxResolver, DohMxResolver, MxResolver
from .runlog import RunLog
from .smtpcheck import SmtpResolver, SmtpVerifyError

MX_WORKERS = 10
DOH_URL = "https://dns.google/resolve"
DOH_PROXY_URL = "http://127.0.0.1:7890"
DEFAULT_TRUE_PATH = "data/true.txt"
DEFAULT_FALSE_PATH = "data/false.txt"

_SMTP_ERRORS = (SmtpVerifyError, LookupError, OSError, ValueError)


def regex_filter(emails: Iterable[str], pattern: str, workers: int = 1) -> list[str]:
    """Return the addresses in which ``pattern`` finds a match, in input order."""
    compiled = re.compile(pattern)
    items = list(emails)
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        hits = list(pool.map(lambda email: compiled.search(email) is not None, items))
    return [email for email, hit in zip(items, hits) if hit]


def make_mx_resolver(config: Config) -> MxResolver:
    """Build the MX resolver selected by the configuration."""
    mx_config = config.app.mx_config
    if mx_config.mode == "doh":
        return DohMxResolver(
            timeout=mx_config.timeout,
            doh_url=DOH_URL,
            proxy_url=DOH_PROXY_URL,
            params={"type": "MX"},
        )
    return DnsMxResolver(timeout=mx_config.timeout, dns_server=mx_config.dns_server)


def mx_controller(
    store: EmailStore, resolver: MxResolver, workers: int = MX_WORKERS
) -> dict[str, bool]:
    """Look up MX records for every counted domain not on a configured list.

    A failed lookup is retried once. Domains with records are marked valid,
    the rest invalid. Returns the verdict for each domain checked.
    """
    domains = [domain for domain in store.census if domain not in store.system_list]

    def probe(domain: str) -> tuple[str, bool]:
        try:
            records = resolver.lookup(domain)
        except LookupError:
            try:
                records = resolver.lookup(domain)
            except LookupError:
                records = []
        if records:
            store.set_mx_records(domain, records)
            store.set_domain_status(domain, True)
        else:
            store.set_domain_status(domain, False)
        return domain, bool(records)

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        return dict(pool.map(probe, domains))


def classify_smtp_error(error: object, keys: Sequence[str]) -> bool:
    """Return True when the lower-cased error text contains one of ``keys``."""
    text = str(error).lower()
    return any(key in text for key in keys)


@dataclass
class Verifier:
    """Runs the selected checks over a batch of addresses and writes the verdicts."""

    config: Config
    store: EmailStore
    log: RunLog
    true_path: str | Path = DEFAULT_TRUE_PATH
    false_path: str | Path = DEFAULT_FALSE_PATH
    mx_resolver: MxResolver | None = None
    smtp_check: Callable[[str], None] | None = None

    def run(
        self,
        emails: Sequence[str],
        regex: bool = True,
        mx: bool = True,
        smtp: bool = True,
    ) -> tuple[list[str], list[str]]:
        """Verify ``emails``; return the accepted and the rejected addresses."""
        accepted: list[str] = []
        rejected: list[str] = []
        lock = threading.Lock()
        app = self.config.app

        def verdict(email: str, ok: bool) -> None:
            with lock:
                (accepted if ok else rejected).append(email)

        if regex:
            passed = regex_filter(emails, app.regex_config.regex, app.regex_config.goroutines)
            if emails:
                print("正则表达式通过率", len(passed) // len(emails))

        if mx:
            resolver = self.mx_resolver or make_mx_resolver(self.config)
            mx_controller(self.store, resolver, MX_WORKERS)

        if smtp:
            print("===========开始smtp验证============")
            check = self.smtp_check
            if check is None:
                check = SmtpResolver(
                    mx_records=self.store.mx_records,
                    port=app.smtp_config.port,
                    timeout=app.smtp_config.timeout,
                ).check
            keys = app.smtp_config.keys

            def probe(email: str) -> None:
                try:
                    check(email)
                except _SMTP_ERRORS as exc:
                    if classify_smtp_error(exc, keys):
                        self.log.emails_data(email, "关键词之内", exc, False, False)
                        verdict(email, False)
                    else:
                        self.log.emails_data(email, "关键词范围之外", exc, True, True)
                        verdict(email, True)
                else:
                    self.log.emails_data(email, "验证存在", None, True, True)
                    verdict(email, True)

            with ThreadPoolExecutor(max_workers=max(1, app.smtp_config.goroutines)) as pool:
                for email in emails:
                    _, _, domain = email.partition("@")
                    listed = self.store.system_list.get(domain)
                    if listed is True:
                        self.log.emails_data(email, "白名单内的数据", None, True, True)
                        verdict(email, True)
                        continue
                    if listed is False:
                        self.log.emails_data(email, "黑名单内的数据", None, False, False)
                        verdict(email, False)
                        continue
                    if self.store.domain_status.get(domain) is False:
                        self.log.emails_data(email, "解析出来域名错误", None, False, False)
                        verdict(email, False)
                        continue
                    pool.submit(probe, email)

        print("===========检测完毕,正在写入数据==============")
        for path, batch in ((self.true_path, accepted), (self.false_path, rejected)):
            try:
                emails_output(path, batch)
            except OSError as exc:
                print("创建文件失败:", exc)
        print("检测完毕")
        return accepted, rejected