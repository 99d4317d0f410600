"""Probe whether a mailbox exists by talking SMTP to the domain's MX host."""

from __future__ import annotations

import random
import smtplib
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from .mx import MxRecord

JAPANESE_SURNAMES = (
    "tanaka", "suzuki", "yamada", "kobayashi", "saito",
    "kato", "ito", "fujita", "shimizu", "nakamura",
)
JAPANESE_NAMES = (
    "haruki", "yuki", "kenta", "naoki", "hiroshi",
    "ayumi", "yui", "rin", "takumi", "mei",
)
DOMAIN_SUFFIXES = (
    "docomo.ne.jp", "ezweb.ne.jp", "yahoo.co.jp", "gmail.com", "softbank.ne.jp",
)
_SEPARATORS = ("", ".", "_")


class SmtpVerifyError(Exception):
    """The SMTP server refused the probe or could not be reached."""


def generate_sender(rng: random.Random | None = None) -> tuple[str, str]:
    """Return a plausible ``(sender address, sender domain)`` pair."""
    if rng is None:
        rng = random.Random()
    surname = rng.choice(JAPANESE_SURNAMES)
    name = rng.choice(JAPANESE_NAMES)
    domain = rng.choice(DOMAIN_SUFFIXES)
    sep = rng.choice(_SEPARATORS)
    num = f"{rng.randrange(100):02d}"
    year = f"{1980 + rng.randrange(30):04d}"
    formats = (
        f"{surname}{sep}{name}",
        f"{surname}{sep}{name}{num}",
        f"{surname}{sep}{name}{year}",
        f"{surname[0]}.{name}{num}",
    )
    local = rng.choice(formats)
    return f"{local}@{domain}", domain


def _reply_text(code: int, msg: bytes | str) -> str:
    text = msg.decode("utf-8", "replace") if isinstance(msg, bytes) else str(msg)
    return f"{code:03d} {text}"


def _command(
    label: str,
    call: Callable[[], tuple[int, bytes]],
    accept: Callable[[int], bool],
) -> None:
    try:
        code, msg = call()
    except (smtplib.SMTPException, OSError) as exc:
        raise SmtpVerifyError(f"{label} failed: {exc}") from exc
    if not accept(code):
        raise SmtpVerifyError(f"{label} failed: {_reply_text(code, msg)}")


@dataclass
class SmtpResolver:
    """Checks addresses against the first MX host of their domain."""

    mx_records: Mapping[str, Sequence[MxRecord]] = field(default_factory=dict)
    port: str = "25"
    timeout: float = 0.0
    sender: str = ""
    domain: str = ""

    def check(self, email: str) -> None:
        """Run HELO, MAIL FROM and RCPT TO for ``email``; raise SmtpVerifyError on refusal."""
        _, _, target_domain = email.partition("@")
        records = self.mx_records.get(target_domain)
        if not records:
            raise LookupError(f"no MX record for {target_domain!r}")
        mx_host = records[0].host

        if self.sender:
            sender, helo_domain = self.sender, self.domain or self.sender.partition("@")[2]
        else:
            sender, helo_domain = generate_sender()

        client = smtplib.SMTP(
            local_hostname=helo_domain or "localhost",
            timeout=self.timeout if self.timeout > 0 else None,
        )
        try:
            try:
                code, msg = client.connect(mx_host, int(self.port))
            except (OSError, ValueError) as exc:
                raise SmtpVerifyError(f"failed to connect to mail server: {exc}") from exc
            if code != 220:
                raise SmtpVerifyError(
                    f"failed to create smtp client: {_reply_text(code, msg)}"
                )

            try:
                ehlo_code, _ = client.ehlo(helo_domain)
            except (smtplib.SMTPException, OSError):
                ehlo_code = -1
            if ehlo_code != 250:
                _command("HELO", lambda: client.helo(helo_domain), lambda c: c == 250)

            _command("MAIL FROM", lambda: client.mail(sender), lambda c: c == 250)
            _command("RCPT TO", lambda: client.rcpt(email), lambda c: c // 10 == 25)
        finally:
            try:
                client.quit()
            except (smtplib.SMTPException, OSError):
                client.close()