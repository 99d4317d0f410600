"""MX record lookup over plain DNS or DNS-over-HTTPS."""

from __future__ import annotations

import ipaddress
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

import dns.exception
import dns.resolver
import requests

MX_TYPE = 15
_DNS_PORT = 53


@dataclass(frozen=True)
class MxRecord:
    """One mail exchanger: its host name and preference."""

    host: str
    pref: int


def _field(mapping: Mapping[str, Any], name: str) -> Any:
    if name in mapping:
        return mapping[name]
    wanted = name.lower()
    for key, value in mapping.items():
        if str(key).lower() == wanted:
            return value
    return None


def parse_doh_answer(payload: Mapping[str, Any]) -> list[MxRecord]:
    """Extract the MX records from a decoded DNS-over-HTTPS JSON response."""
    if not isinstance(payload, Mapping):
        raise ValueError("DoH response must be a JSON object")
    answers = _field(payload, "Answer")
    if answers is None:
        return []
    if not isinstance(answers, list):
        raise ValueError("DoH 'Answer' must be a list")

    records: list[MxRecord] = []
    for answer in answers:
        if not isinstance(answer, Mapping):
            raise ValueError(f"malformed DoH answer: {answer!r}")
        if _field(answer, "type") != MX_TYPE:
            continue
        data = _field(answer, "data")
        parts = str(data if data is not None else "").split()
        if len(parts) < 2:
            raise ValueError(f"malformed MX data: {data!r}")
        try:
            pref = int(parts[0])
        except ValueError:
            pref = 0
        records.append(MxRecord(host=parts[1], pref=pref & 0xFFFF))
    return records


@dataclass
class MxResolver(ABC):
    """Common interface of the MX lookup strategies."""

    timeout: float = 0.0

    @abstractmethod
    def lookup(self, domain: str) -> list[MxRecord]:
        """Return the MX records of ``domain``; raise LookupError on failure."""


def _split_server(server: str) -> tuple[str, int]:
    text = server.strip()
    if text.startswith("["):
        host, _, rest = text[1:].partition("]")
        port_text = rest[1:] if rest.startswith(":") else ""
    elif text.count(":") == 1:
        host, _, port_text = text.partition(":")
    else:
        host, port_text = text, ""
    port = int(port_text) if port_text else _DNS_PORT
    return host, port


def _as_address(host: str) -> str:
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        return socket.gethostbyname(host)


@dataclass
class DnsMxResolver(MxResolver):
    """Look up MX records over DNS, optionally through a given ``host:port`` server."""

    dns_server: str = ""

    def lookup(self, domain: str) -> list[MxRecord]:
        lifetime = self.timeout if self.timeout > 0 else None
        try:
            if not self.dns_server:
                answer = dns.resolver.resolve(domain, "MX", lifetime=lifetime)
            else:
                host, port = _split_server(self.dns_server)
                resolver = dns.resolver.Resolver(configure=False)
                resolver.port = port
                resolver.nameservers = [_as_address(host)]
                if lifetime is not None:
                    resolver.timeout = lifetime
                    resolver.lifetime = lifetime
                answer = resolver.resolve(domain, "MX")
        except (dns.exception.DNSException, OSError, ValueError) as exc:
            raise LookupError(f"lookup {domain}: {exc}") from exc

        records = [
            MxRecord(host=rdata.exchange.to_text(), pref=int(rdata.preference))
            for rdata in answer
        ]
        records.sort(key=lambda record: record.pref)
        return records


@dataclass
class DohMxResolver(MxResolver):
    """Look up MX records through a DNS-over-HTTPS JSON endpoint."""

    doh_url: str = ""
    proxy_url: str = ""
    params: dict[str, str] = field(default_factory=dict)

    def lookup(self, domain: str) -> list[MxRecord]:
        query = {"name": domain}
        query.update(self.params)
        full_url = f"{self.doh_url}?{urlencode(sorted(query.items()))}"
        proxies = (
            {"http": self.proxy_url, "https": self.proxy_url} if self.proxy_url else None
        )
        timeout = (self.timeout, None) if self.timeout > 0 else None

        try:
            response = requests.get(full_url, proxies=proxies, timeout=timeout)
        except requests.RequestException as exc:
            raise LookupError(f"request failed: {exc}") from exc
        try:
            payload = response.json()
            return parse_doh_answer(payload)
        except ValueError as exc:
            raise LookupError(f"decoding response failed: {exc}") from exc
        finally:
            response.close()