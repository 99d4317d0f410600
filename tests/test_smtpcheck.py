import random
import socket
import socketserver
import threading

import pytest

from mailprobe.mx import MxRecord
from mailprobe.smtpcheck import (
    DOMAIN_SUFFIXES,
    JAPANESE_SURNAMES,
    SmtpResolver,
    SmtpVerifyError,
    generate_sender,
)

_DEFAULTS = {
    "greeting": b"220 mx.example.com ready\r\n",
    "EHLO": b"250 mx.example.com\r\n",
    "HELO": b"250 mx.example.com\r\n",
    "QUIT": b"221 bye\r\n",
}


class _Handler(socketserver.StreamRequestHandler):
    def handle(self):
        replies = {**_DEFAULTS, **self.server.replies}
        self.wfile.write(replies["greeting"])
        for raw in self.rfile:
            line = raw.decode("utf-8", "replace").rstrip("\r\n")
            self.server.commands.append(line)
            verb = line.split(" ", 1)[0].split(":", 1)[0].upper()
            self.wfile.write(replies.get(verb, b"250 OK\r\n"))
            if verb == "QUIT":
                break


class _FakeServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, replies):
        super().__init__(("127.0.0.1", 0), _Handler)
        self.replies = replies
        self.commands = []

    def lines(self, verb):
        return [c for c in self.commands if c.split(" ", 1)[0].upper() == verb]


@pytest.fixture
def smtp_server():
    servers = []

    def start(**replies):
        server = _FakeServer(replies)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def _resolver(port, **kwargs):
    return SmtpResolver(
        mx_records={"example.com": [MxRecord("127.0.0.1", 10)]},
        port=str(port),
        timeout=5.0,
        **kwargs,
    )


def test_accepted_recipient(smtp_server):
    server = smtp_server()
    _resolver(server.server_address[1]).check("user@example.com")
    rcpt = server.lines("RCPT")
    assert len(rcpt) == 1
    assert "<user@example.com>" in rcpt[0]


def test_explicit_sender_is_used(smtp_server):
    server = smtp_server()
    resolver = _resolver(
        server.server_address[1], sender="probe@example.com", domain="example.com"
    )
    resolver.check("user@example.com")
    assert server.lines("EHLO") == ["ehlo example.com"]
    assert "<probe@example.com>" in server.lines("MAIL")[0]


def test_rejected_recipient(smtp_server):
    server = smtp_server(RCPT=b"550 5.1.1 user unknown\r\n")
    with pytest.raises(SmtpVerifyError, match="RCPT TO failed: 550 5.1.1 user unknown"):
        _resolver(server.server_address[1]).check("user@example.com")


def test_forwarding_reply_counts_as_accepted(smtp_server):
    server = smtp_server(RCPT=b"251 will forward\r\n")
    _resolver(server.server_address[1]).check("user@example.com")
    assert len(server.lines("RCPT")) == 1


def test_helo_fallback_when_ehlo_refused(smtp_server):
    server = smtp_server(EHLO=b"502 not implemented\r\n")
    _resolver(server.server_address[1]).check("user@example.com")
    assert len(server.lines("HELO")) == 1
    assert len(server.lines("RCPT")) == 1


def test_helo_refused(smtp_server):
    server = smtp_server(EHLO=b"502 no\r\n", HELO=b"554 go away\r\n")
    with pytest.raises(SmtpVerifyError, match="HELO failed"):
        _resolver(server.server_address[1]).check("user@example.com")
    assert server.lines("MAIL") == []


def test_mail_from_refused(smtp_server):
    server = smtp_server(MAIL=b"550 sender rejected\r\n")
    with pytest.raises(SmtpVerifyError, match="MAIL FROM failed"):
        _resolver(server.server_address[1]).check("user@example.com")
    assert server.lines("RCPT") == []


def test_bad_greeting(smtp_server):
    server = smtp_server(greeting=b"554 no service\r\n")
    with pytest.raises(SmtpVerifyError, match="failed to create smtp client"):
        _resolver(server.server_address[1]).check("user@example.com")


def test_connection_refused():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(SmtpVerifyError, match="failed to connect to mail server"):
        _resolver(port).check("user@example.com")


def test_missing_mx_record():
    with pytest.raises(LookupError):
        _resolver(25).check("user@other.example.com")


def test_generate_sender_shape():
    for seed in range(200):
        sender, domain = generate_sender(random.Random(seed))
        local, _, sender_domain = sender.partition("@")
        assert sender_domain == domain
        assert domain in DOMAIN_SUFFIXES
        assert any(
            local.startswith(surname) or local.startswith(f"{surname[0]}.")
            for surname in JAPANESE_SURNAMES
        )


def test_generate_sender_is_deterministic_per_seed():
    sender, domain = generate_sender(random.Random(7))
    assert (sender, domain) == generate_sender(random.Random(7))
    assert sender.endswith("@" + domain)
    variants = {generate_sender(random.Random(seed)) for seed in range(50)}
    assert len(variants) > 1