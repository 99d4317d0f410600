# mailprobe

mailprobe checks lists of e-mail addresses. A run goes through up to three
stages:

1. **regex** – every address is searched with a configurable pattern and the
   pass rate is printed. This stage only reports; it does not remove addresses
   from the later stages.
2. **mx** – every domain seen in the input (except those on the white or black
   list) is resolved for MX records, with ordinary DNS (optionally against a
   chosen `host:port` server) or over DNS-over-HTTPS. A failed lookup is retried
   once. Domains with records are marked valid, the others invalid.
3. **smtp** – for each address a connection is opened to the first MX host of
   its domain and `EHLO` (falling back to `HELO`), `MAIL FROM` and `RCPT TO` are
   sent. No message is ever sent. The sender address is a randomly generated
   one.

In the smtp stage, addresses whose domain is on the white list are accepted and
those on the black list are rejected without any network traffic; addresses
whose domain was marked invalid by the mx stage are rejected. Otherwise a
successful probe accepts the address; a failed probe rejects it if the
lower-cased error text contains one of the configured keywords, and accepts it
if not.

Accepted addresses are appended to `data/true.txt` and rejected ones to
`data/false.txt` (relative to the working directory). Only the smtp stage
decides on addresses, so in `mx` or `regex` mode nothing is added to those
files.

## Installation

```
pip install .
```

For the tests: `pip install .[test]` and then `pytest`.

## Configuration

By default the program reads `config.yml` (or `config.yaml`) from `../config`.
Keys are matched case-insensitively, and underscores and dashes in them are
ignored, so `chunksize`, `ChunkSize` and `chunk_size` are the same key.

```yaml
app:
  mode: debug            # "debug" sets the log level to debug, anything else to info
  verifymode: smtp       # smtp, mx or regex; anything else behaves as smtp
  chunksize: 100         # must be positive
  regexconfig:
    goroutines: 4        # worker threads for the regex stage
    regex: '^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
  mxconfig:
    mode: default        # default (plain DNS) or doh
    timeout: 5s
    dnsserver: "192.0.2.53:53"   # empty: use the system resolver
  smtpconfig:
    goroutines: 20       # concurrent SMTP probes
    timeout: 10s
    port: "25"
    keys: ["user unknown", "does not exist", "no such user"]
data:
  path: ../data/emails.txt
  whitelist: ../data/white.txt
  blacklist: ../data/black.txt
```

Timeouts accept duration strings such as `500ms`, `5s` or `1m30s`; a bare
number is taken as nanoseconds. Keywords are compared against the lower-cased
error text, so write them in lower case.

The address file holds one address per line, for example `alice@example.com`;
a line without `@` stops the run with an error. The white and black lists hold
one domain per line.

In `doh` mode, queries go to a fixed public DNS-over-HTTPS JSON endpoint
through an HTTP proxy expected at `127.0.0.1:7890`.

## Running

```
mailprobe [--config PATH] [--log-dir DIR]
```

- `--config` – a config file, or a directory holding `config.yml`
  (default `../config`).
- `--log-dir` – where the run log goes (default `../logs/`). The log file is
  named after the current hour, e.g. `2024-05-01 13.log`, and holds one JSON
  object per line with `level`, `time` and `msg`. Every message is also printed
  to the console.

The addresses are split into chunks of `chunksize`. Before each chunk the tool
runs `ip address` and `pppoe-start`, and after it `pppoe-stop`, so that each
chunk can go out over a fresh dial-up connection; it pauses a few seconds
around each of these commands. Each command is tried up to five times; if it
still fails, this is logged and the run carries on.

The command returns exit status 1 when the input files cannot be read.

## Library use

```python
from mailprobe.cli import chunk_emails, verify_flags
from mailprobe.controller import classify_smtp_error, regex_filter
from mailprobe.mx import DnsMxResolver, parse_doh_answer
from mailprobe.smtpcheck import generate_sender

valid = regex_filter(["bob@example.com", "not-an-address"], r".+@.+\..+", 4)
chunks = chunk_emails(valid, 100)
regex, mx, smtp = verify_flags("mx")          # (True, True, False)
classify_smtp_error("550 user unknown", ["user unknown"])   # True
```

Other building blocks:

- `mailprobe.config.load_config` / `Config.from_dict` – configuration as
  dataclasses; `parse_duration` converts durations to seconds.
- `mailprobe.emaildata.EmailStore` – domain counts, white/black list, MX
  verdicts and records; `email_begin` loads the three input files,
  `emails_output` appends addresses to a file.
- `mailprobe.mx.DnsMxResolver` and `DohMxResolver` – `lookup(domain)` returns
  `MxRecord` objects and raises `LookupError` on failure.
- `mailprobe.smtpcheck.SmtpResolver.check(email)` – raises `SmtpVerifyError`
  when the server refuses or cannot be reached.
- `mailprobe.controller.Verifier.run(emails, regex, mx, smtp)` – runs the
  stages on one batch and returns `(accepted, rejected)`.
- `mailprobe.runlog.init_run_log` / `RunLog` – the console and JSON log.

## What it does not do

- The `data.dir`, `mxconfig.goroutines` and `smtpconfig.mode` settings are read
  but have no effect; the mx stage always uses 10 worker threads.
- Results are only appended; addresses are not deduplicated, and there is no
  state kept between runs to resume an interrupted one.
- It never delivers mail; the SMTP probe stops after `RCPT TO`.