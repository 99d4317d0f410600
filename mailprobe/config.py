"""Configuration loading for the verification run."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

import yaml

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_CONFIG_NAMES = ("config.yml", "config.yaml")


def parse_duration(value: Any) -> float:
    """Return a duration in seconds.

    Strings use the ``1h30m``/``250ms`` notation; bare numbers are nanoseconds.
    """
    if isinstance(value, bool):
        raise TypeError(f"not a duration: {value!r}")
    if value is None:
        return 0.0
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)):
        return value / 1e9
    if not isinstance(value, str):
        raise TypeError(f"not a duration: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f"invalid duration: {value!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def _normalise(key: Any) -> str:
    return str(key).lower().replace("_", "").replace("-", "")


def _get(mapping: Mapping[str, Any], name: str) -> Any:
    wanted = _normalise(name)
    for key, value in mapping.items():
        if _normalise(key) == wanted:
            return value
    return None


def _section(mapping: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = _get(mapping, name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"configuration section {name!r} must be a mapping")
    return value


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        return int(text, 0) if text else 0
    raise ValueError(f"expected an integer, got {value!r}")


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _as_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "t", "true", "yes", "on"):
            return True
        if text in ("", "0", "f", "false", "no", "off"):
            return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_as_str(item) for item in value]
    return [_as_str(value)]


@dataclass
class RegexConfig:
    goroutines: int = 0
    regex: str = ""


@dataclass
class MxConfig:
    mode: str = ""
    goroutines: int = 0
    timeout: float = 0.0
    dns_server: str = ""


@dataclass
class SmtpConfig:
    mode: str = ""
    goroutines: int = 0
    timeout: float = 0.0
    port: str = ""
    keys: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    mode: str = ""
    verify_mode: str = ""
    chunk_size: int = 0
    regex_config: RegexConfig = field(default_factory=RegexConfig)
    mx_config: MxConfig = field(default_factory=MxConfig)
    smtp_config: SmtpConfig = field(default_factory=SmtpConfig)


@dataclass
class DataConfig:
    dir: bool = False
    path: str = ""
    white_list: str = ""
    black_list: str = ""


@dataclass
class Config:
    app: AppConfig = field(default_factory=AppConfig)
    data: DataConfig = field(default_factory=DataConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a configuration from a mapping; keys match case-insensitively."""
        if not isinstance(data, Mapping):
            raise ValueError("configuration must be a mapping")
        app = _section(data, "app")
        regex = _section(app, "regexconfig")
        mx = _section(app, "mxconfig")
        smtp = _section(app, "smtpconfig")
        data_section = _section(data, "data")
        return cls(
            app=AppConfig(
                mode=_as_str(_get(app, "mode")),
                verify_mode=_as_str(_get(app, "verifymode")),
                chunk_size=_as_int(_get(app, "chunksize")),
                regex_config=RegexConfig(
                    goroutines=_as_int(_get(regex, "goroutines")),
                    regex=_as_str(_get(regex, "regex")),
                ),
                mx_config=MxConfig(
                    mode=_as_str(_get(mx, "mode")),
                    goroutines=_as_int(_get(mx, "goroutines")),
                    timeout=parse_duration(_get(mx, "timeout")),
                    dns_server=_as_str(_get(mx, "dnsserver")),
                ),
                smtp_config=SmtpConfig(
                    mode=_as_str(_get(smtp, "mode")),
                    goroutines=_as_int(_get(smtp, "goroutines")),
                    timeout=parse_duration(_get(smtp, "timeout")),
                    port=_as_str(_get(smtp, "port")),
                    keys=_as_list(_get(smtp, "keys")),
                ),
            ),
            data=DataConfig(
                dir=_as_bool(_get(data_section, "dir")),
                path=_as_str(_get(data_section, "path")),
                white_list=_as_str(_get(data_section, "whitelist")),
                black_list=_as_str(_get(data_section, "blacklist")),
            ),
        )


def load_config(path: str | Path) -> Config:
    """Load a YAML configuration from a file or from ``config.yml`` in a directory."""
    target = Path(path)
    if target.is_dir():
        for name in _CONFIG_NAMES:
            candidate = target / name
            if candidate.is_file():
                target = candidate
                break
        else:
            raise FileNotFoundError(f"no config file found in {str(path)!r}")
    with target.open(encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, Mapping):
        raise ValueError(f"{target}: top level of configuration must be a mapping")
    return Config.from_dict(loaded)