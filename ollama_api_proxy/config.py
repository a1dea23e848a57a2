"""Proxy configuration read from PROXY_* environment variables."""

from __future__ import annotations

import ipaddress
import os
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from urllib.parse import urlsplit

from .durations import MICROSECOND, format_duration, parse_duration

ENV_PREFIX = "PROXY_"


class ConfigError(ValueError):
    """The configuration could not be read or is invalid."""


@dataclass
class Config:
    """Settings of the proxy server."""

    port: int = 11434
    host: str = "0.0.0.0"
    gin_mode: str = "debug"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_key: str = ""
    log_level: str = "info"
    trust_domains: list[str] = field(default_factory=lambda: ["localhost", "127.0.0.1", "::1"])
    timeout: timedelta = timedelta(minutes=5)


def default_config() -> Config:
    """Return the configuration used when nothing is set."""
    return Config()


def _decode(key: str, raw: str | list[str]) -> object:
    if key == "trust_domains":
        return raw if isinstance(raw, list) else (raw.split(",") if raw else [])
    if isinstance(raw, list):
        raise ConfigError(f"'{key}' expected a single value, got a list")
    if key == "port":
        try:
            return int(raw, 0) if raw else 0
        except ValueError as exc:
            raise ConfigError(f"cannot parse '{key}' as int: {raw!r}") from exc
    if key == "timeout":
        try:
            return timedelta(microseconds=parse_duration(raw) / MICROSECOND)
        except ValueError as exc:
            raise ConfigError(f"cannot parse '{key}' as duration: {exc}") from exc
    return raw


_HOSTNAME_MIDDLE = re.compile(r"[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.?")


def _is_hostname_or_ip(s: str) -> bool:
    if len(s) >= 2 and s[0].isascii() and s[0].isalpha() and s[-1].isascii() and s[-1].isalnum():
        middle = s[1:-1]
        if not middle or _HOSTNAME_MIDDLE.fullmatch(middle):
            return True
    try:
        ipaddress.ip_address(s)
    except ValueError:
        return False
    return "%" not in s


def _is_url(s: str) -> bool:
    s = s.lower()
    if s.startswith("file:/"):
        return True
    try:
        parts = urlsplit(s)
    except ValueError:
        return False
    opaque = not parts.netloc and parts.path and not parts.path.startswith("/")
    return bool(parts.scheme and (parts.netloc or parts.fragment or opaque))


def _validate(config: Config) -> Iterator[str]:
    def problem(name: str, tag: str, param: str, value: object) -> str:
        return f"'Config.{name}': require '{tag} {param}' (value: '{value}')"

    if config.port < 1:
        yield problem("port", "min", "1", config.port)
    elif config.port > 65535:
        yield problem("port", "max", "65535", config.port)
    if not _is_hostname_or_ip(config.host):
        yield problem("host", "hostname|ip", "", config.host)
    if config.gin_mode not in ("debug", "release", "test"):
        yield problem("gin_mode", "oneof", "debug release test", config.gin_mode)
    if not _is_url(config.openai_base_url):
        yield problem("openai_base_url", "url", "", config.openai_base_url)
    if config.log_level not in ("debug", "info", "warn", "error"):
        yield problem("log_level", "oneof", "debug info warn error", config.log_level)
    for position, domain in enumerate(config.trust_domains):
        if not _is_hostname_or_ip(domain):
            yield problem(f"trust_domains[{position}]", "hostname|ip", "", domain)
    if config.timeout < timedelta(0):
        nanoseconds = (config.timeout // timedelta(microseconds=1)) * MICROSECOND
        yield problem("timeout", "gte", "0", format_duration(nanoseconds))


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from the defaults and PROXY_* variables, then validate it."""
    env = os.environ if environ is None else environ
    known = {f.name for f in fields(Config)}
    updates = {}
    for name, value in env.items():
        key = name[len(ENV_PREFIX):].lower()
        if not name.startswith(ENV_PREFIX) or key not in known:
            continue
        raw = [item.strip() for item in value.split(",")] if "," in value else value
        updates[key] = _decode(key, raw)
    config = replace(default_config(), **updates)

    problems = list(_validate(config))
    if problems:
        raise ConfigError("configuration validation failed:\n - " + "\n - ".join(problems))
    return config