# myenergi_exporter/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping
import configparser
import os


DEFAULT_LISTEN_ADDRESS = ":8080"


@dataclass
class MyenergiAPIConfig:
    hub_serial: str | None = None
    api_key: str | None = None
    base_url: str = "https://s18.myenergi.net"
    timeout: float = 20.0
    timezone: str = "UTC"


@dataclass
class ExporterConfig:
    listen_address: str = DEFAULT_LISTEN_ADDRESS


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    myenergi: MyenergiAPIConfig
    exporter: ExporterConfig
    logging: LoggingConfig


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (host optional, ``:8080`` binds all interfaces)."""
    host, sep, port_raw = address.strip().rpartition(":")
    if not sep:
        raise ValueError(f"Listen address '{address}' must be in host:port form")
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"Invalid port in listen address '{address}'") from None
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range in listen address '{address}'")
    host = host.strip("[]") or "0.0.0.0"
    return host, port


class Config:
    ENV_HUB_SERIAL = ("MYENERGI_HUB_SERIAL", "ZAPPI_SERIAL")
    ENV_API_KEY = ("MYENERGI_API_KEY", "ZAPPI_API_KEY")
    ENV_LISTEN_ADDRESS = "MYENERGI_LISTEN_ADDRESS"

    def __init__(self, path: str | None = None):
        self.path = Path(path) if path else None
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        if self.path is not None:
            read = self.parser.read(self.path)
            if not read:
                raise FileNotFoundError(f"Config file not found: {self.path}")

    @staticmethod
    def _env(environ: Mapping[str, str], names) -> str | None:
        if isinstance(names, str):
            names = (names,)
        for name in names:
            value = environ.get(name)
            if value:
                return value.strip()
        return None

    @classmethod
    def load(cls, path: str | None = None, environ: Mapping[str, str] | None = None) -> AppConfig:
        cfg = cls(path)
        env = os.environ if environ is None else environ

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        # --- myenergi API ---
        api_kwargs = {}
        if "myenergi" in p:
            api_sec = p["myenergi"]
            if "hub_serial" in api_sec:
                api_kwargs["hub_serial"] = api_sec["hub_serial"].strip() or None
            if "api_key" in api_sec:
                api_kwargs["api_key"] = api_sec["api_key"].strip() or None
            if "base_url" in api_sec:
                api_kwargs["base_url"] = api_sec["base_url"].strip()
            if "timeout" in api_sec:
                api_kwargs["timeout"] = float(api_sec["timeout"])
            if "timezone" in api_sec:
                api_kwargs["timezone"] = api_sec["timezone"].strip()

        # Secrets from the environment win over the file.
        if (hub_serial := cls._env(env, cls.ENV_HUB_SERIAL)) is not None:
            api_kwargs["hub_serial"] = hub_serial
        if (api_key := cls._env(env, cls.ENV_API_KEY)) is not None:
            api_kwargs["api_key"] = api_key
        api_cfg = MyenergiAPIConfig(**api_kwargs)

        # --- Exporter ---
        exporter_kwargs = {}
        if "exporter" in p and "listen_address" in p["exporter"]:
            exporter_kwargs["listen_address"] = p["exporter"]["listen_address"].strip()
        if (listen := cls._env(env, cls.ENV_LISTEN_ADDRESS)) is not None:
            exporter_kwargs["listen_address"] = listen
        exporter_cfg = ExporterConfig(**exporter_kwargs)
        parse_listen_address(exporter_cfg.listen_address)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            myenergi=api_cfg,
            exporter=exporter_cfg,
            logging=logging_cfg,
        )
