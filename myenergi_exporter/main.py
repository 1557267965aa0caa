# myenergi_exporter/main.py

from __future__ import annotations

import sys

from prometheus_client import CollectorRegistry, PlatformCollector, ProcessCollector, start_http_server

from .cli import build_parser
from .config import Config, parse_listen_address
from .logging import ConsoleLog, setup_logging
from .models.charger import ChargerSnapshot
from .services.collector import CardinalityError, CollectionResult, DeviceCollector
from .services.decoder import snapshot_fields
from .services.metrics_projector import MetricsProjector
from .services.myenergi_client import MyenergiClient


class StartupError(RuntimeError):
    pass


def startup_check(collector: DeviceCollector, log) -> CollectionResult:
    """
    Poll every device family once before serving.

    Unlike scrape-time failures, which are tolerated indefinitely, a failure
    here means the exporter is misconfigured and should not start.
    """
    result = collector.collect_devices()
    if result.errors:
        failed = ", ".join(f"{kind.value}: {exc}" for kind, exc in result.errors.items())
        raise StartupError(f"Initial myenergi poll failed ({failed})")
    if not result.snapshots:
        raise CardinalityError("No zappi or eddi devices returned for this hub")

    for snap in result.snapshots:
        log.info("%s serial: %s", snap.kind.value, snap.serial)
        log.info("%s status: %s", snap.kind.value, snap.status_label)
        if isinstance(snap, ChargerSnapshot):
            log.info("%s mode: %s", snap.kind.value, snap.mode_label)
            log.info("%s connector status: %s", snap.kind.value, snap.connector_status_label)
        for name, value in snapshot_fields(snap).items():
            log.debug("  %s = %r", name, value)
    return result


def build_registry(collector: DeviceCollector) -> CollectorRegistry:
    registry = CollectorRegistry()
    PlatformCollector(registry=registry)
    ProcessCollector(registry=registry)
    registry.register(collector)
    return registry


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_cfg = Config.load(args.config)
    except (FileNotFoundError, ValueError) as exc:
        setup_logging().error("Configuration error: %s", exc)
        return 1

    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else ("WARNING" if args.quiet else app_cfg.logging.console_level),
        quiet=app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()

    listen_address = args.listen_address or app_cfg.exporter.listen_address
    try:
        host, port = parse_listen_address(listen_address)
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    client = MyenergiClient(app_cfg.myenergi, log)
    if not client.enabled:
        log.error("Hub serial and API key are required (MYENERGI_HUB_SERIAL / MYENERGI_API_KEY)")
        return 1

    try:
        projector = MetricsProjector(timezone=app_cfg.myenergi.timezone)
    except (KeyError, ValueError) as exc:  # ZoneInfoNotFoundError is a KeyError
        log.error("Invalid timezone %r: %s", app_cfg.myenergi.timezone, exc)
        return 1
    collector = DeviceCollector(client, projector, log)

    try:
        startup_check(collector, log)
    except (StartupError, CardinalityError) as exc:
        log.error("%s", exc)
        return 1

    registry = build_registry(collector)
    try:
        server, thread = start_http_server(port, addr=host, registry=registry)
    except OSError as exc:
        log.error("Cannot listen on %s: %s", listen_address, exc)
        return 1

    log.info("myenergi exporter listening on %s", listen_address)
    try:
        while thread.is_alive():
            thread.join(timeout=1.0)
    except KeyboardInterrupt:
        log.info("Shutting down")
        server.shutdown()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
