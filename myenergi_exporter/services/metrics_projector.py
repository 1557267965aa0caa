# myenergi_exporter/services/metrics_projector.py

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Sequence

from prometheus_client import Gauge
from prometheus_client.metrics_core import Metric
from zoneinfo import ZoneInfo

from myenergi_exporter.models.charger import ChargerSnapshot
from myenergi_exporter.models.diverter import DiverterSnapshot
from myenergi_exporter.models.enums import (
    CHARGE_MODE,
    CHARGER_STATUS,
    CONNECTOR_STATUS,
    DIVERTER_STATUS,
    INTERNAL_LOAD,
    UNUSED_HEATER,
    CodeTable,
)
from myenergi_exporter.services.decoder import Snapshot


DEVICE_TIME_FORMAT = "%d-%m-%Y %H:%M:%S"

_log = logging.getLogger("myenergi.projector")


# ============================================================================
# Derived values
# ============================================================================

def scale_voltage(raw: int) -> float:
    """Supply voltage arrives as volts x10."""
    return raw / 10


def last_seen_epoch(date: str, time: str, tz: tzinfo) -> Optional[float]:
    """Combine the device's ``DD-MM-YYYY`` date and ``HH:MM:SS`` time."""
    if not date or not time:
        return None
    try:
        local = datetime.strptime(f"{date} {time}", DEVICE_TIME_FORMAT)
    except ValueError:
        return None
    return local.replace(tzinfo=tz).timestamp()


def one_hot(table: CodeTable, code) -> List[tuple[str, float]]:
    """Every label of ``table`` paired with 1.0 for the active one, else 0.0."""
    active = table.label(code)
    return [(label, 1.0 if label == active else 0.0) for label in table.domain()]


def internal_load(ct_names: Sequence[str], ct_powers: Sequence[int]) -> Optional[int]:
    """CT1 measures the device's own load only when named so on the device."""
    if ct_names and ct_powers and ct_names[0] == INTERNAL_LOAD:
        return ct_powers[0]
    return None


# ============================================================================
# Projector
# ============================================================================

class MetricsProjector:
    """
    Owns the per-device gauges and writes snapshots onto them.

    Gauges are created unregistered; the projector itself implements the
    custom collector protocol (``describe``/``collect``) so whichever
    component owns the registry decides where it is exposed.
    """

    def __init__(self, namespace: str = "myenergi", timezone: str | tzinfo = "UTC"):
        self.namespace = namespace
        self.tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone

        def gauge(name: str, doc: str, *extra: str) -> Gauge:
            return Gauge(
                name,
                doc,
                labelnames=("model", "serial", *extra),
                namespace=namespace,
                registry=None,
            )

        self.info = gauge("info", "Device identity; always 1", "firmware_version")
        self.status = gauge("status", "Operating status, one series per status", "status")
        self.mode = gauge("mode", "Charge mode, one series per mode", "mode")
        self.connector_status = gauge(
            "connector_status", "Charge connector status, one series per status", "status"
        )
        self.grid_power = gauge("grid_power_watt", "Grid power; negative when exporting")
        self.generated_power = gauge("generated_power_watt", "Generation seen by the device")
        self.diversion_power = gauge("diversion_power_watt", "Power diverted to the device")
        self.supply_voltage = gauge("supply_voltage", "Supply voltage")
        self.supply_frequency = gauge("supply_frequency_hz", "Supply frequency")
        self.load_power = gauge("load_power_watt", "Internal load CT reading")
        self.temperature = gauge("temperature_celsius", "Heater probe temperature", "heater")
        self.charge_added = gauge("charge_added_kwh", "Energy added in the current charge session")
        self.energy_diverted = gauge("energy_diverted_kwh", "Energy diverted today")
        self.last_seen = gauge(
            "last_seen_timestamp_seconds", "Device clock at the time of the poll"
        )

        # Pass-level series, labelled by device family only.
        self.scrape_success = Gauge(
            "scrape_success",
            "Whether the last poll of this device family succeeded",
            labelnames=("model",),
            namespace=namespace,
            registry=None,
        )
        self.scrape_duration = Gauge(
            "scrape_duration_seconds",
            "Duration of the last poll of this device family",
            labelnames=("model",),
            namespace=namespace,
            registry=None,
        )

    # ------------------------------------------------------------------
    @property
    def device_gauges(self) -> List[Gauge]:
        return [
            self.info,
            self.status,
            self.mode,
            self.connector_status,
            self.grid_power,
            self.generated_power,
            self.diversion_power,
            self.supply_voltage,
            self.supply_frequency,
            self.load_power,
            self.temperature,
            self.charge_added,
            self.energy_diverted,
            self.last_seen,
        ]

    @property
    def gauges(self) -> List[Gauge]:
        return self.device_gauges + [self.scrape_success, self.scrape_duration]

    def reset(self) -> None:
        """Drop all samples so devices missing from this pass leave nothing behind."""
        for g in self.gauges:
            g.clear()

    # ------------------------------------------------------------------
    def describe(self) -> Iterable[Metric]:
        for g in self.gauges:
            yield from g.describe()

    def collect(self) -> Iterable[Metric]:
        for g in self.gauges:
            yield from g.collect()

    # ------------------------------------------------------------------
    def project(self, snapshot: Snapshot) -> None:
        if isinstance(snapshot, ChargerSnapshot):
            self.project_charger(snapshot)
        elif isinstance(snapshot, DiverterSnapshot):
            self.project_diverter(snapshot)
        else:
            raise TypeError(f"Cannot project {type(snapshot).__name__}")

    def record_poll(self, model: str, success: bool, duration_s: float) -> None:
        self.scrape_success.labels(model).set(1 if success else 0)
        self.scrape_duration.labels(model).set(duration_s)

    # ------------------------------------------------------------------
    def _project_common(self, snap: Snapshot) -> tuple[str, str]:
        model, serial = snap.kind.value, snap.serial

        self.info.labels(model, serial, snap.firmware_version).set(1)
        self.grid_power.labels(model, serial).set(snap.grid_power)
        self.generated_power.labels(model, serial).set(snap.generated_power)
        self.diversion_power.labels(model, serial).set(snap.diversion_power)
        self.supply_voltage.labels(model, serial).set(scale_voltage(snap.supply_voltage))
        self.supply_frequency.labels(model, serial).set(snap.supply_frequency)

        load = internal_load(snap.ct_names, snap.ct_powers)
        if load is not None:
            self.load_power.labels(model, serial).set(load)

        seen = last_seen_epoch(snap.date, snap.time, self.tz)
        if seen is None:
            _log.debug(
                "%s %s: unparseable device clock %r %r; last_seen omitted",
                model,
                serial,
                snap.date,
                snap.time,
            )
        else:
            self.last_seen.labels(model, serial).set(seen)

        return model, serial

    def project_charger(self, snap: ChargerSnapshot) -> None:
        model, serial = self._project_common(snap)

        for label, value in one_hot(CHARGER_STATUS, snap.status):
            self.status.labels(model, serial, label).set(value)
        for label, value in one_hot(CHARGE_MODE, snap.mode):
            self.mode.labels(model, serial, label).set(value)
        for label, value in one_hot(CONNECTOR_STATUS, snap.connector_status):
            self.connector_status.labels(model, serial, label).set(value)

        self.charge_added.labels(model, serial).set(snap.charge_added_kwh)

    def project_diverter(self, snap: DiverterSnapshot) -> None:
        model, serial = self._project_common(snap)

        for label, value in one_hot(DIVERTER_STATUS, snap.status):
            self.status.labels(model, serial, label).set(value)

        for heater, temp in zip(snap.heater_names, snap.probe_temperatures):
            if not heater or heater == UNUSED_HEATER:
                continue
            self.temperature.labels(model, serial, heater).set(temp)

        self.energy_diverted.labels(model, serial).set(snap.energy_diverted_kwh)
