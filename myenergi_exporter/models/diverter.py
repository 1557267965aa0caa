# myenergi_exporter/models/diverter.py
from __future__ import annotations

from dataclasses import dataclass, field

from myenergi_exporter.models.enums import DIVERTER_STATUS, DeviceKind


@dataclass(frozen=True)
class DiverterSnapshot:
    serial_number: int
    firmware_version: str
    date: str
    time: str
    grid_power: int
    generated_power: int
    diversion_power: int
    supply_voltage: int       # volts x10
    supply_frequency: float
    status: int               # DIVERTER_STATUS code
    energy_diverted_kwh: float
    boost_mode: int = 0
    active_heater: int = 0
    heater_priority: int = 0
    phases: int = 0
    priority: int = 0
    tz_offset: int = 0
    dst: int = 0
    probe_temperatures: tuple[float, ...] = field(default_factory=tuple)
    heater_names: tuple[str, ...] = field(default_factory=tuple)  # "None" = probe unused
    ct_names: tuple[str, ...] = field(default_factory=tuple)
    ct_powers: tuple[int, ...] = field(default_factory=tuple)

    kind = DeviceKind.DIVERTER

    @property
    def serial(self) -> str:
        return str(self.serial_number)

    @property
    def status_label(self) -> str:
        return DIVERTER_STATUS.label(self.status)
