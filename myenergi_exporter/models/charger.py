# myenergi_exporter/models/charger.py
from __future__ import annotations

from dataclasses import dataclass, field

from myenergi_exporter.models.enums import (
    CHARGE_MODE,
    CHARGER_STATUS,
    CONNECTOR_STATUS,
    DeviceKind,
)


@dataclass(frozen=True)
class ChargerSnapshot:
    serial_number: int
    firmware_version: str
    date: str                 # DD-MM-YYYY, device clock
    time: str                 # HH:MM:SS, device clock
    grid_power: int           # W, negative when exporting
    generated_power: int
    diversion_power: int
    supply_voltage: int       # volts x10, as sent on the wire
    supply_frequency: float   # Hz
    status: int               # CHARGER_STATUS code
    connector_status: str     # CONNECTOR_STATUS code
    mode: int                 # CHARGE_MODE code
    charge_added_kwh: float
    phases: int = 0
    priority: int = 0
    lock_flags: int = 0
    min_green_level: int = 0
    smart_boost_hour: int = 0
    smart_boost_kwh: int = 0
    boost_mode: int = 0
    boost_state: int = 0
    tz_offset: int = 0
    dst: int = 0
    ct_names: tuple[str, ...] = field(default_factory=tuple)
    ct_powers: tuple[int, ...] = field(default_factory=tuple)
    new_app_available: bool = False
    new_bootloader_available: bool = False
    being_tampered_with: bool = False
    battery_discharge_enabled: bool = False

    kind = DeviceKind.CHARGER

    @property
    def serial(self) -> str:
        return str(self.serial_number)

    @property
    def status_label(self) -> str:
        return CHARGER_STATUS.label(self.status)

    @property
    def mode_label(self) -> str:
        return CHARGE_MODE.label(self.mode)

    @property
    def connector_status_label(self) -> str:
        return CONNECTOR_STATUS.label(self.connector_status)
