# myenergi_exporter/models/enums.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Hashable, List, Mapping


UNKNOWN = "unknown"
INTERNAL_LOAD = "Internal Load"
UNUSED_HEATER = "None"


class DeviceKind(str, Enum):
    """Device families served by the myenergi status API."""

    CHARGER = "zappi"
    DIVERTER = "eddi"

    @property
    def path(self) -> str:
        return _STATUS_PATHS[self]

    @property
    def envelope_key(self) -> str:
        return self.value


_STATUS_PATHS = {
    DeviceKind.CHARGER: "/cgi-jstatus-Z",
    DeviceKind.DIVERTER: "/cgi-jstatus-E",
}


@dataclass(frozen=True)
class CodeTable:
    """
    Closed set of vendor codes and their display labels.

    Codes missing from the table, including the reserved gaps between
    defined codes, always resolve to ``"unknown"``.
    """

    name: str
    labels: Mapping[Hashable, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def label(self, code: Any) -> str:
        # Exact key type only: True must not match 1, nor 3.0 match 3.
        if not any(type(code) is type(key) for key in self.labels):
            return UNKNOWN
        return self.labels.get(code, UNKNOWN)

    def codes(self) -> List[Hashable]:
        return list(self.labels)

    def domain(self) -> List[str]:
        """Every label a one-hot series can carry, ``"unknown"`` included."""
        seen: list[str] = []
        for value in self.labels.values():
            if value not in seen:
                seen.append(value)
        if UNKNOWN not in seen:
            seen.append(UNKNOWN)
        return seen


# Numeric codes 2 and 4 are reserved by the vendor.
CHARGER_STATUS = CodeTable(
    "charger_status",
    {
        0: UNKNOWN,
        1: "paused",
        3: "charging",
        5: "complete",
    },
)

CHARGE_MODE = CodeTable(
    "charge_mode",
    {
        1: "fast",
        2: "eco",
        3: "eco+",
        4: "stopped",
    },
)

CONNECTOR_STATUS = CodeTable(
    "connector_status",
    {
        "A": "ev-disconnected",
        "B1": "ev-connected",
        "B2": "ev-waiting",
        "C1": "ready-to-charge",
        "C2": "charging",
        "F": "fault",
    },
)

# Same reserved gaps as the charger; 6 follows directly after 5.
DIVERTER_STATUS = CodeTable(
    "diverter_status",
    {
        0: UNKNOWN,
        1: "paused",
        3: "diverting",
        5: "max-temp-reached",
        6: "stopped",
    },
)
