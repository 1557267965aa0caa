# myenergi_exporter/services/decoder.py

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Union

from myenergi_exporter.models.charger import ChargerSnapshot
from myenergi_exporter.models.diverter import DiverterSnapshot
from myenergi_exporter.models.enums import DeviceKind

Snapshot = Union[ChargerSnapshot, DiverterSnapshot]


class DecodeError(ValueError):
    """Raised when a status payload cannot be mapped onto snapshots."""


# ============================================================================
# Field helpers
# ============================================================================
#
# Missing keys and JSON null take the zero value of the field type. A value
# of the wrong JSON type is a schema mismatch and fails the whole record.

def _int(record: Mapping[str, Any], key: str) -> int:
    value = record.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"field '{key}': expected integer, got {type(value).__name__}")
    return value


def _float(record: Mapping[str, Any], key: str) -> float:
    value = record.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"field '{key}': expected number, got {type(value).__name__}")
    return float(value)


def _str(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"field '{key}': expected string, got {type(value).__name__}")
    return value


def _bool(record: Mapping[str, Any], key: str) -> bool:
    value = record.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"field '{key}': expected boolean, got {type(value).__name__}")
    return value


def _channels(record: Mapping[str, Any], count: int) -> tuple[tuple[str, ...], tuple[int, ...]]:
    names = tuple(_str(record, f"ectt{i}") for i in range(1, count + 1))
    powers = tuple(_int(record, f"ectp{i}") for i in range(1, count + 1))
    return names, powers


# ============================================================================
# Record decoders
# ============================================================================

def decode_charger(record: Any) -> ChargerSnapshot:
    if not isinstance(record, dict):
        raise DecodeError(f"zappi record must be an object, got {type(record).__name__}")

    ct_names, ct_powers = _channels(record, 6)
    return ChargerSnapshot(
        serial_number=_int(record, "sno"),
        firmware_version=_str(record, "fwv"),
        date=_str(record, "dat"),
        time=_str(record, "tim"),
        grid_power=_int(record, "grd"),
        generated_power=_int(record, "gen"),
        diversion_power=_int(record, "div"),
        supply_voltage=_int(record, "vol"),
        supply_frequency=_float(record, "frq"),
        status=_int(record, "sta"),
        connector_status=_str(record, "pst"),
        mode=_int(record, "zmo"),
        charge_added_kwh=_float(record, "che"),
        phases=_int(record, "pha"),
        priority=_int(record, "pri"),
        lock_flags=_int(record, "lck"),
        min_green_level=_int(record, "mgl"),
        smart_boost_hour=_int(record, "sbh"),
        smart_boost_kwh=_int(record, "sbk"),
        boost_mode=_int(record, "bsm"),
        boost_state=_int(record, "bst"),
        tz_offset=_int(record, "tz"),
        dst=_int(record, "dst"),
        ct_names=ct_names,
        ct_powers=ct_powers,
        new_app_available=_bool(record, "newAppAvailable"),
        new_bootloader_available=_bool(record, "newBootloaderAvailable"),
        being_tampered_with=_bool(record, "beingTamperedWith"),
        battery_discharge_enabled=_bool(record, "batteryDischargeEnabled"),
    )


def decode_diverter(record: Any) -> DiverterSnapshot:
    if not isinstance(record, dict):
        raise DecodeError(f"eddi record must be an object, got {type(record).__name__}")

    ct_names, ct_powers = _channels(record, 3)
    return DiverterSnapshot(
        serial_number=_int(record, "sno"),
        firmware_version=_str(record, "fwv"),
        date=_str(record, "dat"),
        time=_str(record, "tim"),
        grid_power=_int(record, "grd"),
        generated_power=_int(record, "gen"),
        diversion_power=_int(record, "div"),
        supply_voltage=_int(record, "vol"),
        supply_frequency=_float(record, "frq"),
        status=_int(record, "sta"),
        energy_diverted_kwh=_float(record, "che"),
        boost_mode=_int(record, "bsm"),
        active_heater=_int(record, "hno"),
        heater_priority=_int(record, "hpri"),
        phases=_int(record, "pha"),
        priority=_int(record, "pri"),
        tz_offset=_int(record, "tz"),
        dst=_int(record, "dst"),
        probe_temperatures=(_float(record, "tp1"), _float(record, "tp2")),
        heater_names=(_str(record, "ht1"), _str(record, "ht2")),
        ct_names=ct_names,
        ct_powers=ct_powers,
    )


_DECODERS = {
    DeviceKind.CHARGER: decode_charger,
    DeviceKind.DIVERTER: decode_diverter,
}


# ============================================================================
# Envelope
# ============================================================================

def decode_envelope(body: Union[bytes, str], kind: DeviceKind) -> List[Snapshot]:
    """
    Decode a ``cgi-jstatus-*`` response body into snapshots for ``kind``.

    The body is a JSON object holding one array named after the device
    family (``{"zappi": [...]}``). An absent or null array means the account
    has no such devices and yields an empty list.
    """
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"{kind.value}: malformed JSON: {exc}") from exc
    except RecursionError as exc:
        raise DecodeError(f"{kind.value}: JSON nested too deeply") from exc

    if not isinstance(payload, dict):
        raise DecodeError(f"{kind.value}: expected JSON object, got {type(payload).__name__}")

    records = payload.get(kind.envelope_key)
    if records is None:
        return []
    if not isinstance(records, list):
        raise DecodeError(
            f"{kind.value}: '{kind.envelope_key}' must be an array, got {type(records).__name__}"
        )

    decoder = _DECODERS[kind]
    snapshots: List[Snapshot] = []
    for idx, record in enumerate(records):
        try:
            snapshots.append(decoder(record))
        except DecodeError as exc:
            raise DecodeError(f"{kind.value}[{idx}]: {exc}") from exc
    return snapshots


def snapshot_fields(snapshot: Snapshot) -> Dict[str, Any]:
    """Plain dict view of a snapshot for debug logging."""
    return {name: getattr(snapshot, name) for name in snapshot.__dataclass_fields__}
