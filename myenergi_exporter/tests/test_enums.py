# myenergi_exporter/tests/test_enums.py

import pytest

from myenergi_exporter.models.enums import (
    CHARGE_MODE,
    CHARGER_STATUS,
    CONNECTOR_STATUS,
    DIVERTER_STATUS,
    CodeTable,
    DeviceKind,
)


@pytest.mark.parametrize(
    "table, code, expected",
    [
        (CHARGER_STATUS, 0, "unknown"),
        (CHARGER_STATUS, 1, "paused"),
        (CHARGER_STATUS, 3, "charging"),
        (CHARGER_STATUS, 5, "complete"),
        (CHARGE_MODE, 1, "fast"),
        (CHARGE_MODE, 2, "eco"),
        (CHARGE_MODE, 3, "eco+"),
        (CHARGE_MODE, 4, "stopped"),
        (CONNECTOR_STATUS, "A", "ev-disconnected"),
        (CONNECTOR_STATUS, "B1", "ev-connected"),
        (CONNECTOR_STATUS, "B2", "ev-waiting"),
        (CONNECTOR_STATUS, "C1", "ready-to-charge"),
        (CONNECTOR_STATUS, "C2", "charging"),
        (CONNECTOR_STATUS, "F", "fault"),
        (DIVERTER_STATUS, 1, "paused"),
        (DIVERTER_STATUS, 3, "diverting"),
        (DIVERTER_STATUS, 5, "max-temp-reached"),
        (DIVERTER_STATUS, 6, "stopped"),
    ],
)
def test_defined_codes_have_documented_labels(table, code, expected):
    assert table.label(code) == expected


@pytest.mark.parametrize(
    "table, code",
    [
        (CHARGER_STATUS, 2),
        (CHARGER_STATUS, 4),
        (CHARGER_STATUS, 6),
        (CHARGER_STATUS, -1),
        (DIVERTER_STATUS, 2),
        (DIVERTER_STATUS, 4),
        (DIVERTER_STATUS, 99),
        (CHARGE_MODE, 0),
        (CHARGE_MODE, 5),
        (CONNECTOR_STATUS, ""),
        (CONNECTOR_STATUS, "B3"),
        (CONNECTOR_STATUS, "a"),
        (CONNECTOR_STATUS, None),
        (CHARGER_STATUS, "3"),
        (CHARGER_STATUS, [3]),
        (CHARGER_STATUS, True),
        (CHARGER_STATUS, 3.0),
        (CHARGE_MODE, 1.0),
        (DIVERTER_STATUS, False),
    ],
)
def test_undefined_and_reserved_codes_resolve_to_unknown(table, code):
    assert table.label(code) == "unknown"


def test_reserved_gaps_are_not_renumbered():
    assert CHARGER_STATUS.codes() == [0, 1, 3, 5]
    assert DIVERTER_STATUS.codes() == [0, 1, 3, 5, 6]


def test_domain_always_contains_unknown_once():
    assert CHARGER_STATUS.domain() == ["unknown", "paused", "charging", "complete"]
    assert CHARGE_MODE.domain() == ["fast", "eco", "eco+", "stopped", "unknown"]
    assert CONNECTOR_STATUS.domain()[-1] == "unknown"
    assert len(CONNECTOR_STATUS.domain()) == 7


def test_code_table_is_read_only():
    table = CodeTable("demo", {1: "one"})
    with pytest.raises(TypeError):
        table.labels[2] = "two"


def test_device_kind_endpoints():
    assert DeviceKind.CHARGER.value == "zappi"
    assert DeviceKind.CHARGER.path == "/cgi-jstatus-Z"
    assert DeviceKind.DIVERTER.path == "/cgi-jstatus-E"
    assert DeviceKind.DIVERTER.envelope_key == "eddi"
