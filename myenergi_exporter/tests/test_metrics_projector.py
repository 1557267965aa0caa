# myenergi_exporter/tests/test_metrics_projector.py

from dataclasses import replace
from datetime import datetime, timezone

import pytest
from prometheus_client import CollectorRegistry
from zoneinfo import ZoneInfo

from myenergi_exporter.models.enums import CHARGE_MODE, CHARGER_STATUS, CONNECTOR_STATUS, DIVERTER_STATUS
from myenergi_exporter.services.decoder import decode_charger, decode_diverter
from myenergi_exporter.services.metrics_projector import (
    MetricsProjector,
    last_seen_epoch,
    one_hot,
    scale_voltage,
)
from myenergi_exporter.tests.fakes import EDDI_RECORD, ZAPPI_RECORD


ZAPPI = {"model": "zappi", "serial": "16012345"}
EDDI = {"model": "eddi", "serial": "10088888"}


@pytest.fixture
def projector():
    return MetricsProjector()


@pytest.fixture
def registry(projector):
    reg = CollectorRegistry()
    reg.register(projector)
    return reg


def _one_hot_sum(registry, metric, label_name, table, device):
    return sum(
        registry.get_sample_value(metric, {**device, label_name: label}) or 0.0
        for label in table.domain()
    )


def _series(registry, metric):
    return [
        sample
        for family in registry.collect()
        for sample in family.samples
        if sample.name == metric
    ]


def test_scale_voltage():
    assert scale_voltage(2398) == pytest.approx(239.8)


def test_one_hot_marks_unknown_for_unmapped_code():
    values = dict(one_hot(CHARGE_MODE, 0))
    assert values["unknown"] == 1.0
    assert sum(values.values()) == 1.0


def test_last_seen_combines_date_and_time():
    expected = datetime(2023, 3, 1, 14, 5, 0, tzinfo=timezone.utc).timestamp()
    assert last_seen_epoch("01-03-2023", "14:05:00", timezone.utc) == expected


def test_last_seen_honours_device_timezone():
    tz = ZoneInfo("Europe/London")
    expected = datetime(2023, 7, 1, 14, 5, 0, tzinfo=tz).timestamp()
    assert last_seen_epoch("01-07-2023", "14:05:00", tz) == expected
    assert expected == datetime(2023, 7, 1, 13, 5, tzinfo=timezone.utc).timestamp()


@pytest.mark.parametrize(
    "date, time",
    [("31-02-2023", "14:05:00"), ("2023-03-01", "14:05:00"), ("01-03-2023", "25:00:00"), ("", "")],
)
def test_last_seen_rejects_bad_clock(date, time):
    assert last_seen_epoch(date, time, timezone.utc) is None


def test_charger_projection(projector, registry):
    projector.project(decode_charger(dict(ZAPPI_RECORD)))

    assert registry.get_sample_value(
        "myenergi_info", {**ZAPPI, "firmware_version": "3560S3.054"}
    ) == 1.0
    assert registry.get_sample_value("myenergi_status", {**ZAPPI, "status": "charging"}) == 1.0
    assert registry.get_sample_value("myenergi_status", {**ZAPPI, "status": "paused"}) == 0.0
    assert registry.get_sample_value("myenergi_mode", {**ZAPPI, "mode": "eco+"}) == 1.0
    assert registry.get_sample_value(
        "myenergi_connector_status", {**ZAPPI, "status": "ev-disconnected"}
    ) == 0.0
    assert registry.get_sample_value("myenergi_grid_power_watt", ZAPPI) == -230.0
    assert registry.get_sample_value("myenergi_supply_voltage", ZAPPI) == pytest.approx(239.8)
    assert registry.get_sample_value("myenergi_supply_frequency_hz", ZAPPI) == pytest.approx(50.02)
    assert registry.get_sample_value("myenergi_load_power_watt", ZAPPI) == 1520.0
    assert registry.get_sample_value("myenergi_charge_added_kwh", ZAPPI) == pytest.approx(4.31)
    assert registry.get_sample_value("myenergi_last_seen_timestamp_seconds", ZAPPI) == (
        datetime(2023, 3, 1, 14, 5, tzinfo=timezone.utc).timestamp()
    )


@pytest.mark.parametrize(
    "status, mode, connector",
    [(3, 3, "C2"), (2, 0, "Z9"), (0, 4, "A"), (99, 7, "")],
)
def test_one_hot_series_sum_to_one(projector, registry, status, mode, connector):
    snap = replace(decode_charger(dict(ZAPPI_RECORD)), status=status, mode=mode, connector_status=connector)
    projector.project(snap)

    assert _one_hot_sum(registry, "myenergi_status", "status", CHARGER_STATUS, ZAPPI) == 1.0
    assert _one_hot_sum(registry, "myenergi_mode", "mode", CHARGE_MODE, ZAPPI) == 1.0
    assert _one_hot_sum(
        registry, "myenergi_connector_status", "status", CONNECTOR_STATUS, ZAPPI
    ) == 1.0
    assert len(_series(registry, "myenergi_connector_status")) == len(CONNECTOR_STATUS.domain())


def test_diverter_projection(projector, registry):
    projector.project(decode_diverter(dict(EDDI_RECORD)))

    assert registry.get_sample_value("myenergi_status", {**EDDI, "status": "diverting"}) == 1.0
    assert _one_hot_sum(registry, "myenergi_status", "status", DIVERTER_STATUS, EDDI) == 1.0
    assert registry.get_sample_value("myenergi_energy_diverted_kwh", EDDI) == pytest.approx(2.75)
    assert registry.get_sample_value("myenergi_supply_voltage", EDDI) == pytest.approx(240.1)
    assert registry.get_sample_value("myenergi_mode", {**EDDI, "mode": "fast"}) is None


def test_unused_heater_probe_is_suppressed(projector, registry):
    projector.project(decode_diverter(dict(EDDI_RECORD)))

    temps = _series(registry, "myenergi_temperature_celsius")
    assert [s.labels["heater"] for s in temps] == ["Tank 1"]
    assert temps[0].value == 48.0


def test_heater_series_labelled_by_configured_name(projector, registry):
    record = dict(EDDI_RECORD, ht1="Immersion Top", ht2="Radiator", tp2=35)
    projector.project(decode_diverter(record))

    assert registry.get_sample_value(
        "myenergi_temperature_celsius", {**EDDI, "heater": "Radiator"}
    ) == 35.0
    assert registry.get_sample_value(
        "myenergi_temperature_celsius", {**EDDI, "heater": "Immersion Top"}
    ) == 48.0


def test_load_power_requires_internal_load_ct(projector, registry):
    record = dict(ZAPPI_RECORD, ectt1="Grid")
    projector.project(decode_charger(record))

    assert registry.get_sample_value("myenergi_load_power_watt", ZAPPI) is None


def test_invalid_device_date_omits_only_last_seen(projector, registry):
    record = dict(ZAPPI_RECORD, dat="31-02-2023")
    projector.project(decode_charger(record))

    assert registry.get_sample_value("myenergi_last_seen_timestamp_seconds", ZAPPI) is None
    assert registry.get_sample_value("myenergi_grid_power_watt", ZAPPI) == -230.0


def test_reset_drops_devices_not_seen_again(projector, registry):
    projector.project(decode_charger(dict(ZAPPI_RECORD)))
    projector.reset()
    projector.project(decode_charger(dict(ZAPPI_RECORD, sno=42, fwv="3560S4.000")))

    info = _series(registry, "myenergi_info")
    assert [(s.labels["serial"], s.labels["firmware_version"]) for s in info] == [("42", "3560S4.000")]
    assert registry.get_sample_value("myenergi_grid_power_watt", ZAPPI) is None


def test_project_rejects_unknown_types(projector):
    with pytest.raises(TypeError):
        projector.project(object())
