import json

import pytest
from pydantic import ValidationError

from smart_reliability.interface import DeviceSnapshot
from smart_reliability.interface import RaidConfiguration
from smart_reliability.interface import RepairCadence
from smart_reliability.interface import SMART_UNASSIGNED


def test_unassigned_sentinel():
    snapshot = DeviceSnapshot(
        attributes={5: SMART_UNASSIGNED, 197: 3, 198: None},
        size_bytes=SMART_UNASSIGNED,
        error_count=SMART_UNASSIGNED,
    )
    assert snapshot.raw(5) is None
    assert snapshot.raw(197) == 3
    assert snapshot.raw(198) is None
    assert snapshot.raw(187) is None
    assert snapshot.size_bytes is None
    assert snapshot.size_tb is None
    assert snapshot.error_count is None


def test_out_of_range_counters_rejected():
    with pytest.raises(ValidationError):
        DeviceSnapshot(attributes={5: SMART_UNASSIGNED + 1})
    with pytest.raises(ValidationError):
        DeviceSnapshot(size_bytes=2**70)
    with pytest.raises(ValidationError):
        DeviceSnapshot(attributes={5: -1})
    with pytest.raises(ValidationError):
        DeviceSnapshot(error_count=-3)


def test_device_metadata():
    snapshot = DeviceSnapshot(
        attributes={9: 24 * 400 + 23, 190: 35},
        serial="WD-1234",
        device="/dev/sdb",
        name="d1",
        size_bytes=4_000_787_030_016,
        array_member=True,
    )
    assert snapshot.power_on_days == 400
    assert snapshot.temperature_c == 35
    assert snapshot.size_tb == pytest.approx(4.0, abs=0.01)

    # The drive temperature wins over the airflow one
    both = DeviceSnapshot(attributes={190: 35, 194: 41})
    assert both.temperature_c == 41
    assert DeviceSnapshot().temperature_c is None
    assert DeviceSnapshot().power_on_days is None


def test_snapshot_from_json():
    data = json.loads(
        '{"attributes": {"5": 12, "194": 38, "197": null}, "array_member": true}'
    )
    snapshot = DeviceSnapshot.model_validate(data)
    assert snapshot.raw(5) == 12
    assert snapshot.raw(197) is None
    assert snapshot.array_member

    # Only what was given is dumped back out
    assert set(snapshot.model_dump()) == {"attributes", "array_member"}


def test_repair_cadence():
    assert RepairCadence.weekly.repairs_per_year == 365 / 7
    assert RepairCadence.monthly.repairs_per_year == 365 / 30
    assert RepairCadence.quarterly.repairs_per_year == 365 / 90
    assert [c.label for c in RepairCadence] == ["1 Week", "1 Month", "3 Months"]
    assert str(RepairCadence.monthly) == "monthly"
    assert RepairCadence("quarterly") is RepairCadence.quarterly


def test_raid_configuration():
    config = RaidConfiguration.with_cadence(5, 2, RepairCadence.weekly)
    assert config.repair_rate == 365 / 7
    assert config.mean_time_to_repair == pytest.approx(7 / 365)

    with pytest.raises(ValidationError):
        RaidConfiguration(disk_count=2, redundancy=2, repair_rate=1)
    with pytest.raises(ValidationError):
        RaidConfiguration(disk_count=4, redundancy=0, repair_rate=1)
    with pytest.raises(ValidationError):
        RaidConfiguration(disk_count=4, redundancy=1, repair_rate=0)
    # A configuration error is a ValueError like any other
    with pytest.raises(ValueError):
        RaidConfiguration.with_cadence(3, 6, RepairCadence.monthly)
