import numpy as np
import pytest

from smart_reliability.afr import annual_failure_probability
from smart_reliability.afr import array_afr
from smart_reliability.afr import disk_afr
from smart_reliability.afr import estimate_afr
from smart_reliability.afr import estimate_afr_batch
from smart_reliability.interface import AfrTable
from smart_reliability.interface import DeviceSnapshot
from smart_reliability.tables import DEFAULT_PROFILE
from smart_reliability.tables import load_profile

reference = load_profile(DEFAULT_PROFILE)
reallocated = reference.tables[5]


def test_zero_is_zero():
    for attribute in reference.attributes:
        assert estimate_afr(reference.tables[attribute], 0) == 0


def test_exact_hits():
    for attribute in reference.attributes:
        table = reference.tables[attribute]
        for sample in table.samples:
            assert estimate_afr(table, sample.value) == sample.afr


def test_interpolation():
    expected = 0.027432608477803388 + (2 - 1) * (
        0.07501976284584981 - 0.027432608477803388
    ) / (4 - 1)
    afr = estimate_afr(reallocated, 2)
    assert afr == expected
    assert afr == pytest.approx(0.043294993267152195, abs=1e-15)

    # Halfway between two samples
    assert estimate_afr(reallocated, 10) == pytest.approx(
        (0.07501976284584981 + 0.23589260654405794) / 2
    )


def test_clamp_above_last_sample():
    assert reallocated.max_value == 17000
    assert estimate_afr(reallocated, 20000) == 1.7755385684503124
    assert estimate_afr(reallocated, 2**64 - 2) == 1.7755385684503124

    # Command timeouts go well past 32 bits
    timeouts = reference.tables[188]
    assert estimate_afr(timeouts, 30_000_000_000) == timeouts.max_afr


def test_below_first_sample():
    # Load cycles start at 1300, anything below interpolates from the anchor
    load_cycles = reference.tables[193]
    assert estimate_afr(load_cycles, 650) == pytest.approx(0.024800489215129725 / 2)


def test_monotonic_tables():
    for attribute in reference.attributes:
        table = reference.tables[attribute]
        afrs = [s.afr for s in table.samples]
        if afrs != sorted(afrs):
            # Reallocated sectors dip after 4500 in the source data
            continue

        previous = 0.0
        for value in range(0, int(min(table.max_value * 2, 200_000)), 7):
            afr = estimate_afr(table, value)
            assert afr >= previous
            previous = afr


def test_anchor_only_table():
    table = AfrTable(attribute=1, samples=[(0, 0)])
    assert estimate_afr(table, 0) == 0
    assert estimate_afr(table, 100) == 0


def test_negative_value():
    with pytest.raises(ValueError):
        estimate_afr(reallocated, -1)
    with pytest.raises(ValueError):
        estimate_afr_batch(reallocated, [1, -1])


def test_batch_matches_scalar():
    values = [0, 1, 2, 3, 4, 15, 16, 69, 70, 1000, 4500, 16999, 17000, 20000]
    batch = estimate_afr_batch(reallocated, values)

    assert isinstance(batch, np.ndarray)
    assert batch.shape == (len(values),)
    for value, afr in zip(values, batch):
        assert afr == pytest.approx(estimate_afr(reallocated, value), rel=1e-12)


def test_disk_afr_skips_unassigned():
    snapshot = DeviceSnapshot(
        attributes={5: 1, 187: None, 197: 2, 194: 40}, array_member=True
    )
    assert disk_afr(snapshot) == pytest.approx(
        0.027432608477803388 + 0.6823772508117681
    )

    # Nothing reported means nothing predicts a failure
    assert disk_afr(DeviceSnapshot()) == 0
    assert disk_afr(DeviceSnapshot(attributes={5: None, 198: None})) == 0


def test_disk_afr_is_sum_of_attributes():
    attributes = {5: 100, 187: 5, 188: 1, 193: 30_000, 197: 3, 198: 1}
    snapshot = DeviceSnapshot(attributes=attributes)

    expected = sum(
        estimate_afr(reference.tables[a], attributes[a]) for a in sorted(attributes)
    )
    assert disk_afr(snapshot) == expected
    # Rates are not probabilities and can exceed 1
    assert disk_afr(snapshot) > 1


def test_array_afr_only_members():
    member = DeviceSnapshot(attributes={197: 1}, array_member=True)
    other_member = DeviceSnapshot(attributes={198: 1}, array_member=True)
    spare = DeviceSnapshot(attributes={5: 17000}, array_member=False)

    rate = array_afr([member, spare, other_member])
    assert rate == pytest.approx(0.34196613799103254 + 0.8135764944275583)
    assert array_afr([spare]) == 0
    assert array_afr([]) == 0


def test_array_afr_is_deterministic():
    snapshots = [
        DeviceSnapshot(attributes={5: i, 193: 1000 * i}, array_member=True)
        for i in range(20)
    ]
    assert array_afr(snapshots) == array_afr(list(snapshots))


def test_annual_failure_probability():
    assert annual_failure_probability(0) == 0
    assert annual_failure_probability(1) == pytest.approx(1 - np.exp(-1))
    assert 0 < annual_failure_probability(3.3) < 1
