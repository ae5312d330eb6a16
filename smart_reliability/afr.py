"""Annual Failure Rate estimation from SMART attributes

The curves are the Backblaze ones, where AFR is defined as 8760 / MTBF (in
hours): "An annual failure rate of 100% means that if you have one disk drive
slot and keep a drive running in it all the time, you can expect an average
of one failure a year." Running n drives for t years at rate r you expect
n * r * t failures, so a rate can exceed 1.

This differs from the AFR = 1 - exp(-8760 / MTBF) used by some vendors, which
is a probability of failing within the next year. We call that the AFP
(Annual Failure Probability) and derive it from the rate with a Poisson model.
"""
import logging
from typing import Iterable
from typing import Optional
from typing import Sequence

import numpy as np

from smart_reliability.interface import AfrTable
from smart_reliability.interface import DeviceSnapshot
from smart_reliability.interface import ReferenceTables
from smart_reliability.stats import poisson_at_least
from smart_reliability.tables import tables

logger = logging.getLogger(__name__)


def estimate_afr(table: AfrTable, value: int) -> float:
    """Interpolates the AFR of a raw SMART value over an empirical curve

    Between two samples the curve is linear. Above the highest observed value
    it stays flat at the AFR of that last sample, we never extrapolate.
    """
    if value < 0:
        raise ValueError(f"SMART raw values are unsigned, got {value}")
    if value == 0:
        return 0.0

    samples = table.samples
    i = 1
    while i < len(samples) and samples[i].value < value:
        i += 1

    if i == len(samples):
        return samples[-1].afr

    upper = samples[i]
    if upper.value == value:
        return upper.afr

    lower = samples[i - 1]
    delta_afr = upper.afr - lower.afr
    delta_value = upper.value - lower.value
    return lower.afr + (value - lower.value) * delta_afr / delta_value


def estimate_afr_batch(table: AfrTable, values: Sequence[int]) -> np.ndarray:
    """Vectorised estimate_afr for many devices at once

    Agrees with estimate_afr up to floating point rounding. Values above 2**53
    lose precision when converted to doubles.
    """
    x = np.asarray(values, dtype=np.float64)
    if np.any(x < 0):
        raise ValueError("SMART raw values are unsigned")

    xp = np.array([s.value for s in table.samples], dtype=np.float64)
    fp = np.array([s.afr for s in table.samples], dtype=np.float64)
    # np.interp holds fp[-1] past the last sample, same flat clamp
    return np.interp(x, xp, fp)


def disk_afr(
    snapshot: DeviceSnapshot, reference: Optional[ReferenceTables] = None
) -> float:
    """Estimated AFR of a device from all of its predictive attributes

    The per attribute rates are summed, treating each signal as an
    independent competing risk. They likely are not independent, so this is
    an approximation.
    """
    if reference is None:
        reference = tables.reference

    afr = 0.0
    for attribute in reference.attributes:
        value = snapshot.raw(attribute)
        if value is None:
            continue
        afr += estimate_afr(reference.tables[attribute], value)

    logger.debug("Device %s has AFR %f", snapshot.device or snapshot.serial, afr)
    return afr


def array_afr(
    snapshots: Iterable[DeviceSnapshot], reference: Optional[ReferenceTables] = None
) -> float:
    """Failure rate of the whole array, the sum of its member disks' AFR"""
    if reference is None:
        reference = tables.reference

    rate = 0.0
    for snapshot in snapshots:
        if not snapshot.array_member:
            logger.debug(
                "Device %s is not an array member, skipping",
                snapshot.device or snapshot.serial,
            )
            continue
        rate += disk_afr(snapshot, reference)
    return rate


def annual_failure_probability(afr: float) -> float:
    """Probability that a disk with the given AFR fails within a year"""
    return poisson_at_least(afr, 1)
