import logging
import math
from typing import List
from typing import Sequence

from smart_reliability.interface import DataLossEstimate
from smart_reliability.interface import RAID_PARITY_MAX
from smart_reliability.interface import RaidConfiguration
from smart_reliability.interface import RepairCadence
from smart_reliability.stats import poisson_at_least

logger = logging.getLogger(__name__)


def mean_time_to_data_loss(
    array_failure_rate: float, config: RaidConfiguration
) -> float:
    """Mean Time To Data Loss of the array, in years

    Uses the approximated MTTDL equation for an array of n disks that survives
    r failures, see Garth Alan Gibson, "Redundant Disk Arrays: Reliable,
    Parallel Secondary Storage", 1990:

        MTTDL = MTBF^(r+1) / (MTTR^r * n * (n - 1) * ... * (n - r))

    where MTBF is the mean time between failures of a single disk, derived
    from the failure rate of the whole array, and MTTR the time it takes to
    notice and replace a failed disk. It is only valid while disks fail rarely
    compared to how often they are repaired.
    """
    if array_failure_rate < 0:
        raise ValueError(
            f"Array failure rate must be non-negative, got {array_failure_rate}"
        )
    if array_failure_rate == 0:
        return math.inf

    n = config.disk_count
    r = config.redundancy
    mtbf = n / array_failure_rate
    mttr = config.mean_time_to_repair

    try:
        repair_term = mttr**r
    except OverflowError:
        logger.warning(
            "MTTR^r overflows for repair_rate=%g r=%d, treating MTTDL as zero",
            config.repair_rate,
            r,
        )
        return 0.0
    if repair_term == 0:
        logger.warning(
            "MTTR^r underflows for repair_rate=%g r=%d, treating MTTDL as infinite",
            config.repair_rate,
            r,
        )
        return math.inf

    try:
        mttdl = mtbf ** (r + 1) / repair_term
    except OverflowError:
        logger.warning(
            "MTTDL overflows for rate=%g n=%d r=%d, treating it as infinite",
            array_failure_rate,
            n,
            r,
        )
        return math.inf

    for i in range(r + 1):
        mttdl /= n - i
    return mttdl


def estimate_data_loss(array_failure_rate: float, config: RaidConfiguration) -> float:
    """Probability of losing data in the next year

    This is an estimate of at least one unrecoverable sequence of failures,
    not a guarantee.
    """
    mttdl = mean_time_to_data_loss(array_failure_rate, config)
    if math.isinf(mttdl):
        return 0.0
    if mttdl == 0:
        return 1.0

    # The array failure rate is the inverse of the MTTDL
    raid_failure_rate = 1.0 / mttdl
    return poisson_at_least(raid_failure_rate, 1)


def data_loss_probability(
    array_failure_rate: float, repair_rate: float, disk_count: int, redundancy: int
) -> float:
    config = RaidConfiguration(
        disk_count=disk_count, redundancy=redundancy, repair_rate=repair_rate
    )
    return estimate_data_loss(array_failure_rate, config)


def data_loss_table(
    array_failure_rate: float,
    disk_count: int,
    max_redundancy: int = RAID_PARITY_MAX,
    cadences: Sequence[RepairCadence] = tuple(RepairCadence),
) -> List[DataLossEstimate]:
    """Data loss probability for each parity level and repair cadence

    Ordered by redundancy then cadence. Levels that need at least as many
    disks as the array has are reported without a probability.
    """
    if array_failure_rate == 0:
        logger.warning("Array failure rate is zero, no data loss is possible")

    result: List[DataLossEstimate] = []
    for redundancy in range(1, max_redundancy + 1):
        if redundancy >= disk_count:
            logger.warning(
                "Cannot estimate %d parity levels for %d disks",
                redundancy,
                disk_count,
            )
        for cadence in cadences:
            probability = None
            if redundancy < disk_count:
                config = RaidConfiguration.with_cadence(disk_count, redundancy, cadence)
                probability = estimate_data_loss(array_failure_rate, config)
            result.append(
                DataLossEstimate(
                    redundancy=redundancy,
                    cadence=cadence,
                    repair_rate=cadence.repairs_per_year,
                    probability=probability,
                )
            )
    return result
