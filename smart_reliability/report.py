import logging
from typing import Iterable
from typing import Optional

from smart_reliability.afr import annual_failure_probability
from smart_reliability.afr import disk_afr
from smart_reliability.interface import DeviceSnapshot
from smart_reliability.interface import DiskReliability
from smart_reliability.interface import RAID_PARITY_MAX
from smart_reliability.interface import ReferenceTables
from smart_reliability.interface import ReliabilityReport
from smart_reliability.raid import data_loss_table
from smart_reliability.stats import failure_count_interval
from smart_reliability.tables import tables

logger = logging.getLogger(__name__)


def build_report(
    snapshots: Iterable[DeviceSnapshot],
    disk_count: Optional[int] = None,
    max_redundancy: int = RAID_PARITY_MAX,
    confidence: float = 0.9,
    reference: Optional[ReferenceTables] = None,
) -> ReliabilityReport:
    """Computes everything a SMART report shows for one pass over the devices

    disk_count is the number of logical disks forming the array (data and
    parity). When omitted it is the number of devices flagged as members.
    Every device gets its own AFP, but only members add to the array
    failure rate.
    """
    if reference is None:
        reference = tables.reference

    disks = []
    array_failure_rate = 0.0
    members = 0
    for snapshot in snapshots:
        afr = disk_afr(snapshot, reference)
        if snapshot.array_member:
            array_failure_rate += afr
            members += 1
        disks.append(
            DiskReliability(
                snapshot=snapshot, afr=afr, afp=annual_failure_probability(afr)
            )
        )

    if disk_count is None:
        disk_count = members
    if disk_count < 1:
        logger.warning("No array disks, data loss cannot be estimated")

    logger.debug(
        "Array of %d disks (%d devices) has failure rate %f",
        disk_count,
        len(disks),
        array_failure_rate,
    )
    return ReliabilityReport(
        disks=disks,
        disk_count=disk_count,
        array_failure_rate=array_failure_rate,
        array_failure_probability=annual_failure_probability(array_failure_rate),
        expected_failures=failure_count_interval(array_failure_rate, confidence),
        data_loss=data_loss_table(array_failure_rate, disk_count, max_redundancy),
    )
